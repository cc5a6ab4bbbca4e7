"""
This file contains shared fixtures and configuration for the test suite.

Pytest will automatically discover and use the fixtures defined in this file.

The application database is pointed at a throwaway SQLite file before any
`app` module is imported, so database tests never touch a real server.
"""

import os
import tempfile

_TEST_DB_DIR = tempfile.mkdtemp(prefix="concall-tests-")
os.environ["CONCALL_DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_DIR}/test.db"
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402


@pytest.fixture
async def clean_db():
    """Drop and recreate every table so each database test starts empty."""
    from app.db import reset_db

    await reset_db()
    yield


@pytest.fixture
def app() -> FastAPI:
    """
    Create a new application instance for each test.
    """
    # Import the factory function here to ensure the test environment is set first.
    from main import create_app

    return create_app()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """
    Test client without the lifespan: dependencies are overridden per test.
    """
    return TestClient(app)
