#!/usr/bin/env python3

"""
Main application entry point for the Concall Analyser service.

Architecture: FastAPI application with an async database, a shared HTTP client
for the exchange API and a background analytics recorder.
Key Features: Lifecycle management, database health checks, error handling, CORS configuration.
"""

import asyncio
import sys

# Add this block to switch asyncio event loop policy on Windows
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

import errno
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.http import router as http_router
from app.config import settings
from app.db import check_db_connection, close_db, init_db
from app.middleware import AnalyticsMiddleware
from app.services.analytics_service import AnalyticsRecorder
from app.services.bse_client import create_http_client
from app.utils.logger import setup_logger

logger = setup_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup...")
    try:
        logger.info("Initializing database...")
        await init_db()
        logger.info("Database initialization complete.")

        logger.info("Checking database connectivity...")
        if await check_db_connection():
            logger.info("Database connectivity confirmed.")
        else:
            logger.critical("Database connectivity check failed.")
            raise SystemExit("Database connection failed.")

    except Exception as e:
        logger.critical(f"Startup error: {e}")
        raise SystemExit(f"Startup failed: {e}") from e

    app.state.http_client = create_http_client()

    app.state.analytics_recorder = None
    if settings.analytics_enabled:
        app.state.analytics_recorder = AnalyticsRecorder()
        app.state.analytics_recorder.start()

    logger.info("Concall Analyser API startup successful.")

    yield

    logger.info("Concall Analyser API shutdown...")
    if app.state.analytics_recorder is not None:
        await app.state.analytics_recorder.stop()
    await app.state.http_client.aclose()
    await close_db()
    logger.info("Shutdown complete.")


def create_app():
    app = FastAPI(title="Concall Analyser API", lifespan=lifespan)

    @app.exception_handler(OSError)
    async def oserror_exception_handler(request: Request, exc: OSError):
        logger.error(f"OSError caught: {exc}, errno: {exc.errno}")
        if exc.errno in [errno.ETIMEDOUT, errno.ECONNREFUSED]:
            logger.error(
                f"Returning 503 due to DB connection issue: {settings.db_unavailable_hint}"
            )
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"error": settings.db_unavailable_hint},
            )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": f"An unexpected OS error occurred: {exc}"},
        )

    app.include_router(http_router)
    app.add_middleware(AnalyticsMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    return app


app = create_app()


def main():
    port = int(settings.server_port)
    host = settings.server_host

    logger.info(f"Starting Concall Analyser API server on {host}:{port}")

    try:
        uvicorn.run(
            "main:app" if settings.server_workers > 1 else app,
            host=host,
            port=port,
            workers=settings.server_workers,
        )
    except Exception as e:
        logger.error(f"Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
