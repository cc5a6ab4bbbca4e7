"""
Base configurations and mixins for database models.

Provides the declarative base and the UUID primary-key mixin shared by every
table.
"""

import uuid

from sqlalchemy import Column, Uuid
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class UUIDMixin:
    """
    Mixin class that adds a UUID primary key generated with uuid4().

    Uses the generic Uuid type: native UUID on PostgreSQL, CHAR(32) elsewhere.
    """

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        comment="Primary key using UUID4 format",
    )


__all__ = ["Base", "UUIDMixin"]
