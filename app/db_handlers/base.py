from __future__ import annotations

import asyncio
from functools import wraps
from typing import Any, Generic, TypeVar

from asyncpg.exceptions import ConnectionDoesNotExistError
from sqlalchemy import delete, func, select
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import AppAsyncSessionLocal
from app.models.base import Base
from app.utils.logger import setup_logger

logger = setup_logger("db_handlers")


ModelType = TypeVar("ModelType", bound=Base)

MAX_SESSION_ATTEMPTS = 3


def check_local_db(func):
    """Database session decorator with transaction management and reconnect retry."""

    @wraps(func)
    async def wrapper(*args, **kwargs):
        # Nested call: the outermost caller owns the session and the transaction.
        if kwargs.get("db"):
            return await func(*args, **kwargs)

        last_exception = None
        for attempt in range(MAX_SESSION_ATTEMPTS):
            async with AppAsyncSessionLocal() as db:
                kwargs["db"] = db
                try:
                    result = await func(*args, **kwargs)
                    await db.commit()
                    return result
                except DBAPIError as e:
                    await db.rollback()
                    if isinstance(e.orig, ConnectionDoesNotExistError):
                        last_exception = e
                        logger.warning(
                            f"Connection error in {func.__name__} (attempt {attempt + 1}/{MAX_SESSION_ATTEMPTS}): {e}. Retrying..."
                        )
                        await asyncio.sleep(1 + attempt)
                        continue
                    logger.error(
                        f"DBAPIError in {func.__name__} (attempt {attempt + 1}/{MAX_SESSION_ATTEMPTS}): {e}",
                        exc_info=True,
                    )
                    raise
                except Exception as e:
                    await db.rollback()
                    logger.error(
                        f"Transaction failed in {func.__name__} (attempt {attempt + 1}/{MAX_SESSION_ATTEMPTS}): {e}",
                        exc_info=True,
                    )
                    raise

        logger.error(
            f"All retries failed for {func.__name__}. Last error: {last_exception}"
        )
        raise last_exception

    return wrapper


class BaseDBHandler(Generic[ModelType]):
    """Generic handler for database operations with basic CRUD methods."""

    def __init__(self, model: type[ModelType]):
        self.model = model

    @check_local_db
    async def get_multi_where(
        self,
        *conditions,
        db: AsyncSession = None,
        order_by: list | None = None,
        skip: int = 0,
        limit: int | None = 100,
    ) -> list[ModelType]:
        """Get records matching all conditions, ordered and paginated."""
        stmt = select(self.model).where(*conditions)
        if order_by:
            stmt = stmt.order_by(*order_by)
        stmt = stmt.offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @check_local_db
    async def count_where(self, *conditions, db: AsyncSession = None) -> int:
        """Count records matching all conditions."""
        stmt = select(func.count()).select_from(self.model).where(*conditions)
        result = await db.execute(stmt)
        return int(result.scalar_one())

    @check_local_db
    async def delete_where(self, *conditions, db: AsyncSession = None) -> int:
        """Delete records matching all conditions and return how many were removed."""
        if not conditions:
            raise ValueError(
                f"Refusing to delete every {self.model.__name__} without a condition"
            )
        try:
            result = await db.execute(delete(self.model).where(*conditions))
            return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error(
                f"Error deleting {self.model.__name__} rows: {e}", exc_info=True
            )
            raise

    @check_local_db
    async def batch_create(
        self, obj_dicts: list[dict[str, Any]], *, db: AsyncSession = None
    ) -> list[ModelType]:
        """Create multiple records in a single transaction."""
        if not obj_dicts:
            return []

        try:
            db_objs = [self.model(**obj_dict) for obj_dict in obj_dicts]
            db.add_all(db_objs)
            await db.flush()
            return db_objs
        except SQLAlchemyError as e:
            logger.error(
                f"Error in batch_create for {self.model.__name__}: {e}", exc_info=True
            )
            raise
