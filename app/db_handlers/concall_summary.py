from __future__ import annotations

import uuid
from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db_handlers.base import BaseDBHandler, check_local_db
from app.models import NA_GUIDANCE, ConcallSummary
from app.schemas import ConcallSummaryCreate, DuplicateGroup, DuplicateMember
from app.utils.logger import setup_logger

logger = setup_logger("concall_summary_db_handler")

LIKE_ESCAPE_CHAR = "\\"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the search text matches literally."""
    return (
        value.replace(LIKE_ESCAPE_CHAR, LIKE_ESCAPE_CHAR * 2)
        .replace("%", f"{LIKE_ESCAPE_CHAR}%")
        .replace("_", f"{LIKE_ESCAPE_CHAR}_")
    )


class ConcallSummaryDBHandler(BaseDBHandler[ConcallSummary]):
    def __init__(self):
        super().__init__(ConcallSummary)

    @check_local_db
    async def find_existing_names(
        self, names: Iterable[str], *, db: AsyncSession = None
    ) -> set[str]:
        """Return the subset of `names` already stored."""
        unique_names = {name for name in names if name}
        if not unique_names:
            return set()

        stmt = select(ConcallSummary.name).where(
            ConcallSummary.name.in_(unique_names)
        ).distinct()
        result = await db.execute(stmt)
        return set(result.scalars().all())

    @check_local_db
    async def insert_many(
        self, summaries: list[ConcallSummaryCreate], *, db: AsyncSession = None
    ) -> int:
        """Insert a whole ingestion batch in one transaction."""
        if not summaries:
            return 0
        created = await self.batch_create(
            [summary.model_dump() for summary in summaries], db=db
        )
        logger.info(f"Inserted {len(created)} concall summaries")
        return len(created)

    @check_local_db
    async def delete_by_guidance(
        self, guidance: str = NA_GUIDANCE, *, db: AsyncSession = None
    ) -> int:
        return await self.delete_where(ConcallSummary.guidance == guidance, db=db)

    @check_local_db
    async def get_duplicate_groups(
        self, *, db: AsyncSession = None
    ) -> list[DuplicateGroup]:
        """Group rows by name and return every group with more than one member."""
        try:
            names_stmt = (
                select(ConcallSummary.name)
                .group_by(ConcallSummary.name)
                .having(func.count(ConcallSummary.id) > 1)
            )
            duplicate_names = list((await db.execute(names_stmt)).scalars().all())
            if not duplicate_names:
                return []

            rows_stmt = (
                select(ConcallSummary.id, ConcallSummary.name, ConcallSummary.created_at)
                .where(ConcallSummary.name.in_(duplicate_names))
                .order_by(ConcallSummary.name, ConcallSummary.created_at)
            )
            rows = (await db.execute(rows_stmt)).all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load duplicate groups: {e}", exc_info=True)
            raise

        members_by_name: dict[str, list[DuplicateMember]] = {}
        for row in rows:
            members_by_name.setdefault(row.name, []).append(
                DuplicateMember(id=row.id, created_at=row.created_at)
            )

        return [
            DuplicateGroup(name=name, members=members)
            for name, members in members_by_name.items()
            if len(members) > 1
        ]

    @check_local_db
    async def delete_duplicates(
        self, name: str, keep_id: uuid.UUID, *, db: AsyncSession = None
    ) -> int:
        """Delete every row named `name` except the one with id `keep_id`."""
        return await self.delete_where(
            ConcallSummary.name == name, ConcallSummary.id != keep_id, db=db
        )

    @check_local_db
    async def list_with_guidance(
        self, skip: int, limit: int, *, db: AsyncSession = None
    ) -> tuple[list[ConcallSummary], int]:
        """Page through summaries that carry usable guidance, newest filing first."""
        condition = ConcallSummary.guidance != NA_GUIDANCE
        rows = await self.get_multi_where(
            condition,
            order_by=[ConcallSummary.date.desc(), ConcallSummary.created_at.desc()],
            skip=skip,
            limit=limit,
            db=db,
        )
        total = await self.count_where(condition, db=db)
        return rows, total

    @check_local_db
    async def search_by_name(
        self, text: str, skip: int, limit: int, *, db: AsyncSession = None
    ) -> tuple[list[ConcallSummary], int]:
        """Case-insensitive literal substring search on name, newest filing first."""
        pattern = f"%{escape_like(text)}%"
        condition = ConcallSummary.name.ilike(pattern, escape=LIKE_ESCAPE_CHAR)
        rows = await self.get_multi_where(
            condition,
            order_by=[ConcallSummary.date.desc(), ConcallSummary.created_at.desc()],
            skip=skip,
            limit=limit,
            db=db,
        )
        total = await self.count_where(condition, db=db)
        return rows, total
