"""
Store cleanup: purge "NA" summaries, then collapse duplicate company names
down to their most recently created record.
"""

from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError

from app.exceptions import PersistenceError
from app.models import NA_GUIDANCE
from app.schemas import CleanupReport, DuplicateGroup, DuplicateMember
from app.utils.logger import setup_logger

logger = setup_logger("cleanup_service")


class CleanupStore(Protocol):
    async def delete_by_guidance(self, guidance: str = NA_GUIDANCE) -> int: ...

    async def get_duplicate_groups(self) -> list[DuplicateGroup]: ...

    async def delete_duplicates(self, name: str, keep_id) -> int: ...


def select_canonical(group: DuplicateGroup) -> DuplicateMember:
    """Latest created_at wins; equal timestamps fall back to the greatest id string."""
    return max(group.members, key=lambda m: (m.created_at, str(m.id)))


class CleanupService:
    def __init__(self, store: CleanupStore):
        self.store = store

    async def run(self) -> CleanupReport:
        report = CleanupReport()

        try:
            report.na_guidance_deleted = await self.store.delete_by_guidance(NA_GUIDANCE)
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to delete NA guidance records: {e}", exc_info=True)
            raise PersistenceError(
                "Failed to delete NA guidance records", context={"details": str(e)}
            ) from e
        logger.info(
            f"🗑️ Deleted {report.na_guidance_deleted} records with guidance='{NA_GUIDANCE}'"
        )

        await self.remove_duplicates(report)

        logger.info(
            f"✅ Cleanup complete - NA records deleted: {report.na_guidance_deleted}, "
            f"Duplicates deleted: {report.duplicates_deleted}, Total deleted: {report.total_deleted}"
        )
        return report

    async def remove_duplicates(self, report: CleanupReport) -> CleanupReport:
        try:
            groups = await self.store.get_duplicate_groups()
        except SQLAlchemyError as e:
            logger.error(f"❌ Failed to find duplicates: {e}", exc_info=True)
            raise PersistenceError(
                "Failed to find duplicates", context={"details": str(e)}
            ) from e

        for group in groups:
            if group.count <= 1:
                continue

            keep = select_canonical(group)
            try:
                deleted = await self.store.delete_duplicates(group.name, keep.id)
            except (SQLAlchemyError, OSError) as e:
                logger.warning(
                    f"⚠️ Failed to delete duplicates for name '{group.name}': {e}"
                )
                report.failed_groups.append(group.name)
                continue

            report.duplicates_deleted += deleted
            report.duplicate_names_processed += 1
            logger.info(
                f"🗑️ Deleted {deleted} duplicate(s) for name '{group.name}' (kept most recent)"
            )

        return report
