"""
Read-side queries over stored summaries: paged listing and name search.
"""

import math
from typing import Any

from app.config import settings
from app.db_handlers import ConcallSummaryDBHandler
from app.schemas import ConcallLite, ConcallPage, PageMeta
from app.utils.logger import setup_logger

logger = setup_logger("query_service")


class MissingQuery(ValueError):
    """The search text was absent or blank."""


def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def normalize_pagination(page: Any, limit: Any) -> tuple[int, int]:
    """Fall back to the defaults for non-integer or non-positive values."""
    return (
        _positive_int(page, settings.default_page),
        _positive_int(limit, settings.default_page_limit),
    )


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total else 0


def normalize_search_text(raw: str | None) -> str:
    """Decode '+' as a space and trim; blank input raises MissingQuery."""
    text = (raw or "").replace("+", " ").strip()
    if not text:
        raise MissingQuery("query parameter 'name' is required")
    return text


class QueryService:
    def __init__(self, store: ConcallSummaryDBHandler | None = None):
        self.store = store or ConcallSummaryDBHandler()

    async def list_summaries(self, page: Any = None, limit: Any = None) -> ConcallPage:
        page, limit = normalize_pagination(page, limit)
        rows, total = await self.store.list_with_guidance(
            skip=(page - 1) * limit, limit=limit
        )
        logger.debug(f"list_summaries page={page} limit={limit} -> {len(rows)}/{total}")
        return ConcallPage(
            meta=PageMeta(
                page=page, limit=limit, total=total, total_pages=total_pages(total, limit)
            ),
            data=[ConcallLite.model_validate(row) for row in rows],
        )

    async def find_summaries(
        self, raw_name: str | None, page: Any = None, limit: Any = None
    ) -> ConcallPage:
        query = normalize_search_text(raw_name)
        page, limit = normalize_pagination(page, limit)
        rows, total = await self.store.search_by_name(
            query, skip=(page - 1) * limit, limit=limit
        )
        logger.debug(f"find_summaries '{query}' page={page} -> {len(rows)}/{total}")
        return ConcallPage(
            meta=PageMeta(
                page=page,
                limit=limit,
                total=total,
                total_pages=total_pages(total, limit),
                query=query,
            ),
            data=[ConcallLite.model_validate(row) for row in rows],
        )
