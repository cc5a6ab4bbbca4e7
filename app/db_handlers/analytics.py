from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db_handlers.base import BaseDBHandler, check_local_db
from app.models import AnalyticsEvent
from app.models.analytics_event import EVENT_TYPE_API_CALL
from app.schemas import AnalyticsSummary, EndpointStat
from app.utils.logger import setup_logger

logger = setup_logger("analytics_db_handler")

# Each load of the summary list counts as one visit
VISIT_ENDPOINT = "/api/list_concalls"


class AnalyticsDBHandler(BaseDBHandler[AnalyticsEvent]):
    def __init__(self):
        super().__init__(AnalyticsEvent)

    @check_local_db
    async def record_events(
        self, events: list[dict], *, db: AsyncSession = None
    ) -> int:
        """Append a batch of analytics events."""
        created = await self.batch_create(events, db=db)
        return len(created)

    @check_local_db
    async def count_unique_sessions(self, *, db: AsyncSession = None) -> int:
        stmt = select(func.count(distinct(AnalyticsEvent.session_id)))
        result = await db.execute(stmt)
        return int(result.scalar_one())

    @check_local_db
    async def get_endpoint_stats(
        self, *, db: AsyncSession = None
    ) -> list[EndpointStat]:
        stmt = (
            select(AnalyticsEvent.endpoint, func.count(AnalyticsEvent.id))
            .group_by(AnalyticsEvent.endpoint)
            .order_by(AnalyticsEvent.endpoint)
        )
        result = await db.execute(stmt)
        return [
            EndpointStat(endpoint=endpoint, count=count)
            for endpoint, count in result.all()
        ]

    @check_local_db
    async def get_summary(self, *, db: AsyncSession = None) -> AnalyticsSummary:
        total_visits = await self.count_where(
            AnalyticsEvent.endpoint == VISIT_ENDPOINT, db=db
        )
        unique_users = await self.count_unique_sessions(db=db)
        api_hits = await self.count_where(
            AnalyticsEvent.event_type == EVENT_TYPE_API_CALL, db=db
        )
        endpoint_stats = await self.get_endpoint_stats(db=db)

        return AnalyticsSummary(
            total_visits=total_visits,
            unique_users=unique_users,
            api_hits=api_hits,
            endpoint_stats={stat.endpoint: stat.count for stat in endpoint_stats},
            last_updated=datetime.now(UTC),
        )
