"""
AnalyticsEvent model: append-only record of one page view or API call.
"""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, Index, String

from app.models.base import Base, UUIDMixin

EVENT_TYPE_PAGE_VIEW = "page_view"
EVENT_TYPE_API_CALL = "api_call"


class AnalyticsEvent(Base, UUIDMixin):
    __tablename__ = "analytics_events"
    __table_args__ = (
        Index("ix_analytics_events_session_id", "session_id"),
        Index("ix_analytics_events_endpoint", "endpoint"),
        Index("ix_analytics_events_timestamp", "timestamp"),
        Index("ix_analytics_events_session_timestamp", "session_id", "timestamp"),
    )

    session_id = Column(String(64), nullable=False)
    endpoint = Column(String(255), nullable=False)
    event_type = Column(
        String(20), nullable=False, comment="page_view or api_call"
    )
    timestamp = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    def __repr__(self):
        return (
            f"<AnalyticsEvent(session_id='{self.session_id}', "
            f"endpoint='{self.endpoint}', event_type='{self.event_type}')>"
        )
