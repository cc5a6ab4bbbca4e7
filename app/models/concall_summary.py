"""
ConcallSummary model: the durable result of ingesting one announcement.

At most one row per `name` is expected in steady state. This is not enforced
at write time; the cleanup job collapses duplicate groups to the most
recently created row and purges rows whose guidance is the "NA" sentinel.
"""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, Index, String, Text

from app.models.base import Base, UUIDMixin

NA_GUIDANCE = "NA"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ConcallSummary(Base, UUIDMixin):
    """Summarized earnings-call guidance for one company filing."""

    __tablename__ = "concall_summaries"
    __table_args__ = (
        Index("ix_concall_summaries_name", "name"),
        Index("ix_concall_summaries_date", "date"),
        Index("ix_concall_summaries_name_created_at", "name", "created_at"),
    )

    name = Column(
        String(255),
        nullable=False,
        comment="Company name from the filing, trailing upstream markers stripped",
    )

    date = Column(
        String(10),
        nullable=False,
        comment="Filing date (YYYY-MM-DD), time of day discarded",
    )

    guidance = Column(
        Text,
        nullable=False,
        comment="Summarized guidance text, or 'NA' when nothing usable was extracted",
    )

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        comment="Wall-clock time the summary was persisted; duplicate tie-breaker",
    )

    def __repr__(self):
        return (
            f"<ConcallSummary(id={self.id}, name='{self.name}', "
            f"date='{self.date}', created_at='{self.created_at}')>"
        )
