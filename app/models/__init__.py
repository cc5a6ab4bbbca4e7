"""
Database models for the concall analyser.

Architecture: Announcement (transient) → ConcallSummary (persisted);
AnalyticsEvent records request traffic independently.
"""

from app.models.analytics_event import AnalyticsEvent
from app.models.concall_summary import NA_GUIDANCE, ConcallSummary

__all__ = [
    "ConcallSummary",
    "AnalyticsEvent",
    "NA_GUIDANCE",
]
