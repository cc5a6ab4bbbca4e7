from app.db_handlers.analytics import AnalyticsDBHandler
from app.db_handlers.base import BaseDBHandler, check_local_db
from app.db_handlers.concall_summary import ConcallSummaryDBHandler

__all__ = [
    "BaseDBHandler",
    "check_local_db",
    "ConcallSummaryDBHandler",
    "AnalyticsDBHandler",
]
