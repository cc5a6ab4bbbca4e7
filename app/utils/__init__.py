"""
Common utilities package for the concall analyser.

Logging setup and date normalization for user-supplied ranges.
"""

from app.utils.date_parsing import (
    is_ambiguous_numeric_date,
    parse_human_readable_date,
    resolve_date_range,
)
from app.utils.logger import cleanup_old_logs, setup_logger

__all__ = [
    # Date utilities
    "parse_human_readable_date",
    "is_ambiguous_numeric_date",
    "resolve_date_range",
    # Logging utilities
    "setup_logger",
    "cleanup_old_logs",
]
