from collections.abc import Callable

from app.services.llm_service import get_summarizer
from app.services.summarizer import Summarizer


def get_summarizer_factory() -> Callable[[], Summarizer]:
    """
    FastAPI dependency returning the summarizer factory.

    The summarizer is built lazily inside each ingestion run, so a missing
    API key only fails requests that actually have announcements to process.
    """
    return get_summarizer
