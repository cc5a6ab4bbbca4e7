import httpx
from fastapi import Depends, HTTPException, Request, status

from app.config import settings
from app.db_handlers import ConcallSummaryDBHandler
from app.dependencies.llm import get_summarizer_factory
from app.services.analytics_service import AnalyticsRecorder
from app.services.bse_client import BSEClient
from app.services.cleanup_service import CleanupService
from app.services.document_fetcher import DocumentFetcher
from app.services.ingestion_pipeline import IngestionPipeline
from app.services.query_service import QueryService
from app.utils.logger import setup_logger

logger = setup_logger("dependencies")


def get_http_client(request: Request) -> httpx.AsyncClient:
    """The shared HTTP client opened in the application lifespan."""
    client = getattr(request.app.state, "http_client", None)
    if client is None:
        logger.critical(
            "HTTP client dependency requested, but client is not available. This indicates a startup issue."
        )
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="HTTP client is not available.",
        )
    return client


def get_concall_store() -> ConcallSummaryDBHandler:
    return ConcallSummaryDBHandler()


def get_ingestion_pipeline(
    http_client: httpx.AsyncClient = Depends(get_http_client),
    store: ConcallSummaryDBHandler = Depends(get_concall_store),
    summarizer_factory=Depends(get_summarizer_factory),
) -> IngestionPipeline:
    return IngestionPipeline(
        source=BSEClient(http_client),
        fetcher=DocumentFetcher(http_client, dest_dir=settings.dest_dir),
        store=store,
        summarizer_factory=summarizer_factory,
        work_dir=settings.dest_dir,
        pacing_delay=settings.pacing_delay_seconds,
    )


def get_cleanup_service(
    store: ConcallSummaryDBHandler = Depends(get_concall_store),
) -> CleanupService:
    return CleanupService(store)


def get_query_service(
    store: ConcallSummaryDBHandler = Depends(get_concall_store),
) -> QueryService:
    return QueryService(store)


def get_analytics_recorder(request: Request) -> AnalyticsRecorder:
    recorder = getattr(request.app.state, "analytics_recorder", None)
    if recorder is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Analytics is not enabled.",
        )
    return recorder
