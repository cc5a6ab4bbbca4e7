from app.dependencies.llm import get_summarizer_factory
from app.dependencies.services import (
    get_analytics_recorder,
    get_cleanup_service,
    get_concall_store,
    get_http_client,
    get_ingestion_pipeline,
    get_query_service,
)

__all__ = [
    "get_summarizer_factory",
    "get_http_client",
    "get_concall_store",
    "get_ingestion_pipeline",
    "get_cleanup_service",
    "get_query_service",
    "get_analytics_recorder",
]
