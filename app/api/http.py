"""
HTTP API Routes - REST endpoints for concall ingestion, cleanup, queries and analytics.

Long operations run under the configured ceiling timeout; errors are returned
as `{"error": ..., "details": ...}` bodies with a status matching their kind.
"""

import asyncio
from collections.abc import Awaitable
from typing import Any, TypeVar

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.dependencies import (
    get_analytics_recorder,
    get_cleanup_service,
    get_ingestion_pipeline,
    get_query_service,
)
from app.exceptions import (
    ConcallError,
    DecodeError,
    InvalidDate,
    OperationTimeout,
    PersistenceError,
    SourceUnavailable,
    SummarizerUnavailable,
    WorkingDirectoryError,
)
from app.services.analytics_service import AnalyticsRecorder
from app.services.cleanup_service import CleanupService
from app.services.ingestion_pipeline import IngestionPipeline, IngestionResult
from app.services.query_service import MissingQuery, QueryService
from app.utils.date_parsing import is_ambiguous_numeric_date, resolve_date_range
from app.utils.logger import setup_logger

logger = setup_logger("api")

router = APIRouter(prefix="/api")

T = TypeVar("T")


def error_response(status_code: int, error: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, **extra})


async def run_with_timeout(
    operation: Awaitable[T], timeout: float, name: str
) -> T:
    try:
        return await asyncio.wait_for(operation, timeout=timeout)
    except TimeoutError as e:
        logger.error(f"⏰ {name} exceeded {timeout}s and was cancelled")
        raise OperationTimeout(
            f"{name} timed out after {timeout} seconds", context={"operation": name}
        ) from e


def ingestion_response(result: IngestionResult, warnings: list[str]) -> dict[str, Any]:
    body: dict[str, Any] = {
        "message": result.message,
        "count": len(result.summaries),
        "summaries": [s.model_dump(mode="json") for s in result.summaries],
        "skipped": result.skipped_count,
        "errors": result.error_count,
    }
    if result.failures:
        body["failures"] = [f.model_dump() for f in result.failures]
    if warnings:
        body["warnings"] = warnings
    return body


def ambiguous_date_warnings(**values: str | None) -> list[str]:
    warnings = []
    for label, value in values.items():
        if value and is_ambiguous_numeric_date(value):
            warning = (
                f"'{label}' date '{value.strip()}' is ambiguous; it was read as MM/DD/YYYY"
            )
            logger.warning(warning)
            warnings.append(warning)
    return warnings


@router.get("/")
async def read_root():
    """API health check endpoint."""
    return {"message": "Concall Analyser API is running!"}


@router.get("/fetch_concalls")
async def fetch_concalls(
    from_str: str | None = Query(default=None, alias="from"),
    to_str: str | None = Query(default=None, alias="to"),
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
):
    """
    Ingest earnings-call transcripts filed between `from` and `to` (default: today).

    Announcements whose company is already stored are skipped; the rest are
    downloaded, summarized and saved in one batch.
    """
    try:
        from_date, to_date = resolve_date_range(from_str, to_str)
    except InvalidDate as e:
        return error_response(status.HTTP_400_BAD_REQUEST, e.message)

    warnings = ambiguous_date_warnings(**{"from": from_str, "to": to_str})
    logger.info(f"Starting ingestion for {from_date} to {to_date}")

    try:
        result = await run_with_timeout(
            pipeline.run(from_date, to_date),
            settings.operation_timeout_seconds,
            "fetch_concalls",
        )
    except OperationTimeout as e:
        return error_response(
            status.HTTP_504_GATEWAY_TIMEOUT, e.message, details=e.to_dict()
        )
    except PersistenceError as e:
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            e.message,
            summary="Processed but failed to save",
            count=e.unsaved_count,
            details=e.to_dict(),
        )
    except (SourceUnavailable, DecodeError) as e:
        logger.error(f"Failed to fetch announcements: {e.message}")
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            f"Failed to fetch announcements: {e.message}",
            details=e.to_dict(),
        )
    except WorkingDirectoryError as e:
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            f"Failed to create directory: {e.message}",
            details=e.to_dict(),
        )
    except SummarizerUnavailable as e:
        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE, e.message, details=e.to_dict()
        )
    except SQLAlchemyError as e:
        logger.error(f"❌ Failed to filter announcements: {e}", exc_info=True)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            f"Failed to filter announcements: {e}",
            details=str(e),
        )
    except ConcallError as e:
        logger.error(f"❌ Ingestion failed: {e.to_dict()}", exc_info=True)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            f"Ingestion failed: {e.message}",
            details=e.to_dict(),
        )
    except Exception as e:
        logger.error(f"❌ Unexpected error during ingestion: {e}", exc_info=True)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Ingestion failed",
            details=str(e),
        )

    return ingestion_response(result, warnings)


@router.get("/list_concalls")
async def list_concalls(
    page: str | None = None,
    limit: str | None = None,
    query_service: QueryService = Depends(get_query_service),
):
    """Page through summaries that carry guidance, newest filing first."""
    try:
        result = await run_with_timeout(
            query_service.list_summaries(page, limit),
            settings.operation_timeout_seconds,
            "list_concalls",
        )
    except OperationTimeout as e:
        return error_response(status.HTTP_504_GATEWAY_TIMEOUT, e.message)
    except SQLAlchemyError as e:
        logger.error(f"Failed to query summaries: {e}", exc_info=True)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to query database",
            details=str(e),
        )
    return result.to_response()


@router.get("/find_concalls")
async def find_concalls(
    name: str | None = None,
    page: str | None = None,
    limit: str | None = None,
    query_service: QueryService = Depends(get_query_service),
):
    """Case-insensitive substring search on company name."""
    try:
        result = await run_with_timeout(
            query_service.find_summaries(name, page, limit),
            settings.operation_timeout_seconds,
            "find_concalls",
        )
    except MissingQuery as e:
        return error_response(status.HTTP_400_BAD_REQUEST, str(e))
    except OperationTimeout as e:
        return error_response(status.HTTP_504_GATEWAY_TIMEOUT, e.message)
    except SQLAlchemyError as e:
        logger.error(f"Failed to search summaries: {e}", exc_info=True)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to query database",
            details=str(e),
        )
    return result.to_response()


@router.delete("/cleanup_concalls")
async def cleanup_concalls(
    cleanup_service: CleanupService = Depends(get_cleanup_service),
):
    """Delete "NA" summaries, then keep only the newest record per company name."""
    try:
        report = await run_with_timeout(
            cleanup_service.run(),
            settings.operation_timeout_seconds,
            "cleanup_concalls",
        )
    except OperationTimeout as e:
        return error_response(status.HTTP_504_GATEWAY_TIMEOUT, e.message)
    except ConcallError as e:
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            e.message,
            details=e.context.get("details", e.message),
        )
    return report.to_response()


@router.get("/analytics")
async def get_analytics(
    recorder: AnalyticsRecorder = Depends(get_analytics_recorder),
):
    """Visit, session and endpoint counters."""
    try:
        summary = await run_with_timeout(
            recorder.get_summary(),
            settings.analytics_timeout_seconds,
            "analytics",
        )
    except OperationTimeout as e:
        return error_response(status.HTTP_504_GATEWAY_TIMEOUT, e.message)
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch analytics: {e}", exc_info=True)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to fetch analytics",
            details=str(e),
        )
    return summary.model_dump(mode="json")
