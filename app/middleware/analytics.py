"""
Session cookie and visit tracking for every request.
"""

from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from app.config import settings
from app.services.analytics_service import AnalyticsRecorder, get_or_create_session_id
from app.utils.logger import setup_logger

logger = setup_logger("analytics_middleware")

API_PREFIX = "/api/"
STATIC_PREFIX = "/static"


class AnalyticsMiddleware(BaseHTTPMiddleware):
    """
    Ensure each client carries a session cookie and record one event per response.

    /api/* requests are recorded as api_call on their own path; any other
    non-static path counts as a page_view of "/". 304 responses are ignored.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        cookie_name = settings.session_cookie_name
        existing = request.cookies.get(cookie_name)
        session_id = get_or_create_session_id(existing)

        response = await call_next(request)

        if not existing:
            response.set_cookie(
                cookie_name,
                session_id,
                max_age=settings.session_max_age_seconds,
                path="/",
                httponly=True,
            )

        if response.status_code == status.HTTP_304_NOT_MODIFIED:
            return response

        recorder: AnalyticsRecorder | None = getattr(
            request.app.state, "analytics_recorder", None
        )
        if recorder is None:
            return response

        path = request.url.path
        if path.startswith(API_PREFIX):
            recorder.record_api_call(session_id, path)
        elif not path.startswith(STATIC_PREFIX):
            recorder.record_page_view(session_id, "/")

        return response
