"""
HTTP API tests with services replaced through FastAPI dependency overrides.
"""

import asyncio

from app.config import settings
from app.dependencies import (
    get_analytics_recorder,
    get_cleanup_service,
    get_ingestion_pipeline,
    get_query_service,
)
from app.exceptions import (
    PersistenceError,
    SourceUnavailable,
    SummarizerUnavailable,
)
from app.schemas import (
    AnalyticsSummary,
    CleanupReport,
    ConcallLite,
    ConcallPage,
    ConcallSummaryCreate,
    PageMeta,
)
from app.services.ingestion_pipeline import IngestionResult
from app.services.query_service import normalize_search_text


class StubPipeline:
    def __init__(self, result=None, error=None, delay=0.0):
        self.result = result or IngestionResult()
        self.error = error
        self.delay = delay
        self.calls = []

    async def run(self, from_date, to_date):
        self.calls.append((from_date, to_date))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result


class StubQueryService:
    async def list_summaries(self, page=None, limit=None):
        return ConcallPage(
            meta=PageMeta(page=1, limit=12, total=1, total_pages=1),
            data=[ConcallLite(name="Acme", date="2025-01-15", guidance="- growth")],
        )

    async def find_summaries(self, raw_name, page=None, limit=None):
        query = normalize_search_text(raw_name)
        return ConcallPage(
            meta=PageMeta(page=1, limit=12, total=0, total_pages=0, query=query),
            data=[],
        )


class StubCleanupService:
    async def run(self):
        return CleanupReport(
            na_guidance_deleted=2, duplicates_deleted=3, duplicate_names_processed=1
        )


class StubRecorder:
    def __init__(self):
        self.events = []

    def record_api_call(self, session_id, endpoint):
        self.events.append(("api_call", session_id, endpoint))
        return True

    def record_page_view(self, session_id, endpoint="/"):
        self.events.append(("page_view", session_id, endpoint))
        return True

    async def get_summary(self):
        return AnalyticsSummary(
            total_visits=5, unique_users=2, api_hits=7, endpoint_stats={"/": 1}
        )


def use_pipeline(app, pipeline):
    app.dependency_overrides[get_ingestion_pipeline] = lambda: pipeline
    return pipeline


def test_health(client):
    response = client.get("/api/")
    assert response.status_code == 200


def test_fetch_rejects_inverted_range(app, client):
    pipeline = use_pipeline(app, StubPipeline())

    response = client.get("/api/fetch_concalls?from=2025-02-01&to=2025-01-01")

    assert response.status_code == 400
    assert "cannot be after" in response.json()["error"]
    assert pipeline.calls == []


def test_fetch_rejects_bad_date(app, client):
    use_pipeline(app, StubPipeline())

    response = client.get("/api/fetch_concalls?from=someday")

    assert response.status_code == 400
    assert response.json()["error"].startswith("invalid 'from' date:")


def test_fetch_success(app, client):
    summary = ConcallSummaryCreate(name="Acme", date="2025-01-15", guidance="- growth")
    result = IngestionResult(summaries=[summary], success_count=1, skipped_count=2)
    use_pipeline(app, StubPipeline(result=result))

    response = client.get("/api/fetch_concalls?from=2025-01-01&to=2025-01-31")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Announcements processed and saved successfully"
    assert body["count"] == 1
    assert body["skipped"] == 2
    assert body["summaries"][0]["name"] == "Acme"
    assert "warnings" not in body


def test_fetch_reports_ambiguous_dates(app, client):
    use_pipeline(app, StubPipeline())

    response = client.get("/api/fetch_concalls?from=01/02/2025&to=01/03/2025")

    assert response.status_code == 200
    assert len(response.json()["warnings"]) == 2


def test_fetch_persistence_failure(app, client):
    use_pipeline(
        app, StubPipeline(error=PersistenceError("Failed to save summaries", unsaved_count=4))
    )

    response = client.get("/api/fetch_concalls")

    assert response.status_code == 500
    body = response.json()
    assert body["summary"] == "Processed but failed to save"
    assert body["count"] == 4


def test_fetch_source_failure(app, client):
    use_pipeline(
        app, StubPipeline(error=SourceUnavailable("BSE API returned status 503", 503))
    )

    response = client.get("/api/fetch_concalls")

    assert response.status_code == 500
    assert response.json()["error"] == (
        "Failed to fetch announcements: BSE API returned status 503"
    )
    assert response.json()["details"]["error_type"] == "SourceUnavailable"


def test_fetch_unexpected_error_returns_json_body(app, client):
    use_pipeline(app, StubPipeline(error=RuntimeError("store exploded")))

    response = client.get("/api/fetch_concalls")

    assert response.status_code == 500
    assert response.json() == {"error": "Ingestion failed", "details": "store exploded"}


def test_fetch_summarizer_unavailable(app, client):
    use_pipeline(app, StubPipeline(error=SummarizerUnavailable("no key")))

    assert client.get("/api/fetch_concalls").status_code == 503


def test_fetch_timeout(app, client, monkeypatch):
    monkeypatch.setattr(settings, "operation_timeout_seconds", 0.05)
    use_pipeline(app, StubPipeline(delay=1.0))

    response = client.get("/api/fetch_concalls")

    assert response.status_code == 504


def test_list(app, client):
    app.dependency_overrides[get_query_service] = StubQueryService

    body = client.get("/api/list_concalls?page=x&limit=y").json()

    assert body["meta"]["totalPages"] == 1
    assert body["data"][0]["name"] == "Acme"


def test_find_requires_name(app, client):
    app.dependency_overrides[get_query_service] = StubQueryService

    response = client.get("/api/find_concalls?name=%20%20")

    assert response.status_code == 400
    assert response.json() == {"error": "query parameter 'name' is required"}


def test_find_echoes_query(app, client):
    app.dependency_overrides[get_query_service] = StubQueryService

    body = client.get("/api/find_concalls?name=acme+foods").json()

    assert body["meta"]["query"] == "acme foods"


def test_cleanup(app, client):
    app.dependency_overrides[get_cleanup_service] = StubCleanupService

    response = client.delete("/api/cleanup_concalls")

    assert response.status_code == 200
    assert response.json()["summary"] == {
        "naGuidanceDeleted": 2,
        "duplicatesDeleted": 3,
        "duplicateNamesProcessed": 1,
        "totalDeleted": 5,
    }


def test_analytics(app, client):
    app.dependency_overrides[get_analytics_recorder] = StubRecorder

    body = client.get("/api/analytics").json()

    assert body["total_visits"] == 5
    assert body["unique_users"] == 2
    assert body["api_hits"] == 7
    assert "last_updated" in body


def test_session_cookie_and_event_recording(app, client):
    recorder = StubRecorder()
    app.state.analytics_recorder = recorder

    first = client.get("/api/")
    session_id = first.cookies.get("session_id")
    set_cookie = first.headers["set-cookie"]

    assert session_id
    assert "HttpOnly" in set_cookie
    assert "Max-Age=2592000" in set_cookie

    second = client.get("/some/page")
    client.get("/static/app.js")

    assert "set-cookie" not in second.headers
    assert recorder.events == [
        ("api_call", session_id, "/api/"),
        ("page_view", session_id, "/"),
    ]
