"""
Tests for the ingestion pipeline using in-memory fakes for the exchange,
the downloader, the summarizer and the store.
"""

from datetime import date

import pytest

from app.exceptions import PersistenceError, SummarizerUnavailable
from app.services.ingestion_pipeline import (
    MESSAGE_ALL_PROCESSED,
    MESSAGE_NO_ANNOUNCEMENTS,
    MESSAGE_SUCCESS,
    IngestionPipeline,
    ItemState,
    build_file_name,
    normalize_name,
)
from tests.fakes import (
    FakeFetcher,
    FakeSource,
    FakeStore,
    FakeSummarizer,
    RecordingSleep,
    make_announcement,
)

FROM = date(2025, 1, 1)
TO = date(2025, 1, 31)


class SummarizerFactory:
    def __init__(self, summarizer=None, error: Exception | None = None):
        self.summarizer = summarizer or FakeSummarizer()
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.summarizer


def build_pipeline(tmp_path, announcements, store=None, fetcher=None, factory=None):
    work_dir = tmp_path / "downloads"
    sleep = RecordingSleep()
    pipeline = IngestionPipeline(
        source=FakeSource(announcements),
        fetcher=fetcher or FakeFetcher(work_dir),
        store=store or FakeStore(),
        summarizer_factory=factory or SummarizerFactory(),
        work_dir=work_dir,
        pacing_delay=1.0,
        sleep=sleep,
    )
    return pipeline, sleep


def test_normalize_name_strips_trailing_marker():
    assert normalize_name("Acme Ltd-$") == "Acme Ltd"
    assert normalize_name("Acme-$ Ltd") == "Acme-$ Ltd"
    assert normalize_name("Acme Ltd") == "Acme Ltd"


def test_build_file_name_is_sanitized_and_dated():
    announcement = make_announcement("Foo Bar/Baz: Ltd", "x.pdf", "2025-01-15T09:00:00")
    assert build_file_name(announcement) == "Foo_Bar_Baz-_Ltd_2025-01-15.pdf"


async def test_no_announcements_short_circuits(tmp_path):
    factory = SummarizerFactory()
    store = FakeStore()
    pipeline, _ = build_pipeline(tmp_path, [], store=store, factory=factory)

    result = await pipeline.run(FROM, TO)

    assert result.message == MESSAGE_NO_ANNOUNCEMENTS
    assert result.summaries == []
    assert store.lookups == []
    assert factory.calls == 0


async def test_all_existing_short_circuits(tmp_path):
    factory = SummarizerFactory()
    store = FakeStore(existing={"Acme Ltd", "Beta Ltd"})
    announcements = [
        make_announcement("Acme Ltd", "a.pdf"),
        make_announcement("Beta Ltd-$", "b.pdf"),
    ]
    pipeline, _ = build_pipeline(tmp_path, announcements, store=store, factory=factory)

    result = await pipeline.run(FROM, TO)

    assert result.message == MESSAGE_ALL_PROCESSED
    assert result.total_fetched == 2
    assert store.lookups == [["Acme Ltd", "Beta Ltd"]]
    assert store.inserted == []
    assert factory.calls == 0
    assert not (tmp_path / "downloads").exists()


async def test_only_unseen_announcements_are_processed(tmp_path):
    work_dir = tmp_path / "downloads"
    fetcher = FakeFetcher(work_dir)
    summarizer = FakeSummarizer()
    store = FakeStore(existing={"Acme Ltd"})
    announcements = [
        make_announcement("Acme Ltd", "a.pdf"),
        make_announcement("Beta Co", "b.pdf"),
    ]
    pipeline, sleep = build_pipeline(
        tmp_path,
        announcements,
        store=store,
        fetcher=fetcher,
        factory=SummarizerFactory(summarizer),
    )

    result = await pipeline.run(FROM, TO)

    assert result.message == MESSAGE_SUCCESS
    assert result.total_fetched == 2
    assert result.new_count == 1
    assert fetcher.downloads == [("b.pdf", "Beta_Co_2025-01-15.pdf")]
    assert summarizer.calls == ["Beta_Co_2025-01-15.pdf"]
    assert [s.name for s in store.inserted] == ["Beta Co"]
    assert sleep.delays == [1.0]


async def test_mixed_batch_isolates_item_failures(tmp_path):
    work_dir = tmp_path / "downloads"
    fetcher = FakeFetcher(
        work_dir,
        contents={"d.pdf": b""},
        failures={"c.pdf": "failed to download file: status code 404"},
    )
    summarizer = FakeSummarizer(failures={"Echo"})
    store = FakeStore()
    announcements = [
        make_announcement("Alpha Ltd", "a.pdf"),
        make_announcement("Bravo Ltd", ""),
        make_announcement("Charlie Ltd", "c.pdf"),
        make_announcement("Delta Ltd", "d.pdf"),
        make_announcement("Echo Ltd", "e.pdf"),
        make_announcement("Foxtrot Ltd-$", "f.pdf"),
    ]
    pipeline, sleep = build_pipeline(
        tmp_path,
        announcements,
        store=store,
        fetcher=fetcher,
        factory=SummarizerFactory(summarizer),
    )

    result = await pipeline.run(FROM, TO)

    assert result.message == MESSAGE_SUCCESS
    assert [s.name for s in result.summaries] == ["Alpha Ltd", "Foxtrot Ltd"]
    assert result.success_count == 2
    assert result.skipped_count == 1
    assert result.error_count == 3
    assert result.total_fetched == 6
    assert result.new_count == 6
    assert {f.name: f.error_type for f in result.failures} == {
        "Charlie Ltd": "DownloadError",
        "Delta Ltd": "EmptyDocument",
        "Echo Ltd": "SummarizationError",
    }

    # Paced after every item, whatever its outcome
    assert sleep.delays == [1.0] * 6
    # Working files never outlive their item
    assert list(work_dir.iterdir()) == []
    assert summarizer.closed
    assert store.inserted == result.summaries


async def test_summary_fields(tmp_path):
    summarizer = FakeSummarizer(responses={"Acme": "- Revenue growth of 15% in FY26"})
    pipeline, _ = build_pipeline(
        tmp_path,
        [make_announcement("Acme Ltd-$", "a.pdf", "2025-02-03T17:45:00")],
        factory=SummarizerFactory(summarizer),
    )

    result = await pipeline.run(FROM, TO)

    summary = result.summaries[0]
    assert summary.name == "Acme Ltd"
    assert summary.date == "2025-02-03"
    assert summary.guidance == "- Revenue growth of 15% in FY26"
    assert summarizer.calls == ["Acme_Ltd-$_2025-02-03.pdf"]


async def test_items_are_processed_in_source_order(tmp_path):
    summarizer = FakeSummarizer()
    names = ["Zeta Ltd", "Alpha Ltd", "Mu Ltd"]
    pipeline, _ = build_pipeline(
        tmp_path,
        [make_announcement(name, f"{i}.pdf") for i, name in enumerate(names)],
        factory=SummarizerFactory(summarizer),
    )

    result = await pipeline.run(FROM, TO)

    assert [s.name for s in result.summaries] == names
    assert [call.split("_")[0] for call in summarizer.calls] == ["Zeta", "Alpha", "Mu"]


async def test_skipped_item_outcome(tmp_path):
    pipeline, _ = build_pipeline(tmp_path, [])
    outcome = await pipeline.process_announcement(
        make_announcement("No Pdf Ltd", ""), FakeSummarizer()
    )
    assert outcome.state is ItemState.SKIPPED
    assert outcome.summary is None


async def test_insert_failure_raises_persistence_error(tmp_path):
    store = FakeStore(insert_error=RuntimeError("disk full"))
    pipeline, _ = build_pipeline(
        tmp_path,
        [make_announcement("Acme Ltd", "a.pdf"), make_announcement("Beta Ltd", "b.pdf")],
        store=store,
    )

    with pytest.raises(PersistenceError) as exc_info:
        await pipeline.run(FROM, TO)

    assert exc_info.value.unsaved_count == 2


async def test_summarizer_unavailable_is_fatal(tmp_path):
    fetcher = FakeFetcher(tmp_path / "downloads")
    factory = SummarizerFactory(error=SummarizerUnavailable("no key"))
    pipeline, _ = build_pipeline(
        tmp_path, [make_announcement("Acme Ltd", "a.pdf")], fetcher=fetcher, factory=factory
    )

    with pytest.raises(SummarizerUnavailable):
        await pipeline.run(FROM, TO)

    assert fetcher.downloads == []


async def test_nothing_to_save_when_all_items_skip(tmp_path):
    store = FakeStore()
    pipeline, _ = build_pipeline(
        tmp_path, [make_announcement("Acme Ltd", "")], store=store
    )

    result = await pipeline.run(FROM, TO)

    assert result.summaries == []
    assert result.skipped_count == 1
    assert store.inserted == []
