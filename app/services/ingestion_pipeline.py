"""
Ingestion pipeline: announcements in, persisted guidance summaries out.

A run fetches the announcements for a date range, drops the ones whose
company name is already stored, downloads and summarizes the rest one at a
time and inserts every produced summary in a single batch. A failure on one
announcement is logged and counted, never fatal to the run.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, Field

from app.exceptions import (
    ConcallError,
    DownloadError,
    EmptyDocument,
    PersistenceError,
    SummarizationError,
)
from app.schemas import ConcallSummaryCreate
from app.services.bse_client import Announcement
from app.services.document_fetcher import ensure_directory, sanitize_file_name
from app.services.summarizer import Summarizer
from app.utils.logger import setup_logger

logger = setup_logger("ingestion_pipeline")

# Upstream appends this marker to some company names
TRAILING_NAME_MARKER = "-$"

MESSAGE_NO_ANNOUNCEMENTS = "No announcements found for the given date range"
MESSAGE_ALL_PROCESSED = "All announcements already processed"
MESSAGE_SUCCESS = "Announcements processed and saved successfully"


class AnnouncementSource(Protocol):
    async def get_announcements(
        self, from_date: date, to_date: date
    ) -> list[Announcement]: ...


class DocumentDownloader(Protocol):
    async def download(self, attachment_id: str, save_as: str) -> Path: ...


class SummaryStore(Protocol):
    async def find_existing_names(self, names) -> set[str]: ...

    async def insert_many(self, summaries: list[ConcallSummaryCreate]) -> int: ...


class ItemState(Enum):
    SKIPPED = "skipped"
    FAILED = "failed"
    DONE = "done"


class ItemFailure(BaseModel):
    name: str
    attachment_id: str
    error_type: str
    message: str


class ItemOutcome(BaseModel):
    state: ItemState
    summary: ConcallSummaryCreate | None = None
    failure: ItemFailure | None = None


class IngestionResult(BaseModel):
    summaries: list[ConcallSummaryCreate] = Field(default_factory=list)
    success_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    total_fetched: int = 0
    new_count: int = 0
    message: str = MESSAGE_SUCCESS
    failures: list[ItemFailure] = Field(default_factory=list)


def normalize_name(name: str) -> str:
    """Strip the upstream trailing marker from a company name."""
    if name.endswith(TRAILING_NAME_MARKER):
        return name[: -len(TRAILING_NAME_MARKER)]
    return name


def build_file_name(announcement: Announcement) -> str:
    return f"{sanitize_file_name(announcement.logical_name)}_{announcement.date_part}.pdf"


class IngestionPipeline:
    def __init__(
        self,
        source: AnnouncementSource,
        fetcher: DocumentDownloader,
        store: SummaryStore,
        summarizer_factory: Callable[[], Summarizer],
        work_dir: str | Path,
        pacing_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.source = source
        self.fetcher = fetcher
        self.store = store
        self.summarizer_factory = summarizer_factory
        self.work_dir = Path(work_dir)
        self.pacing_delay = pacing_delay
        self._sleep = sleep
        self._summarizer: Summarizer | None = None

    async def run(self, from_date: date, to_date: date) -> IngestionResult:
        announcements = await self.source.get_announcements(from_date, to_date)
        logger.info(f"📊 Found {len(announcements)} announcements from API")

        if not announcements:
            logger.warning(f"⚠️ {MESSAGE_NO_ANNOUNCEMENTS}")
            return IngestionResult(message=MESSAGE_NO_ANNOUNCEMENTS)

        new_announcements = await self.filter_new_announcements(announcements)
        logger.info(
            f"🆕 {len(new_announcements)} new announcements to process (out of {len(announcements)} total)"
        )

        if not new_announcements:
            return IngestionResult(
                total_fetched=len(announcements), message=MESSAGE_ALL_PROCESSED
            )

        with_attachment = sum(1 for a in announcements if a.has_attachment)
        logger.info(
            f"📄 Found {with_attachment} announcements with PDFs out of {len(announcements)} total"
        )

        ensure_directory(self.work_dir)

        self._summarizer = self.summarizer_factory()
        try:
            result = await self.process_sequentially(new_announcements)
        finally:
            await self._close_summarizer()

        result.total_fetched = len(announcements)
        result.new_count = len(new_announcements)

        if result.summaries:
            try:
                await self.store.insert_many(result.summaries)
            except Exception as e:
                logger.error(f"Failed to save summaries: {e}", exc_info=True)
                raise PersistenceError(
                    f"Failed to save summaries: {e}",
                    unsaved_count=len(result.summaries),
                ) from e
            logger.info(f"✅ Successfully inserted {len(result.summaries)} summaries")
        else:
            logger.warning(
                "⚠️ No summaries to save (all announcements may have been skipped)"
            )

        return result

    async def filter_new_announcements(
        self, announcements: list[Announcement]
    ) -> list[Announcement]:
        names = [normalize_name(a.logical_name) for a in announcements]
        existing = await self.store.find_existing_names(names)

        new_announcements = []
        for announcement, name in zip(announcements, names, strict=True):
            if name in existing:
                logger.debug(f"🗑️ Skipping existing announcement: {announcement.logical_name}")
                continue
            new_announcements.append(announcement)
        return new_announcements

    async def process_sequentially(
        self, announcements: list[Announcement]
    ) -> IngestionResult:
        result = IngestionResult()
        total = len(announcements)
        logger.info(f"🚀 Starting to process {total} announcements...")

        for i, announcement in enumerate(announcements, start=1):
            logger.info(f"🔹 [{i}/{total}] Processing: {announcement.logical_name}")

            outcome = await self.process_announcement(announcement)
            if outcome.state is ItemState.DONE:
                result.summaries.append(outcome.summary)
                result.success_count += 1
                logger.info(f"✅ Processed successfully: {announcement.logical_name}")
            elif outcome.state is ItemState.SKIPPED:
                result.skipped_count += 1
                logger.info(
                    f"⏭️ Skipped announcement: {announcement.logical_name} "
                    f"(PDFFlag: {announcement.pdf_flag}, Attachment: '{announcement.attachment_id}')"
                )
            else:
                result.error_count += 1
                result.failures.append(outcome.failure)
                logger.error(
                    f"❌ Error processing announcement {announcement.logical_name} "
                    f"(PDFFlag: {announcement.pdf_flag}, Attachment: {announcement.attachment_id}): "
                    f"{outcome.failure.message}"
                )

            await self._sleep(self.pacing_delay)

        logger.info(
            f"📈 Processing complete - Success: {result.success_count}, "
            f"Skipped: {result.skipped_count}, Errors: {result.error_count}"
        )
        return result

    async def process_announcement(
        self, announcement: Announcement, summarizer: Summarizer | None = None
    ) -> ItemOutcome:
        """Download, summarize and package one announcement."""
        summarizer = summarizer or self._summarizer
        if not announcement.has_attachment:
            return ItemOutcome(state=ItemState.SKIPPED)

        save_as = build_file_name(announcement)
        logger.info(f"📥 Downloading PDF: {save_as} (from {announcement.attachment_id})")

        try:
            path = await self.fetcher.download(announcement.attachment_id, save_as)
        except DownloadError as e:
            return self._failed(announcement, e)

        try:
            size = path.stat().st_size
            if size == 0:
                raise EmptyDocument(
                    f"PDF file is empty at {path}", context={"path": str(path)}
                )
            logger.info(f"✅ PDF saved to {path} (size: {size} bytes)")

            logger.info(f"🤖 Uploading and summarizing PDF: {save_as}")
            guidance = await summarizer.summarize_document(path)
        except (EmptyDocument, SummarizationError) as e:
            return self._failed(announcement, e)
        except OSError as e:
            return self._failed(
                announcement, DownloadError(f"file stat error for {path}: {e}")
            )
        finally:
            self._remove_working_file(path)

        logger.info(f"✅ Summary generated for {save_as}")
        summary = ConcallSummaryCreate(
            name=normalize_name(announcement.logical_name),
            date=announcement.date_part,
            guidance=guidance,
        )
        return ItemOutcome(state=ItemState.DONE, summary=summary)

    @staticmethod
    def _failed(announcement: Announcement, error: ConcallError) -> ItemOutcome:
        return ItemOutcome(
            state=ItemState.FAILED,
            failure=ItemFailure(
                name=announcement.logical_name,
                attachment_id=announcement.attachment_id,
                error_type=type(error).__name__,
                message=error.message,
            ),
        )

    @staticmethod
    def _remove_working_file(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"⚠️ Warning: failed to remove temp file {path}: {e}")

    async def _close_summarizer(self) -> None:
        if self._summarizer is None:
            return
        try:
            await self._summarizer.close()
        except Exception as e:
            logger.error(f"Error closing summarizer: {e}", exc_info=True)
        finally:
            self._summarizer = None
