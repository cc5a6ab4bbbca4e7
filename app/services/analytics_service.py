"""
Fire-and-forget analytics recording.

Request handlers enqueue events without waiting; a single background task
drains the bounded queue and appends events to the store in small batches.
When the queue is full new events are dropped and counted, so a slow
database never holds up a request.
"""

import asyncio
import uuid
from datetime import UTC, datetime

from app.config import settings
from app.db_handlers import AnalyticsDBHandler
from app.models.analytics_event import EVENT_TYPE_API_CALL, EVENT_TYPE_PAGE_VIEW
from app.schemas import AnalyticsSummary
from app.utils.logger import setup_logger

logger = setup_logger("analytics_service")

MAX_BATCH_SIZE = 100


def get_or_create_session_id(existing: str | None) -> str:
    if existing:
        return existing
    return str(uuid.uuid4())


class AnalyticsRecorder:
    def __init__(
        self,
        store: AnalyticsDBHandler | None = None,
        queue_size: int = settings.analytics_queue_size,
    ):
        self.store = store or AnalyticsDBHandler()
        self._queue: asyncio.Queue[dict] = asyncio.Queue(maxsize=queue_size)
        self._worker: asyncio.Task | None = None
        self.dropped_count = 0
        self.recorded_count = 0

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        if self.running:
            return
        self._worker = asyncio.create_task(self._consume(), name="analytics-recorder")
        logger.info("📈 Analytics recorder started")

    async def stop(self) -> None:
        """Flush queued events and stop the background task."""
        if self._worker is None:
            return
        if self.running:
            await self._queue.join()
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        logger.info(
            f"Analytics recorder stopped (recorded: {self.recorded_count}, dropped: {self.dropped_count})"
        )

    def enqueue(self, session_id: str, endpoint: str, event_type: str) -> bool:
        event = {
            "session_id": session_id,
            "endpoint": endpoint,
            "event_type": event_type,
            "timestamp": datetime.now(UTC),
        }
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped_count += 1
            logger.warning(
                f"Analytics queue full, dropping {event_type} event for {endpoint} "
                f"(dropped so far: {self.dropped_count})"
            )
            return False
        return True

    def record_page_view(self, session_id: str, endpoint: str = "/") -> bool:
        return self.enqueue(session_id, endpoint, EVENT_TYPE_PAGE_VIEW)

    def record_api_call(self, session_id: str, endpoint: str) -> bool:
        return self.enqueue(session_id, endpoint, EVENT_TYPE_API_CALL)

    async def get_summary(self) -> AnalyticsSummary:
        return await self.store.get_summary()

    async def _consume(self) -> None:
        while True:
            batch = [await self._queue.get()]
            while len(batch) < MAX_BATCH_SIZE and not self._queue.empty():
                batch.append(self._queue.get_nowait())
            try:
                self.recorded_count += await self.store.record_events(batch)
            except Exception as e:
                logger.error(
                    f"Failed to record {len(batch)} analytics event(s): {e}", exc_info=True
                )
            finally:
                for _ in batch:
                    self._queue.task_done()
