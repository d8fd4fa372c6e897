"""
Background thumbnail generation.

Uploads hand each stored file to ThumbnailQueue and respond immediately.
Tasks run on a small thread pool; every submission returns a Future so that
tests and operational tooling can observe completion and failures, while the
uploading client never sees them.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path

from ..logging_config import get_logger
from .image_processor import ImageProcessor

logger = get_logger(__name__)


class ThumbnailQueue:
    """Fire-and-forget thumbnail worker backed by a ThreadPoolExecutor."""

    def __init__(self, processor: ImageProcessor, max_workers: int = 2) -> None:
        self.processor = processor
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="thumbnails")
        self._pending: set[Future[bool]] = set()
        self._lock = threading.Lock()
        self.completed = 0
        self.failed = 0

    def submit(self, source: Path, destination: Path) -> "Future[bool]":
        """
        Queue one thumbnail task.

        Args:
            source: Uploaded original
            destination: Thumbnail path to write

        Returns:
            Future resolving to True on success, False on failure
        """
        future = self._executor.submit(self.processor.generate_thumbnail, source, destination)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(lambda done: self._on_done(done, source))
        logger.debug("thumbnail_task_queued", source=str(source), destination=str(destination))
        return future

    def _on_done(self, future: "Future[bool]", source: Path) -> None:
        with self._lock:
            self._pending.discard(future)
            if future.exception() is None and future.result():
                self.completed += 1
                return
            self.failed += 1

        logger.warning("thumbnail_task_failed", source=str(source), error=str(future.exception() or "generation failed"))

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def wait(self, timeout: float | None = None) -> bool:
        """
        Block until every queued task has finished.

        Returns:
            bool: True if nothing is left pending
        """
        with self._lock:
            futures = list(self._pending)
        _, not_done = wait(futures, timeout=timeout)
        return not not_done

    def shutdown(self, wait_for_tasks: bool = True) -> None:
        """Stop accepting work and optionally drain queued tasks."""
        self._executor.shutdown(wait=wait_for_tasks)
        logger.info("thumbnail_queue_stopped", completed=self.completed, failed=self.failed)
