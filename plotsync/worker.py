"""Worker that drains the offline queues whenever the API is reachable."""
import threading
from typing import Callable, List, Optional

from plotsync import settings
from plotsync.coordinator import SyncCoordinator
from plotsync.logging_conf import logger
from plotsync.status import SyncStatus


class SyncWorker:
    """Background drain loop driven by connectivity changes and a timer."""

    def __init__(self, coordinator: SyncCoordinator, interval: Optional[int] = None):
        self.coordinator = coordinator
        self.interval = interval if interval is not None else settings.SYNC_INTERVAL
        self.online: Optional[bool] = None
        self.running = False
        self.thread = None
        self._wake = threading.Event()
        self._cancel = threading.Event()
        self._status_listeners: List[Callable[[SyncStatus], None]] = []

    def add_status_listener(self, listener: Callable[[SyncStatus], None]) -> None:
        """Register a callback receiving the pending counts after each pass."""
        self._status_listeners.append(listener)

    def on_connectivity_change(self, online: bool) -> None:
        """Cancel an in-flight drain when going offline; drain now when back online."""
        self.online = online
        if online:
            self._cancel.clear()
            self._wake.set()
        else:
            self._cancel.set()

    def request_sync(self) -> None:
        """Ask for a drain pass as soon as possible (e.g. right after an enqueue)."""
        self._wake.set()

    def start(self):
        """Start the worker in a background thread."""
        if self.running:
            logger.warning("Worker is already running")
            return

        self.running = True
        self._cancel.clear()
        self.thread = threading.Thread(target=self._run, daemon=True)
        self.thread.start()
        logger.info("Worker started")

    def stop(self):
        """Stop the worker, cancelling any drain in progress."""
        if not self.running:
            return

        self.running = False
        self._cancel.set()
        self._wake.set()
        if self.thread:
            self.thread.join(timeout=10)
        logger.info("Worker stopped")

    def _run(self):
        """Main worker loop."""
        logger.info("Worker thread started")

        while self.running:
            self._wake.wait(timeout=self.interval)
            self._wake.clear()
            if not self.running:
                break

            try:
                self.run_once()
            except Exception as e:
                logger.error(f"Worker error: {e}", exc_info=True)
                self._cancel.wait(timeout=5)

        logger.info("Worker thread stopped")

    def run_once(self) -> SyncStatus:
        """Drain once unless known to be offline, then publish the status."""
        if self.online is False:
            logger.debug("Offline, skipping drain")
        else:
            self.coordinator.sync_all(cancel=self._cancel)

        status = self.coordinator.pending_status(online=self.online)
        logger.info(status.summary())
        if status.unreadable:
            logger.warning(f"{status.unreadable} stored queue records cannot be read and are kept for inspection")
        for listener in list(self._status_listeners):
            try:
                listener(status)
            except Exception as e:
                logger.error(f"Status listener failed: {e}", exc_info=True)
        return status
