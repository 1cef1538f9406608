"""Main application - keeps the offline queues draining while the device is online."""
import signal
import sys
import threading

from plotsync.logging_conf import logger
from plotsync import settings
from plotsync.api_client import ApiClient
from plotsync.connectivity import ConnectivityMonitor
from plotsync.coordinator import SyncCoordinator
from plotsync.queue.offline_queue import ActionQueue, ImageUploadQueue
from plotsync.status import SyncStatusTracker
from plotsync.store import create_store
from plotsync.worker import SyncWorker


class Application:
    """Wires the store, queues, API client, monitor and worker together."""

    def __init__(self, store=None, client=None):
        self.store = store or create_store()
        self.actions = ActionQueue(self.store)
        self.images = ImageUploadQueue(self.store)
        self.client = client or ApiClient()
        self.coordinator = SyncCoordinator(
            self.actions,
            self.images,
            self.client,
            SyncStatusTracker(self.store),
        )
        self.monitor = ConnectivityMonitor(self.client)
        self.worker = SyncWorker(self.coordinator)
        self.monitor.add_listener(self.worker.on_connectivity_change)
        self.running = False
        self._stopped = threading.Event()

    def start(self):
        """Start the application."""
        logger.info("=" * 50)
        logger.info("Plot data offline sync")
        logger.info("=" * 50)
        logger.info(f"Store: {settings.QUEUE_STORE}")
        logger.info(f"API: {settings.API_BASE_URL}")
        logger.info(f"Sync interval: {settings.SYNC_INTERVAL}s")
        logger.info("=" * 50)

        settings.validate_config()
        status = self.coordinator.pending_status()
        logger.info(f"Started - {status.summary()}")

        self.running = True
        self.worker.start()
        self.monitor.start()

    def stop(self):
        """Stop the application."""
        if not self.running:
            return
        self.running = False
        self.monitor.stop()
        self.worker.stop()
        close = getattr(self.store, "close", None)
        if close:
            close()
        self._stopped.set()
        logger.info("Stopped")

    def run(self):
        """Start and block until stopped."""
        self.start()
        try:
            while not self._stopped.wait(timeout=1):
                pass
        except KeyboardInterrupt:
            pass
        self.stop()


def main():
    """Entry point."""
    try:
        app = Application()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    def signal_handler(sig, frame):
        logger.info(f"Received signal {sig}")
        app.stop()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        app.run()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
