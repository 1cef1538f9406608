"""Polls the remote API to detect offline/online transitions."""
import time
import threading
from typing import Callable, List, Optional

from plotsync.logging_conf import logger
from plotsync import settings
from plotsync.api_client import ApiClient


class ConnectivityMonitor:
    """Polls the API health endpoint and notifies listeners on changes."""

    def __init__(self, client: ApiClient, interval: Optional[int] = None):
        self.client = client
        self.interval = interval if interval is not None else settings.CONNECTIVITY_INTERVAL
        self.online: Optional[bool] = None
        self.running = False
        self.thread = None
        self._listeners: List[Callable[[bool], None]] = []

    def add_listener(self, listener: Callable[[bool], None]) -> None:
        self._listeners.append(listener)

    def start(self):
        """Start the monitor in a background thread."""
        if self.running:
            logger.warning("Connectivity monitor is already running")
            return

        self.running = True
        self.thread = threading.Thread(target=self._run, daemon=True)
        self.thread.start()
        logger.info(f"Connectivity monitor started (interval: {self.interval}s)")

    def stop(self):
        """Stop the monitor."""
        if not self.running:
            return

        self.running = False
        if self.thread:
            self.thread.join(timeout=10)
        logger.info("Connectivity monitor stopped")

    def _run(self):
        """Main monitor loop."""
        logger.info("Connectivity monitor thread started")

        while self.running:
            try:
                self.check_once()
            except Exception as e:
                logger.error(f"Connectivity monitor error: {e}", exc_info=True)

            # Sleep in one-second steps so stop() is prompt
            for _ in range(self.interval):
                if not self.running:
                    break
                time.sleep(1)

        logger.info("Connectivity monitor thread stopped")

    def check_once(self) -> bool:
        """Probe the API once and notify listeners if the state changed."""
        online = self.client.is_reachable()
        if online != self.online:
            previous = self.online
            self.online = online
            logger.info(f"Connectivity changed: {self._label(previous)} -> {self._label(online)}")
            self._notify(online)
        return online

    def _notify(self, online: bool) -> None:
        for listener in list(self._listeners):
            try:
                listener(online)
            except Exception as e:
                logger.error(f"Connectivity listener failed: {e}", exc_info=True)

    @staticmethod
    def _label(online: Optional[bool]) -> str:
        if online is None:
            return "unknown"
        return "online" if online else "offline"
