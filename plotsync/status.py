"""Sync status: last successful sync time and pending counts."""
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from plotsync import settings
from plotsync.logging_conf import logger
from plotsync.store import DurableStore


@dataclass
class SyncStatus:
    """What the UI shows as "N changes waiting to sync"."""

    pending_actions: int
    pending_images: int
    last_sync: Optional[datetime]
    online: Optional[bool] = None
    unreadable: int = 0  # stored records kept but not submittable

    @property
    def pending_total(self) -> int:
        return self.pending_actions + self.pending_images

    def summary(self) -> str:
        if not self.pending_total:
            return "All changes synced"
        noun = "change" if self.pending_total == 1 else "changes"
        return f"{self.pending_total} {noun} waiting to sync"


class SyncStatusTracker:
    """Persists the last successful sync time next to the queues."""

    def __init__(self, store: DurableStore, key: Optional[str] = None):
        self.store = store
        self.key = key or settings.STATUS_KEY

    def get_last_sync_time(self) -> Optional[datetime]:
        """
        Get the last time both queues drained completely.

        Returns:
            Last sync datetime (UTC), or None if never synced or unreadable
        """
        try:
            raw = self.store.read(self.key)
            if raw:
                data = json.loads(raw)
                return datetime.fromisoformat(data["last_sync"])
        except Exception as e:
            logger.warning(f"Failed to read sync status: {e}")
        return None

    def save_sync_time(self, sync_time: Optional[datetime] = None) -> None:
        """Save the sync time; failures are logged, never raised."""
        sync_time = sync_time or datetime.now(timezone.utc)
        try:
            data = {
                "last_sync": sync_time.isoformat(),
                "updated_at": datetime.now(timezone.utc).isoformat(),
            }
            self.store.write(self.key, json.dumps(data))
            logger.debug(f"Saved sync status: {sync_time.isoformat()}")
        except Exception as e:
            logger.error(f"Failed to save sync status: {e}", exc_info=True)
