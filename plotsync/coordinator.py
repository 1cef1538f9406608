"""Draining the offline queues against the remote API."""
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from plotsync import settings
from plotsync.api_client import ApiClient, SubmitResult
from plotsync.logging_conf import logger
from plotsync.queue.durable_queue import DurableQueue
from plotsync.queue.offline_queue import ActionQueue, ImageUploadQueue
from plotsync.status import SyncStatus, SyncStatusTracker


class DrainPolicy(str, Enum):
    """What to do with the rest of a pass after one entry fails."""

    CONTINUE = "continue"
    HALT = "halt"


@dataclass
class DrainReport:
    """Result of one pass over a queue."""

    queue: str
    attempted: int = 0
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)  # entry id -> reason
    cancelled: bool = False
    remaining: int = 0

    @property
    def clean(self) -> bool:
        return not self.failed and not self.cancelled


def drain(
    queue: DurableQueue,
    submit: Callable[..., SubmitResult],
    policy: DrainPolicy = DrainPolicy.CONTINUE,
    cancel: Optional[threading.Event] = None,
) -> DrainReport:
    """Submit every queued entry once, oldest first.

    An entry is removed only after ``submit`` reports success. A failed or
    raising submit leaves the entry queued for the next pass. Setting
    ``cancel`` stops the pass before the next submit.
    """
    report = DrainReport(queue=queue.key)

    for entry in queue.list():
        if cancel is not None and cancel.is_set():
            logger.info(f"Drain of {queue.key} cancelled", extra={"queue": queue.key})
            report.cancelled = True
            break

        report.attempted += 1
        try:
            result = submit(entry.payload)
        except Exception as e:
            logger.error(f"Submit raised for {entry.id}: {e}", exc_info=True, extra={"queue": queue.key})
            result = SubmitResult.failed(f"{type(e).__name__}: {e}")

        if result.success:
            queue.remove(entry.id)
            report.succeeded.append(entry.id)
            continue

        report.failed[entry.id] = result.error or "unknown error"
        logger.warning(
            f"Entry {entry.id} stays queued: {report.failed[entry.id]}",
            extra={"queue": queue.key, "entry_id": entry.id},
        )
        if policy == DrainPolicy.HALT:
            break

    report.remaining = queue.count()
    logger.info(
        f"Drained {queue.key}: {len(report.succeeded)} synced, "
        f"{len(report.failed)} failed, {report.remaining} pending",
        extra={"queue": queue.key},
    )
    return report


class SyncCoordinator:
    """Drains the action and image queues through one API client."""

    def __init__(
        self,
        actions: ActionQueue,
        images: ImageUploadQueue,
        client: ApiClient,
        status: SyncStatusTracker,
        policy: Optional[DrainPolicy] = None,
    ):
        self.actions = actions
        self.images = images
        self.client = client
        self.status = status
        self.policy = policy or DrainPolicy(settings.DRAIN_POLICY)
        self._drain_lock = threading.Lock()

    def sync_all(self, cancel: Optional[threading.Event] = None) -> List[DrainReport]:
        """Drain both queues; returns one report per queue drained."""
        # One pass at a time so no entry is in flight twice
        if not self._drain_lock.acquire(blocking=False):
            logger.info("Sync already in progress, skipping")
            return []
        try:
            reports = [
                drain(self.actions, self.client.submit_action, self.policy, cancel),
                drain(self.images, self.client.upload_image, self.policy, cancel),
            ]
        finally:
            self._drain_lock.release()

        if all(r.clean for r in reports) and not any(r.remaining for r in reports):
            self.status.save_sync_time()
        return reports

    def pending_status(self, online: Optional[bool] = None) -> SyncStatus:
        return SyncStatus(
            pending_actions=self.actions.count(),
            pending_images=self.images.count(),
            last_sync=self.status.get_last_sync_time(),
            online=online,
            unreadable=len(self.actions.unreadable()) + len(self.images.unreadable()),
        )
