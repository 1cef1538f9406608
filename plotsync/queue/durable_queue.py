"""Store-backed ordered queue of pending writes."""
import threading
from typing import Any, Callable, Generic, List, Optional

from plotsync.logging_conf import logger
from plotsync.queue.codec import EntryCodec, new_id, now_ms
from plotsync.queue.models import P, QueueEntry
from plotsync.store import DurableStore


class DurableQueue(Generic[P]):
    """An append-only log of pending writes persisted as one blob per key.

    Every operation is a whole-sequence read-modify-write against the store.
    Callers only ever get copies; entries leave the queue through ``remove``
    (after the remote write is confirmed) or ``purge``.
    """

    def __init__(
        self,
        store: DurableStore,
        key: str,
        codec: EntryCodec[P],
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.store = store
        self.key = key
        self.codec = codec
        self._new_id = id_factory or new_id
        self._clock = clock or now_ms
        # Serializes read-modify-write cycles within this process
        self._lock = threading.RLock()

    def list(self) -> List[QueueEntry[P]]:
        """Return all readable pending entries, oldest first."""
        try:
            entries, _ = self.codec.split(self._load_records())
        except Exception as e:
            logger.warning(f"Queue {self.key} unreadable, treating as empty: {e}", extra={"queue": self.key})
            return []
        return entries

    def unreadable(self) -> List[Any]:
        """Stored records that do not parse as entries.

        They are never submitted, but every write carries them through
        unchanged; only ``remove`` with their id or ``purge`` drops them.
        """
        try:
            _, unreadable = self.codec.split(self._load_records())
        except Exception as e:
            logger.warning(f"Queue {self.key} unreadable: {e}", extra={"queue": self.key})
            return []
        return unreadable

    def get(self, entry_id: str) -> Optional[QueueEntry[P]]:
        for entry in self.list():
            if entry.id == entry_id:
                return entry
        return None

    def count(self) -> int:
        """Number of entries currently waiting to be synced."""
        return len(self.list())

    def enqueue(self, payload: P) -> str:
        """Append a payload and return its new id.

        Store failures propagate: the write is not queued and the caller
        still holds it.
        """
        with self._lock:
            try:
                records = self._load_records()
                taken = {_record_id(r) for r in records}
                entry_id = self._new_id()
                while entry_id in taken:
                    entry_id = self._new_id()
                entry = QueueEntry(id=entry_id, enqueued_at=self._clock(), payload=payload)
                records.append(self.codec.to_record(entry))
                self._save_records(records)
            except Exception as e:
                logger.error(f"Failed to enqueue into {self.key}: {e}", exc_info=True, extra={"queue": self.key})
                raise
        logger.info(
            f"Queued {type(payload).__name__} {entry_id} ({len(records)} stored)",
            extra={"queue": self.key, "entry_id": entry_id},
        )
        return entry_id

    def remove(self, entry_id: str) -> None:
        """Drop the record(s) with this id; unknown ids are ignored."""
        with self._lock:
            records = self._load_records()
            remaining = [r for r in records if _record_id(r) != entry_id]
            if len(remaining) == len(records):
                logger.debug(f"Remove of absent id {entry_id} from {self.key}", extra={"queue": self.key})
                return
            self._save_records(remaining)
        logger.info(
            f"Removed {entry_id} from {self.key} ({len(remaining)} stored)",
            extra={"queue": self.key, "entry_id": entry_id},
        )

    def purge(self) -> int:
        """Delete every stored record and return how many were dropped."""
        with self._lock:
            try:
                dropped = len(self._load_records())
            except Exception as e:
                logger.warning(f"Purging unreadable queue {self.key}: {e}", extra={"queue": self.key})
                dropped = 0
            self.store.delete(self.key)
        logger.warning(f"Purged {dropped} records from {self.key}", extra={"queue": self.key})
        return dropped

    def _load_records(self) -> List[Any]:
        """Raw stored records; store read errors propagate."""
        return self.codec.load_records(self.store.read(self.key))

    def _save_records(self, records: List[Any]) -> None:
        self.store.write(self.key, self.codec.dump_records(records))


def _record_id(record: Any) -> Optional[str]:
    entry_id = record.get("id") if isinstance(record, dict) else None
    return entry_id if isinstance(entry_id, str) else None
