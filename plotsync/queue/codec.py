"""Identifier generation and (de)serialization of queue contents."""
import json
import random
import string
import time
import uuid
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, Type

from plotsync.logging_conf import logger
from plotsync.queue.models import P, QueueEntry

_BASE36 = string.digits + string.ascii_lowercase


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def _uuid_id() -> str:
    return str(uuid.uuid4())


def _timestamp_id() -> str:
    suffix = "".join(random.choice(_BASE36) for _ in range(6))
    return f"{now_ms()}_{suffix}"


def _select_id_factory() -> Callable[[], str]:
    """Pick the identifier strategy once, at import."""
    try:
        uuid.uuid4()
    except NotImplementedError:
        logger.warning("No OS random source available; falling back to timestamp ids")
        return _timestamp_id
    return _uuid_id


new_id: Callable[[], str] = _select_id_factory()


class EntryCodec(Generic[P]):
    """Maps a list of QueueEntry objects to and from the persisted JSON array.

    Each persisted record holds ``id`` and ``timestamp`` next to the payload's
    own fields, which the payload class flattens via ``to_record``.
    """

    def __init__(self, payload_cls: Type[P]):
        self.payload_cls = payload_cls

    def encode(self, entries: List[QueueEntry[P]]) -> str:
        return self.dump_records([self.to_record(entry) for entry in entries])

    def to_record(self, entry: QueueEntry[P]) -> Dict[str, Any]:
        record: Dict[str, Any] = {"id": entry.id, "timestamp": entry.enqueued_at}
        record.update(entry.payload.to_record())
        return record

    def dump_records(self, records: List[Any]) -> str:
        return json.dumps(records, ensure_ascii=False)

    def decode(self, blob: Optional[str]) -> List[QueueEntry[P]]:
        """Parse a persisted blob; anything malformed decodes to an empty list."""
        entries, _ = self.split(self.load_records(blob))
        return entries

    def load_records(self, blob: Optional[str]) -> List[Any]:
        """Raw JSON records of a blob, or an empty list if the blob is not a JSON array."""
        if not blob:
            return []
        try:
            records = json.loads(blob)
        except (ValueError, TypeError) as e:
            logger.warning(f"Discarding undecodable {self.payload_cls.__name__} queue: {e}")
            return []
        if not isinstance(records, list):
            logger.warning(
                f"Discarding {self.payload_cls.__name__} queue with non-list top level "
                f"({type(records).__name__})"
            )
            return []
        return records

    def split(self, records: List[Any]) -> Tuple[List[QueueEntry[P]], List[Any]]:
        """
        Separate records that parse into entries from those that do not.

        Returns:
            (entries, unreadable): unreadable holds the raw records, untouched,
            including later duplicates of an id already seen
        """
        entries: List[QueueEntry[P]] = []
        unreadable: List[Any] = []
        seen = set()
        for position, record in enumerate(records):
            try:
                entry = self._decode_record(record)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Unreadable queue record at position {position} kept as-is: {e!r}")
                unreadable.append(record)
                continue
            if entry.id in seen:
                logger.warning(f"Duplicate queue record {entry.id} kept as-is")
                unreadable.append(record)
                continue
            seen.add(entry.id)
            entries.append(entry)
        return entries, unreadable

    def _decode_record(self, record: Any) -> QueueEntry[P]:
        if not isinstance(record, dict):
            raise TypeError(f"record is {type(record).__name__}, not an object")
        entry_id = record["id"]
        timestamp = record["timestamp"]
        if not isinstance(entry_id, str) or not entry_id:
            raise ValueError("id must be a non-empty string")
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            raise ValueError("timestamp must be an integer")
        return QueueEntry(
            id=entry_id,
            enqueued_at=timestamp,
            payload=self.payload_cls.from_record(record),
        )
