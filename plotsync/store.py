"""Key-value stores backing the offline queues."""
import hashlib
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Optional

from plotsync import settings
from plotsync.logging_conf import logger


class DurableStore:
    """Whole-value read/write of a serialized blob under a namespaced key.

    Implementations make no promise of isolation between concurrent writers;
    the last write wins.
    """

    def read(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def write(self, key: str, blob: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore(DurableStore):
    """In-process store, lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, blob: str) -> None:
        self._data[key] = blob

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileStore(DurableStore):
    """One JSON file per key inside a directory."""

    def __init__(self, directory: Optional[Path] = None):
        self.directory: Path = Path(directory or settings.QUEUE_STORE_DIR)
        self.directory.mkdir(parents=True, exist_ok=True)

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            logger.warning(f"Corrupt store file {path}: {e}", extra={"store_key": key})
            return None

    def write(self, key: str, blob: str) -> None:
        """Write via a temp file and os.replace so readers never see a torn blob."""
        path = self._path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{path.stem}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(blob)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except Exception:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{self._safe_key(key)}.json"

    def _safe_key(self, value: str) -> str:
        """Make a safe filename from a key; altered keys get a hash suffix so they stay distinct."""
        safe = re.sub(r"[^A-Za-z0-9._-]", "_", value)[:180]
        if safe == value:
            return safe
        digest = hashlib.sha1(value.encode("utf-8")).hexdigest()[:10]
        return f"{safe}-{digest}"


def create_store(kind: Optional[str] = None) -> DurableStore:
    """Build the store configured by QUEUE_STORE."""
    kind = kind or settings.QUEUE_STORE
    if kind == "memory":
        logger.warning("Using in-memory queue store; pending writes will not survive a restart")
        return MemoryStore()
    if kind == "file":
        return FileStore()
    if kind == "postgres":
        from plotsync.db import PostgresStore

        return PostgresStore()
    raise ValueError(f"Unknown store kind: {kind}")
