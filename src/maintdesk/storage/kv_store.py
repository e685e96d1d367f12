# src/maintdesk/storage/kv_store.py

from __future__ import annotations

import contextlib
import logging
import os
import re
from pathlib import Path

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileKVStore:
    """
    Opaque key/value store backed by one JSON file per key.

    Values are already-serialized strings; this class does not interpret them.
    Writes are atomic (tmp file + os.replace).
    """

    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._dir / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text("utf-8")
        except OSError:
            logger.exception("Failed to read %s", path)
            return None

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, "utf-8")
        os.replace(tmp, path)
        with contextlib.suppress(OSError):
            # Best-effort: transcripts may contain personal data, keep the file private.
            os.chmod(path, 0o600)
        logger.debug("Saved key=%s (%d bytes) to %s", key, len(value), path)
