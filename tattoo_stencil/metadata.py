"""Metadata store abstractions (JSON file + in-memory)

Keep this small and explicit. The catalog only needs a persistent map from
stencil id to a plain field-name keyed record. JsonMetadataStore persists
it as one JSON document; MemoryMetadataStore is for unit tests and
ephemeral runs.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from .errors import StorageError
from .utils.temp_files import write_atomic

logger = logging.getLogger(__name__)


class MetadataStoreBase:
    """Persistent map: stencil id -> record dict. Last write wins."""

    def get(self, stencil_id: str) -> Optional[dict]:
        raise NotImplementedError

    def put(self, stencil_id: str, record: dict) -> None:
        raise NotImplementedError

    def delete(self, stencil_id: str) -> None:
        raise NotImplementedError

    def keys(self) -> List[str]:
        raise NotImplementedError

    def values(self) -> List[dict]:
        return [record for record in (self.get(k) for k in self.keys()) if record is not None]

    def __contains__(self, stencil_id: str) -> bool:
        return self.get(stencil_id) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self.keys())


class MemoryMetadataStore(MetadataStoreBase):
    """Dict-backed store. Records are deep-copied in and out, like a real
    persistent store, so callers cannot mutate stored state by accident."""

    def __init__(self, records: Optional[Dict[str, dict]] = None):
        self._records: Dict[str, dict] = copy.deepcopy(records or {})
        self._lock = threading.RLock()

    def get(self, stencil_id: str) -> Optional[dict]:
        with self._lock:
            record = self._records.get(stencil_id)
            return copy.deepcopy(record) if record is not None else None

    def put(self, stencil_id: str, record: dict) -> None:
        with self._lock:
            self._records[stencil_id] = copy.deepcopy(record)

    def delete(self, stencil_id: str) -> None:
        with self._lock:
            self._records.pop(stencil_id, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._records)


class JsonMetadataStore(MemoryMetadataStore):
    """Single JSON document on disk, rewritten atomically on each change.

    Document format:
        {"version": 1, "stencils": {"<id>": {<record fields>}, ...}}
    """

    FORMAT_VERSION = 1

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path).expanduser()
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            logger.info(f"No metadata at {self.path}, starting empty catalog")
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Cannot load metadata from {self.path}: {exc}") from exc

        stencils = document.get("stencils", {}) if isinstance(document, dict) else None
        if not isinstance(stencils, dict):
            raise StorageError(f"Malformed metadata document: {self.path}")
        self._records = stencils
        logger.info(f"Loaded {len(stencils)} stencil records from {self.path}")

    def _flush(self) -> None:
        document = {"version": self.FORMAT_VERSION, "stencils": self._records}
        payload = json.dumps(document, indent=2, sort_keys=True).encode("utf-8")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            write_atomic(self.path, payload)
        except OSError as exc:
            raise StorageError(f"Failed to write metadata to {self.path}: {exc}") from exc

    def put(self, stencil_id: str, record: dict) -> None:
        with self._lock:
            previous = self._records.get(stencil_id)
            super().put(stencil_id, record)
            try:
                self._flush()
            except StorageError:
                # Keep memory consistent with what is on disk
                if previous is None:
                    self._records.pop(stencil_id, None)
                else:
                    self._records[stencil_id] = previous
                raise

    def delete(self, stencil_id: str) -> None:
        with self._lock:
            if stencil_id not in self._records:
                return
            previous = self._records.pop(stencil_id)
            try:
                self._flush()
            except StorageError:
                self._records[stencil_id] = previous
                raise
