"""
Durable Storage Layer

RESPONSIBILITY: Get/set of serialized blobs by key
ALLOWED INPUTS: Card collections from the record store
OUTPUTS: StorageWriteResult, deserialized card lists

WHAT THIS LAYER MUST NOT DO:
============================
- Validate or interpret card content
- Decide what happens when a read fails (the record store seeds)
- Raise on write failure (writes are best-effort, reported as data)

The whole collection lives under ONE key. Concurrent writers of that key
(another process, another tab) are not detected: last writer wins.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence
import json
import logging
import os
import tempfile

from ..contracts.base import Error, ErrorCode, Timestamp
from ..contracts.card import Card
from ..contracts.events import AuditEventType, StorageWriteResult
from ..observability import ObservabilityEngine

logger = logging.getLogger("instaplot.storage")

DEFAULT_STORAGE_KEY = "case-plot-cards"


class StorageReadError(Exception):
    """Stored blob is absent, unreadable or not a card collection."""


# =============================================================================
# STORAGE PORT (Dependency Inversion)
# =============================================================================

class KeyValueStore:
    """
    Abstract blob store interface.

    Implementations may raise OSError (or any exception) from either
    method; the repository converts failures into data.
    """

    def get(self, key: str) -> Optional[str]:
        """Return the blob stored under `key`, or None if absent."""
        raise NotImplementedError

    def set(self, key: str, blob: str) -> None:
        """Store `blob` under `key`, replacing any previous value."""
        raise NotImplementedError


class InMemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store. Suitable for tests and throwaway boards."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, blob: str) -> None:
        self._data[key] = blob


class FileKeyValueStore(KeyValueStore):
    """
    One JSON file per key inside `storage_dir`, created on first write.

    Writes go to a temp file in the same directory and are moved into
    place, so a crash mid-write leaves the previous blob intact.
    """

    def __init__(self, storage_dir: str):
        self._storage_dir = storage_dir

    def _path_for(self, key: str) -> str:
        safe = "".join(c if c.isalnum() or c in "-_." else "_" for c in key)
        return os.path.join(self._storage_dir, f"{safe}.json")

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not os.path.exists(path):
            return None
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()

    def set(self, key: str, blob: str) -> None:
        os.makedirs(self._storage_dir, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self._storage_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(blob)
            os.replace(tmp_path, self._path_for(key))
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


# =============================================================================
# CARD REPOSITORY
# =============================================================================

@dataclass
class StorageConfig:
    """Configuration for durable storage."""
    backend_type: str = "memory"  # "memory" or "file"
    storage_dir: Optional[str] = None
    key: str = DEFAULT_STORAGE_KEY

    @staticmethod
    def from_env(prefix: str = "INSTAPLOT_") -> StorageConfig:
        storage_dir = os.environ.get(f"{prefix}STORAGE_DIR")
        backend_type = os.environ.get(
            f"{prefix}STORAGE_BACKEND", "file" if storage_dir else "memory"
        )
        return StorageConfig(
            backend_type=backend_type,
            storage_dir=storage_dir or os.path.join(os.getcwd(), "data", "board"),
        )


def create_store(config: StorageConfig) -> KeyValueStore:
    """Create the blob store described by `config`."""
    if config.backend_type == "file" and config.storage_dir:
        return FileKeyValueStore(config.storage_dir)
    if config.backend_type not in ("memory", "file"):
        raise ValueError(f"Unknown storage backend: {config.backend_type}")
    return InMemoryKeyValueStore()


def serialize_cards(cards: Sequence[Card], indent: Optional[int] = None) -> str:
    return json.dumps([card.to_dict() for card in cards], indent=indent)


def deserialize_cards(blob: str) -> List[Card]:
    """Parse a stored blob. Raises StorageReadError on any malformed input."""
    try:
        data = json.loads(blob)
    except (ValueError, TypeError) as e:
        raise StorageReadError(f"Stored cards are not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise StorageReadError("Stored cards are not a JSON array")
    for number, item in enumerate(data, start=1):
        if not isinstance(item, Mapping):
            raise StorageReadError(f"Stored item {number} is not a card object")
    try:
        return [Card.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError, OverflowError) as e:
        raise StorageReadError(f"Stored card is malformed: {e}") from e


class CardRepository:
    """
    Load/save of the full card collection under one fixed key.

    BOUNDARY ENFORCEMENT:
    - load() raises StorageReadError; the caller decides the fallback
    - save() never raises; failures come back as StorageWriteResult
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = DEFAULT_STORAGE_KEY,
        observability: Optional[ObservabilityEngine] = None
    ):
        self._store = store
        self._key = key
        self._observability = observability

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> List[Card]:
        try:
            blob = self._store.get(self._key)
        except Exception as e:
            raise StorageReadError(f"Durable store read failed: {e}") from e
        if blob is None:
            raise StorageReadError(f"No cards stored under {self._key!r}")
        cards = deserialize_cards(blob)
        self._audit("cards_loaded", metadata=(("count", str(len(cards))),))
        return cards

    def save(self, cards: Sequence[Card]) -> StorageWriteResult:
        try:
            blob = serialize_cards(cards)
            self._store.set(self._key, blob)
        except Exception as e:
            logger.error("Error saving cards to durable store: %s", e)
            self._audit(
                "save_failed",
                event_type=AuditEventType.ERROR,
                metadata=(("reason", str(e)),)
            )
            return StorageWriteResult(
                success=False,
                key=self._key,
                write_timestamp=Timestamp.now(),
                error=Error.create(
                    ErrorCode.PERSISTENCE_FAILED,
                    f"Durable write failed: {e}",
                    key=self._key
                )
            )

        self._audit("cards_saved", metadata=(("count", str(len(cards))),))
        return StorageWriteResult(
            success=True,
            key=self._key,
            write_timestamp=Timestamp.now(),
            bytes_written=len(blob.encode('utf-8'))
        )

    def _audit(self, action: str, event_type=AuditEventType.STORAGE, metadata=()):
        if self._observability:
            self._observability.log_audit(
                "storage", action, event_type=event_type,
                entity_id=self._key, metadata=metadata
            )
