"""
Object store backends for cached timeline payloads.

The read-through cache only needs two operations from a store: ``get`` and
``put``.  Both are async and both may raise.  The store, not the caller,
stamps each object with its upload time.

Backends:
    InMemoryObjectStore    — dict-backed, process-local (tests, local dev)
    FileSystemObjectStore  — one JSON envelope file per key under a directory

Usage:
    from tweetcache.store import InMemoryObjectStore
    store = InMemoryObjectStore()
    await store.put("123.json", body, metadata={"userid": "123"})
    obj = await store.get("123.json")
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import quote

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when a backend cannot read or write an object."""


@dataclass
class StoredObject:
    """A single object held by the store."""

    key: str
    body: str
    uploaded: datetime
    metadata: dict[str, str] = field(default_factory=dict)


class ObjectStore(Protocol):
    """Minimal key-value blob store consumed by the read-through cache."""

    async def get(self, key: str) -> Optional[StoredObject]:
        ...

    async def put(
        self,
        key: str,
        body: str,
        metadata: Optional[dict[str, str]] = None,
    ) -> None:
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryObjectStore:
    """Async-compatible in-memory object store.

    Storage layout:
        _objects: dict[str, StoredObject]
            key -> object, overwritten whole on every put

    Nothing is ever evicted.
    """

    def __init__(self) -> None:
        self._objects: dict[str, StoredObject] = {}

    async def get(self, key: str) -> Optional[StoredObject]:
        """Return the object stored under *key*, or ``None`` if absent."""
        obj = self._objects.get(key)
        if obj is None:
            logger.debug("Store miss: key=%r", key)
        else:
            logger.debug("Store hit: key=%r uploaded=%s", key, obj.uploaded.isoformat())
        return obj

    async def put(
        self,
        key: str,
        body: str,
        metadata: Optional[dict[str, str]] = None,
    ) -> None:
        """Store *body* under *key*, stamping the current UTC time.

        Overwrites any existing object for *key*; metadata is replaced, not
        merged.
        """
        self.put_with_upload_time(key, body, _utcnow(), metadata)

    def put_with_upload_time(
        self,
        key: str,
        body: str,
        uploaded: datetime,
        metadata: Optional[dict[str, str]] = None,
    ) -> None:
        """Store an object with an explicit upload time.

        Used to seed entries of a known age.
        """
        self._objects[key] = StoredObject(
            key=key,
            body=body,
            uploaded=uploaded,
            metadata=dict(metadata or {}),
        )
        logger.debug("Store put: key=%r bytes=%d", key, len(body))

    async def delete(self, key: str) -> None:
        """Remove *key*; a no-op if it does not exist."""
        self._objects.pop(key, None)

    async def clear(self) -> None:
        """Remove all objects."""
        self._objects.clear()

    def keys(self) -> list[str]:
        """Return the stored keys in insertion order."""
        return list(self._objects)

    def size(self) -> int:
        """Return the number of stored objects."""
        return len(self._objects)


class FileSystemObjectStore:
    """Object store persisting each key as a JSON envelope file.

    File layout under *root*::

        <percent-encoded key>.obj
            {"body": "...", "uploaded": "<iso8601>", "metadata": {...}}

    Keys are percent-encoded with no safe characters besides ``-_.~`` so two
    distinct keys always map to two distinct file names.  Blocking file I/O
    runs in the default thread pool.
    """

    _SUFFIX = ".obj"

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        return self._root / (quote(key, safe="") + self._SUFFIX)

    def _read(self, key: str) -> Optional[StoredObject]:
        path = self._path_for(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StoreError(f"failed to read {key!r}: {exc}") from exc

        try:
            envelope = json.loads(raw)
            return StoredObject(
                key=key,
                body=envelope["body"],
                uploaded=datetime.fromisoformat(envelope["uploaded"]),
                metadata=dict(envelope.get("metadata") or {}),
            )
        except (ValueError, KeyError, TypeError) as exc:
            raise StoreError(f"corrupt object {key!r}: {exc}") from exc

    def _write(self, key: str, body: str, metadata: dict[str, str]) -> None:
        envelope = {
            "body": body,
            "uploaded": _utcnow().isoformat(),
            "metadata": metadata,
        }
        path = self._path_for(key)
        tmp = path.with_name(path.name + ".tmp")
        try:
            tmp.write_text(json.dumps(envelope), encoding="utf-8")
            tmp.replace(path)
        except OSError as exc:
            raise StoreError(f"failed to write {key!r}: {exc}") from exc

    async def get(self, key: str) -> Optional[StoredObject]:
        """Return the object stored under *key*, or ``None`` if absent.

        Raises:
            StoreError: The file exists but cannot be read or decoded.
        """
        obj = await asyncio.to_thread(self._read, key)
        logger.debug("Store %s: key=%r", "hit" if obj else "miss", key)
        return obj

    async def put(
        self,
        key: str,
        body: str,
        metadata: Optional[dict[str, str]] = None,
    ) -> None:
        """Atomically replace the object stored under *key*.

        Raises:
            StoreError: The envelope could not be written.
        """
        await asyncio.to_thread(self._write, key, body, dict(metadata or {}))
        logger.debug("Store put: key=%r bytes=%d", key, len(body))
