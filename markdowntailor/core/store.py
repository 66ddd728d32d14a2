"""Asynchronous key-value storage used by the resume repositories.

Records are plain JSON-compatible dicts grouped into named collections
(``resumes``, ``resumeVersions``, ``sessions``). Every backend stores the
JSON text rather than the caller's objects, so a record read back is always
a fresh copy.
"""
from __future__ import annotations

import abc
import json
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from .config import Settings
from .errors import StorageUnavailable
from .redis_client import get_redis

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class KeyValueStore(abc.ABC):
    @abc.abstractmethod
    async def get(self, collection: str, id: str) -> Optional[Record]:
        ...

    @abc.abstractmethod
    async def put(self, collection: str, id: str, record: Record) -> None:
        ...

    @abc.abstractmethod
    async def delete(self, collection: str, id: str) -> None:
        """Remove a record. Deleting a missing id is not an error."""

    @abc.abstractmethod
    async def list_all(self, collection: str) -> List[Record]:
        """Every record in the collection, in no particular order."""

    async def close(self) -> None:
        return None


def _encode(record: Record) -> str:
    return json.dumps(record, separators=(",", ":"))


@contextmanager
def _storage_errors(op: str, collection: str) -> Iterator[None]:
    try:
        yield
    except (RedisError, ValueError) as exc:
        logger.error("Storage %s on %s failed: %s", op, collection, exc)
        raise StorageUnavailable(f"Storage unavailable during {op} on {collection}: {exc}") from exc


class RedisStore(KeyValueStore):
    """One Redis hash per collection, keyed ``{namespace}:{collection}``."""

    def __init__(self, redis: Redis, namespace: str):
        self._redis = redis
        self.namespace = namespace

    def _key(self, collection: str) -> str:
        return f"{self.namespace}:{collection}"

    async def get(self, collection: str, id: str) -> Optional[Record]:
        with _storage_errors("get", collection):
            raw = await self._redis.hget(self._key(collection), id)
            return json.loads(raw) if raw is not None else None

    async def put(self, collection: str, id: str, record: Record) -> None:
        with _storage_errors("put", collection):
            await self._redis.hset(self._key(collection), id, _encode(record))

    async def delete(self, collection: str, id: str) -> None:
        with _storage_errors("delete", collection):
            await self._redis.hdel(self._key(collection), id)

    async def list_all(self, collection: str) -> List[Record]:
        with _storage_errors("list", collection):
            raw = await self._redis.hvals(self._key(collection))
            return [json.loads(item) for item in raw]


class MemoryStore(KeyValueStore):
    """Process-local store. Nothing survives a restart."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, str]] = {}

    async def get(self, collection: str, id: str) -> Optional[Record]:
        raw = self._collections.get(collection, {}).get(id)
        return json.loads(raw) if raw is not None else None

    async def put(self, collection: str, id: str, record: Record) -> None:
        self._collections.setdefault(collection, {})[id] = _encode(record)

    async def delete(self, collection: str, id: str) -> None:
        self._collections.get(collection, {}).pop(id, None)

    async def list_all(self, collection: str) -> List[Record]:
        return [json.loads(raw) for raw in self._collections.get(collection, {}).values()]

    async def close(self) -> None:
        self._collections.clear()


async def create_store(settings: Settings) -> KeyValueStore:
    backend = (settings.STORE_BACKEND or "").strip().lower()
    if backend == "redis":
        return RedisStore(await get_redis(), settings.STORE_NAMESPACE)
    if backend == "memory":
        logger.warning("Using in-memory resume store; data will not persist")
        return MemoryStore()
    raise StorageUnavailable(f"Unknown store backend: {settings.STORE_BACKEND!r}")
