"""Store doubles shared by the test modules."""
import asyncio

from markdowntailor.core.errors import StorageUnavailable
from markdowntailor.core.store import MemoryStore


class CountingStore(MemoryStore):
    def __init__(self):
        super().__init__()
        self.writes = 0

    async def put(self, collection, id, record):
        self.writes += 1
        await super().put(collection, id, record)

    async def delete(self, collection, id):
        self.writes += 1
        await super().delete(collection, id)


class FailingStore(MemoryStore):
    """Raises StorageUnavailable on writes to the named collections once armed."""

    def __init__(self, *collections):
        super().__init__()
        self.collections = set(collections)
        self.armed = False

    async def put(self, collection, id, record):
        if self.armed and collection in self.collections:
            raise StorageUnavailable("quota exceeded")
        await super().put(collection, id, record)

    async def delete(self, collection, id):
        if self.armed and collection in self.collections:
            raise StorageUnavailable("permission denied")
        await super().delete(collection, id)


class GatedStore(MemoryStore):
    """Blocks writes to one collection until ``release()`` is called."""

    def __init__(self, collection):
        super().__init__()
        self.collection = collection
        self.closed_gate = False
        self.waiting = asyncio.Event()
        self._gate = asyncio.Event()

    def hold(self):
        self.closed_gate = True
        self._gate.clear()

    def release(self):
        self._gate.set()

    async def put(self, collection, id, record):
        if self.closed_gate and collection == self.collection:
            self.waiting.set()
            await self._gate.wait()
        await super().put(collection, id, record)
