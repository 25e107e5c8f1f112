"""Snapshot-backed in-memory repositories.

A repository owns one collection, keeps it in memory and writes the whole
collection to its key-value store after every mutation.
"""

from typing import Generic, Iterable, Optional, TypeVar

from libs.common.logging import get_logger
from libs.db.kv_store import KeyValueStore
from pydantic import BaseModel

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class SnapshotRepository(Generic[ModelT]):
    document_key: str
    model: type[ModelT]

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.read_only = False
        self._items: dict[str, ModelT] = {}

    def key_of(self, item: ModelT) -> str:
        return item.id  # type: ignore[attr-defined]

    async def load(self) -> None:
        document = await self.store.load(self.document_key) or []
        self._items = {}
        for raw in document:
            item = self.model.model_validate(raw)
            self._items[self.key_of(item)] = item
        logger.debug("Loaded %d %s records", len(self._items), self.document_key)

    async def persist(self) -> None:
        if self.read_only:
            logger.debug("Skipping write of %s to a read-only store", self.document_key)
            return
        await self.store.save(
            self.document_key,
            [item.model_dump(mode="json") for item in self._items.values()],
        )

    def get(self, key: str) -> Optional[ModelT]:
        return self._items.get(key)

    def all(self) -> list[ModelT]:
        return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: str) -> bool:
        return key in self._items

    async def put(self, item: ModelT) -> ModelT:
        self._items[self.key_of(item)] = item
        await self.persist()
        return item

    async def put_many(self, items: Iterable[ModelT]) -> None:
        for item in items:
            self._items[self.key_of(item)] = item
        await self.persist()

    async def remove(self, key: str) -> Optional[ModelT]:
        item = self._items.pop(key, None)
        if item is not None:
            await self.persist()
        return item

    async def replace_all(self, items: Iterable[ModelT]) -> None:
        self._items = {self.key_of(item): item for item in items}
        await self.persist()


def merge_changes(item: ModelT, changes: dict, **stamps) -> ModelT:
    """Return a validated copy of ``item`` with ``changes`` applied.

    Keys whose value is None are ignored, so partial update payloads can be
    passed straight through.
    """
    data = item.model_dump()
    data.update({k: v for k, v in changes.items() if v is not None})
    data.update(stamps)
    return type(item).model_validate(data)
