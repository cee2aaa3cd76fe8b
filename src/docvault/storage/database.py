"""Document database contract and an in-memory backend.

Records are plain field dicts carrying an ``id`` key; typed views over them
live in ``docvault.utils.dataModels``.
"""
import copy
import uuid

from typing import Any, Dict, List, Protocol

from docvault.utils.errors import NotFoundError

Record = Dict[str, Any]


def owner_acl(owner_id: str) -> List[str]:
    """Read/update/delete rights for the owning user only."""
    return [f"{perm}:user:{owner_id}" for perm in ("read", "update", "delete")]


class DocumentDatabase(Protocol):
    async def create(self, collection: str, fields: Record, acl: List[str]) -> Record: ...

    async def list(self, collection: str, filters: Dict[str, Any] | None = None) -> List[Record]: ...

    async def update(self, collection: str, record_id: str, fields: Record) -> Record: ...

    async def delete(self, collection: str, record_id: str) -> None: ...


class MemoryDocumentDatabase:
    def __init__(self):
        self.collections: Dict[str, Dict[str, Record]] = {}
        self.acls: Dict[str, List[str]] = {}

    def _collection(self, name: str) -> Dict[str, Record]:
        return self.collections.setdefault(name, {})

    async def create(self, collection: str, fields: Record, acl: List[str]) -> Record:
        record_id = uuid.uuid4().hex
        record = {**copy.deepcopy(fields), "id": record_id}
        self._collection(collection)[record_id] = record
        self.acls[record_id] = list(acl)
        return copy.deepcopy(record)

    async def list(self, collection: str, filters: Dict[str, Any] | None = None) -> List[Record]:
        filters = filters or {}
        return [
            copy.deepcopy(r)
            for r in self._collection(collection).values()
            if all(r.get(k) == v for k, v in filters.items())
        ]

    async def update(self, collection: str, record_id: str, fields: Record) -> Record:
        records = self._collection(collection)
        if record_id not in records:
            raise NotFoundError(f"No such record in {collection}: {record_id}", record_id=record_id)
        records[record_id].update(copy.deepcopy(fields))
        return copy.deepcopy(records[record_id])

    async def delete(self, collection: str, record_id: str) -> None:
        if self._collection(collection).pop(record_id, None) is None:
            raise NotFoundError(f"No such record in {collection}: {record_id}", record_id=record_id)
        self.acls.pop(record_id, None)
