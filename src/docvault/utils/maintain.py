"""Document lifecycle: trash, restore, purge, favorites and trash retention.

States are Active and Trashed, with Favorite as an independent flag.
A trashed document becomes eligible for purge once ``retention_days``
have passed since its deletion timestamp.
"""
import logging

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Iterable, List

from docvault.storage.blobs import ObjectStore
from docvault.storage.database import DocumentDatabase
from docvault.utils.config import DOCUMENTS_COLLECTION, RETENTION_DAYS
from docvault.utils.dataModels import BatchSummary, DocumentRecord
from docvault.utils.errors import NotFoundError, StoreError, ValidationError, VaultError
from docvault.utils.helper import as_utc, to_iso, utcnow

logger = logging.getLogger(__name__)


def _resolve_now(now: datetime | None) -> datetime:
    return utcnow() if now is None else as_utc(now)


@dataclass
class VaultStats:
    total: int
    favorites: int
    trashed: int


async def _save(db: DocumentDatabase, collection: str, record: DocumentRecord, operation: str) -> DocumentRecord:
    fields = record.to_fields()
    try:
        updated = await db.update(collection, record.id, {
            "isFavorite": fields["isFavorite"],
            "isDeleted": fields["isDeleted"],
            "deletedAt": fields["deletedAt"],
        })
    except VaultError as e:
        logger.error("%s failed for id=%s: %s", operation, record.id, e)
        raise e.annotate(operation, record.id)
    return DocumentRecord.from_fields(updated)


async def trash(
    db: DocumentDatabase,
    record: DocumentRecord,
    now: datetime | None = None,
    collection: str = DOCUMENTS_COLLECTION,
) -> DocumentRecord:
    if record.trashed:
        raise ValidationError("Document is already in trash", operation="trash", record_id=record.id)
    moved = record.with_changes(trashed=True, deleted_at=_resolve_now(now))
    saved = await _save(db, collection, moved, "trash")
    logger.info("Moved %s (id=%s) to trash", record.file_name, record.id)
    return saved


async def restore(db: DocumentDatabase, record: DocumentRecord, collection: str = DOCUMENTS_COLLECTION) -> DocumentRecord:
    if not record.trashed:
        raise ValidationError("Document is not in trash", operation="restore", record_id=record.id)
    saved = await _save(db, collection, record.with_changes(trashed=False, deleted_at=None), "restore")
    logger.info("Restored %s (id=%s)", record.file_name, record.id)
    return saved


async def toggle_favorite(db: DocumentDatabase, record: DocumentRecord, collection: str = DOCUMENTS_COLLECTION) -> DocumentRecord:
    return await _save(db, collection, record.with_changes(favorite=not record.favorite), "favorite")


async def purge(
    db: DocumentDatabase,
    store: ObjectStore,
    record: DocumentRecord,
    collection: str = DOCUMENTS_COLLECTION,
) -> None:
    """Delete blob then record. A failed blob delete never blocks the record delete."""
    if not record.trashed:
        raise ValidationError("Only trashed documents can be purged", operation="purge", record_id=record.id)
    try:
        await store.delete(record.blob_id)
    except NotFoundError:
        logger.info("Blob %s for id=%s already absent", record.blob_id, record.id)
    except StoreError as e:
        logger.error("Blob delete failed for id=%s, deleting record anyway: %s", record.id, e)

    try:
        await db.delete(collection, record.id)
    except VaultError as e:
        logger.error("Purge failed for id=%s: %s", record.id, e)
        raise e.annotate("purge", record.id)
    logger.info("Permanently deleted %s (id=%s)", record.file_name, record.id)


async def _run_batch(
    operation: str,
    records: Iterable[DocumentRecord],
    action: Callable[[DocumentRecord], Awaitable[object]],
) -> BatchSummary:
    summary = BatchSummary(operation=operation, succeeded=[], failed={})
    for record in records:
        try:
            await action(record)
        except Exception as e:
            # one bad item must not block the rest of the batch
            logger.warning("%s: id=%s failed: %s", operation, record.id, e)
            summary.failed[record.id] = e
        else:
            summary.succeeded.append(record.id)
    if summary.failed:
        logger.warning("%s: %d succeeded, %d failed", operation, summary.success_count, summary.failure_count)
    return summary


async def trash_many(db, records, now=None, collection=DOCUMENTS_COLLECTION) -> BatchSummary:
    return await _run_batch("trash", records, lambda r: trash(db, r, now, collection))


async def restore_many(db, records, collection=DOCUMENTS_COLLECTION) -> BatchSummary:
    return await _run_batch("restore", records, lambda r: restore(db, r, collection))


async def purge_many(db, store, records, collection=DOCUMENTS_COLLECTION) -> BatchSummary:
    return await _run_batch("purge", records, lambda r: purge(db, store, r, collection))


async def empty_trash(db, store, owner_id: str, collection=DOCUMENTS_COLLECTION) -> BatchSummary:
    return await purge_many(db, store, await list_trash(db, owner_id, collection), collection)


def days_elapsed(deleted_at: datetime, now: datetime | None = None) -> int:
    return max(0, (_resolve_now(now) - as_utc(deleted_at)).days)


def days_remaining(record: DocumentRecord, now: datetime | None = None, retention_days: int = RETENTION_DAYS) -> int:
    if not record.trashed:
        return retention_days
    return max(0, retention_days - days_elapsed(record.deleted_at, now))


def is_expired(record: DocumentRecord, now: datetime | None = None, retention_days: int = RETENTION_DAYS) -> bool:
    if not record.trashed:
        return False
    return _resolve_now(now) - as_utc(record.deleted_at) >= timedelta(days=retention_days)


def expires_at(record: DocumentRecord, retention_days: int = RETENTION_DAYS) -> datetime | None:
    return record.deleted_at + timedelta(days=retention_days) if record.trashed else None


async def sweep_expired(
    db: DocumentDatabase,
    store: ObjectStore,
    owner_id: str,
    now: datetime | None = None,
    retention_days: int = RETENTION_DAYS,
    collection: str = DOCUMENTS_COLLECTION,
) -> BatchSummary:
    """Purge every trashed document whose retention window has run out."""
    now = _resolve_now(now)
    expired = [r for r in await list_trash(db, owner_id, collection) if is_expired(r, now, retention_days)]
    if expired:
        logger.info("Sweeping %d expired document(s) for user %s (cutoff %s)", len(expired), owner_id,
                    to_iso(now - timedelta(days=retention_days)))
    return await purge_many(db, store, expired, collection)


async def list_documents(
    db: DocumentDatabase,
    owner_id: str,
    trashed: bool,
    collection: str = DOCUMENTS_COLLECTION,
) -> List[DocumentRecord]:
    try:
        rows = await db.list(collection, {"userId": owner_id, "isDeleted": trashed})
    except VaultError as e:
        raise e.annotate("list")
    records = []
    for row in rows:
        try:
            records.append(DocumentRecord.from_fields(row))
        except (KeyError, ValueError, ValidationError) as e:
            logger.warning("Skipping unreadable record id=%s in %s: %s", row.get("id"), collection, e)
    return sorted(records, key=lambda r: r.created_at, reverse=True)


async def list_active(db, owner_id: str, collection=DOCUMENTS_COLLECTION) -> List[DocumentRecord]:
    return await list_documents(db, owner_id, False, collection)


async def list_trash(db, owner_id: str, collection=DOCUMENTS_COLLECTION) -> List[DocumentRecord]:
    return await list_documents(db, owner_id, True, collection)


async def list_favorites(db, owner_id: str, collection=DOCUMENTS_COLLECTION) -> List[DocumentRecord]:
    return [r for r in await list_active(db, owner_id, collection) if r.favorite]


def search_documents(records: Iterable[DocumentRecord], query: str) -> List[DocumentRecord]:
    needle = query.strip().lower()
    if not needle:
        return list(records)
    return [r for r in records if needle in r.file_name.lower()]


async def vault_stats(db, owner_id: str, collection=DOCUMENTS_COLLECTION) -> VaultStats:
    active = await list_active(db, owner_id, collection)
    trashed = await list_trash(db, owner_id, collection)
    return VaultStats(total=len(active), favorites=sum(1 for r in active if r.favorite), trashed=len(trashed))
