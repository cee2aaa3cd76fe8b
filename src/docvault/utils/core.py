import asyncio
import logging
import os

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Tuple

from docvault.crypto.engine import CipherEngine
from docvault.storage.blobs import ObjectStore
from docvault.storage.database import DocumentDatabase, owner_acl
from docvault.utils.config import DOCUMENTS_COLLECTION, VIEW_TTL_SECONDS
from docvault.utils.dataModels import DocumentRecord
from docvault.utils.errors import StoreError, ValidationError, VaultError
from docvault.utils.helper import mime_type_for, to_iso, utcnow

logger = logging.getLogger(__name__)

ENCRYPTED_SUFFIX = ".enc"


@dataclass
class UploadReport:
    """Outcome of a sequential multi-file upload.

    Files before the first failure stay persisted; files after it are
    never started and are listed in ``skipped``.
    """
    uploaded: List[DocumentRecord] = field(default_factory=list)
    failed: Tuple[str, Exception] | None = None
    skipped: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed is None


@dataclass
class DownloadedFile:
    file_name: str
    data: bytes

    def save(self, directory: Path | str) -> Path:
        """Write the plaintext under its original name inside ``directory``."""
        out = Path(directory) / Path(self.file_name).name
        tmp = out.with_name(out.name + ".tmp")
        with tmp.open("wb") as f:
            f.write(self.data)
        os.replace(tmp, out)
        return out


class TemporaryView:
    """Decrypted content handed out for transient display.

    The plaintext is dropped after ``ttl`` seconds whether or not the
    consumer calls ``release()``.
    """

    def __init__(self, file_name: str, mime_type: str, data: bytes, ttl: float = VIEW_TTL_SECONDS):
        self.file_name = file_name
        self.mime_type = mime_type
        self._data: bytes | None = data
        self._expiry = asyncio.get_running_loop().call_later(ttl, self.release)

    @property
    def released(self) -> bool:
        return self._data is None

    @property
    def data(self) -> bytes:
        if self._data is None:
            raise ValidationError("Temporary view has expired", operation="view")
        return self._data

    def release(self) -> None:
        if self._data is not None:
            logger.debug("Released temporary view of %s", self.file_name)
        self._data = None
        self._expiry.cancel()

    async def __aenter__(self) -> "TemporaryView":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.release()


async def upload_document(
    engine: CipherEngine,
    store: ObjectStore,
    db: DocumentDatabase,
    owner_id: str,
    file_name: str,
    data: bytes,
    collection: str = DOCUMENTS_COLLECTION,
) -> DocumentRecord:
    """Encrypt ``data`` and persist it, blob first, then the metadata record."""
    if not file_name or not file_name.strip():
        raise ValidationError("File name is required", operation="upload")
    if not owner_id:
        raise ValidationError("Owner id is required", operation="upload")

    try:
        envelope = await engine.encrypt(data)
        blob_id = await store.put(envelope, name=file_name + ENCRYPTED_SUFFIX)

        # Record is written only once the blob exists
        fields = {
            "userId": owner_id,
            "fileId": blob_id,
            "fileName": file_name,
            "fileSize": len(data),
            "isFavorite": False,
            "isDeleted": False,
            "deletedAt": None,
            "createdAt": to_iso(utcnow()),
        }
        created = await db.create(collection, fields, owner_acl(owner_id))
    except VaultError as e:
        logger.error("Upload of %s failed: %s", file_name, e)
        raise e.annotate("upload")
    except Exception as e:
        logger.error("Upload of %s failed in the storage backend: %s", file_name, e)
        raise StoreError(f"Storage backend failed: {e}", operation="upload") from e

    record = DocumentRecord.from_fields(created)
    logger.info("Encrypted and uploaded %s as id=%s (%d bytes)", file_name, record.id, record.file_size)
    return record


async def upload_path(
    engine: CipherEngine,
    store: ObjectStore,
    db: DocumentDatabase,
    owner_id: str,
    path: Path | str,
    collection: str = DOCUMENTS_COLLECTION,
) -> DocumentRecord:
    src = Path(path)
    if not src.is_file():
        raise ValidationError(f"Not a file: {src}", operation="upload")
    plaintext = await asyncio.to_thread(src.read_bytes)
    return await upload_document(engine, store, db, owner_id, src.name, plaintext, collection)


async def upload_many(
    engine: CipherEngine,
    store: ObjectStore,
    db: DocumentDatabase,
    owner_id: str,
    files: Iterable[Tuple[str, bytes]],
    collection: str = DOCUMENTS_COLLECTION,
) -> UploadReport:
    """Upload files one at a time; stop at the first failure."""
    report = UploadReport()
    pending = list(files)
    for index, (name, data) in enumerate(pending):
        try:
            record = await upload_document(engine, store, db, owner_id, name, data, collection)
        except VaultError as e:
            report.failed = (name, e)
            report.skipped = [n for n, _ in pending[index + 1:]]
            logger.warning("Upload batch stopped at %s; %d file(s) not started", name, len(report.skipped))
            break
        report.uploaded.append(record)
    return report


async def retrieve_document(engine: CipherEngine, store: ObjectStore, record: DocumentRecord) -> bytes:
    """Fetch and decrypt a document; cipher and store errors keep their type."""
    try:
        envelope = await store.get(record.blob_id)
        return await engine.decrypt(envelope)
    except VaultError as e:
        logger.error("Failed to open %s (id=%s): %s", record.file_name, record.id, e)
        raise e.annotate("retrieve", record.id)
    except Exception as e:
        logger.error("Storage backend failed for %s (id=%s): %s", record.file_name, record.id, e)
        raise StoreError(f"Storage backend failed: {e}", operation="retrieve", record_id=record.id) from e


async def view_document(
    engine: CipherEngine,
    store: ObjectStore,
    record: DocumentRecord,
    ttl: float = VIEW_TTL_SECONDS,
) -> TemporaryView:
    plaintext = await retrieve_document(engine, store, record)
    return TemporaryView(record.file_name, mime_type_for(record.file_name), plaintext, ttl)


async def download_document(engine: CipherEngine, store: ObjectStore, record: DocumentRecord) -> DownloadedFile:
    plaintext = await retrieve_document(engine, store, record)
    return DownloadedFile(file_name=record.file_name, data=plaintext)
