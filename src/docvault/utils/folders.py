"""Folders and the password gate in front of them.

The gate controls visibility only: folder files are stored as uploaded,
without the document cipher. Each ``FolderView`` is one visit to a folder
and owns its own gate, so opening the folder again starts locked.
"""
import hmac
import logging
import mimetypes

from typing import List

from docvault.storage.blobs import ObjectStore
from docvault.storage.database import DocumentDatabase, owner_acl
from docvault.utils.config import FOLDER_FILES_COLLECTION, FOLDERS_COLLECTION
from docvault.utils.core import DownloadedFile
from docvault.utils.dataModels import FolderFileRecord, FolderRecord, GateState
from docvault.utils.errors import FolderLockedError, NotFoundError, StoreError, ValidationError, VaultError

logger = logging.getLogger(__name__)

WRONG_PASSWORD = "Wrong password. Please try again."
EMPTY_PASSWORD = "Please enter password"


class FolderGate:
    def __init__(self, folder: FolderRecord):
        self.folder = folder
        self.entered = ""
        self.state = GateState.LOCKED if folder.protected else GateState.UNLOCKED

    @property
    def unlocked(self) -> bool:
        return self.state is GateState.UNLOCKED

    def unlock(self, password: str) -> None:
        """Unlock on an exact, case-sensitive match; otherwise stay locked."""
        if self.unlocked:
            return
        self.entered = ""
        if not password or not password.strip():
            raise ValidationError(EMPTY_PASSWORD, operation="unlock")
        if not hmac.compare_digest(password.encode("utf-8"), self.folder.password.encode("utf-8")):
            logger.info("Rejected unlock attempt for folder id=%s", self.folder.id)
            raise ValidationError(WRONG_PASSWORD, operation="unlock")
        self.entered = password
        self.state = GateState.UNLOCKED
        logger.info("Unlocked folder id=%s", self.folder.id)

    def lock(self) -> None:
        self.entered = ""
        if self.folder.protected:
            self.state = GateState.LOCKED
            logger.info("Locked folder id=%s", self.folder.id)


class FolderView:
    """One visit to a folder: listing, upload and file access behind the gate."""

    def __init__(
        self,
        folder: FolderRecord,
        db: DocumentDatabase,
        store: ObjectStore,
        collection: str = FOLDER_FILES_COLLECTION,
    ):
        self.folder = folder
        self.db = db
        self.store = store
        self.collection = collection
        self.gate = FolderGate(folder)

    @property
    def unlocked(self) -> bool:
        return self.gate.unlocked

    def unlock(self, password: str) -> None:
        self.gate.unlock(password)

    def lock(self) -> None:
        self.gate.lock()

    def close(self) -> None:
        self.gate.lock()

    def __enter__(self) -> "FolderView":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _require_unlocked(self, operation: str) -> None:
        if not self.gate.unlocked:
            raise FolderLockedError("Folder is locked", operation=operation, record_id=self.folder.id)

    async def list_files(self) -> List[FolderFileRecord]:
        self._require_unlocked("list_files")
        try:
            rows = await self.db.list(self.collection, {"folderId": self.folder.id})
        except VaultError as e:
            raise e.annotate("list_files", self.folder.id)
        return [FolderFileRecord.from_fields(r) for r in rows]

    async def upload_file(self, name: str, data: bytes, mime_type: str | None = None) -> FolderFileRecord:
        self._require_unlocked("upload_file")
        if not name or not name.strip():
            raise ValidationError("File name is required", operation="upload_file")
        if mime_type is None:
            mime_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
        try:
            blob_id = await self.store.put(data, name=name)
            created = await self.db.create(self.collection, {
                "folderId": self.folder.id,
                "name": name,
                "fileId": blob_id,
                "size": len(data),
                "mimeType": mime_type,
            }, owner_acl(self.folder.owner_id))
        except VaultError as e:
            logger.error("Upload of %s into folder id=%s failed: %s", name, self.folder.id, e)
            raise e.annotate("upload_file", self.folder.id)
        logger.info("Uploaded %s into folder id=%s", name, self.folder.id)
        return FolderFileRecord.from_fields(created)

    async def download_file(self, record: FolderFileRecord) -> DownloadedFile:
        self._require_unlocked("download_file")
        try:
            data = await self.store.get(record.blob_id)
        except VaultError as e:
            raise e.annotate("download_file", record.id)
        return DownloadedFile(file_name=record.name, data=data)

    async def delete_file(self, record: FolderFileRecord) -> None:
        self._require_unlocked("delete_file")
        try:
            await self.store.delete(record.blob_id)
        except NotFoundError:
            logger.info("Blob %s for folder file id=%s already absent", record.blob_id, record.id)
        try:
            await self.db.delete(self.collection, record.id)
        except VaultError as e:
            raise e.annotate("delete_file", record.id)


async def create_folder(
    db: DocumentDatabase,
    owner_id: str,
    name: str,
    protected: bool = False,
    password: str = "",
    collection: str = FOLDERS_COLLECTION,
) -> FolderRecord:
    if not name or not name.strip():
        raise ValidationError("Folder name is required", operation="create_folder")
    if protected and (not password or not password.strip()):
        raise ValidationError("Password is required for protected folders", operation="create_folder")
    fields = FolderRecord(id="", owner_id=owner_id, name=name.strip(), protected=protected,
                          password=password if protected else "").to_fields()
    try:
        created = await db.create(collection, fields, owner_acl(owner_id))
    except VaultError as e:
        raise e.annotate("create_folder")
    folder = FolderRecord.from_fields(created)
    logger.info("Created %s folder %s (id=%s)", "protected" if protected else "open", folder.name, folder.id)
    return folder


async def list_folders(db: DocumentDatabase, owner_id: str, collection: str = FOLDERS_COLLECTION) -> List[FolderRecord]:
    try:
        rows = await db.list(collection, {"userId": owner_id})
    except VaultError as e:
        raise e.annotate("list_folders")
    return [FolderRecord.from_fields(r) for r in rows]


async def get_folder(db: DocumentDatabase, owner_id: str, folder_id: str, collection: str = FOLDERS_COLLECTION) -> FolderRecord:
    match = next((f for f in await list_folders(db, owner_id, collection) if f.id == folder_id), None)
    if match is None:
        raise NotFoundError(f"No such folder: {folder_id}", operation="get_folder", record_id=folder_id)
    return match


async def delete_folder(db: DocumentDatabase, folder: FolderRecord, collection: str = FOLDERS_COLLECTION) -> None:
    # contained files are left to the store's own cascade rules
    try:
        await db.delete(collection, folder.id)
    except StoreError as e:
        raise e.annotate("delete_folder", folder.id)
    logger.info("Deleted folder %s (id=%s)", folder.name, folder.id)
