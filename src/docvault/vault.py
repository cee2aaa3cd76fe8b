"""
docvault: personal document vault with client-side encryption.

Every document is encrypted before it reaches the object store and
decrypted only when viewed or downloaded. Metadata lives in a document
database; both backends are supplied by the caller.

Blob layout (documents):
    nonce      : 12 bytes
    ciphertext : remaining bytes (AES-256-GCM, 16-byte tag at the end)

Document lifecycle:
    active --trash--> trashed --restore--> active
    trashed --purge / retention expiry--> gone (blob, then record)
    favorite is an independent flag

Folders group plain (unencrypted) files and may be gated behind a
password that is checked per visit.

Security choices:
  - AEAD: AES-256-GCM via cryptography.hazmat
  - KDF: PBKDF2-HMAC-SHA256 (100k iterations) over one shared secret, or
    Argon2id over SHA3-512(secret) via argon2-cffi when configured

Note: the shared secret means every user's documents are under one key.
"""
from __future__ import annotations

import logging

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Tuple

from docvault.crypto.engine import CipherEngine
from docvault.storage.blobs import ObjectStore
from docvault.storage.database import DocumentDatabase
from docvault.utils import core, folders, maintain
from docvault.utils.config import VaultConfig
from docvault.utils.core import DownloadedFile, TemporaryView, UploadReport
from docvault.utils.dataModels import BatchSummary, DocumentRecord, FolderRecord
from docvault.utils.errors import CipherError, NotFoundError, ValidationError, VaultError
from docvault.utils.folders import WRONG_PASSWORD, FolderView
from docvault.utils.identity import IdentityProvider

logger = logging.getLogger(__name__)


@dataclass
class OperationResult:
    """Outcome of a user action, carrying the message to show for it."""
    ok: bool
    operation: str
    message: str
    value: Any = None
    error: Exception | None = None


def _plural(n: int, noun: str = "item") -> str:
    return f"{n} {noun}{'s' if n != 1 else ''}"


class DocumentVault:
    def __init__(
        self,
        engine: CipherEngine,
        store: ObjectStore,
        db: DocumentDatabase,
        identity: IdentityProvider,
        config: VaultConfig | None = None,
    ):
        self.engine = engine
        self.store = store
        self.db = db
        self.identity = identity
        self.config = config or VaultConfig()

    @classmethod
    async def open(
        cls,
        store: ObjectStore,
        db: DocumentDatabase,
        identity: IdentityProvider,
        config: VaultConfig | None = None,
    ) -> "DocumentVault":
        config = config or VaultConfig()
        engine = await CipherEngine.from_config(config)
        return cls(engine, store, db, identity, config)

    @property
    def user_id(self) -> str:
        return self.identity.current_user_id()

    # ---------- documents ----------

    async def upload_document(self, file_name: str, data: bytes) -> DocumentRecord:
        return await core.upload_document(
            self.engine, self.store, self.db, self.user_id, file_name, data, self.config.documents_collection
        )

    async def upload_many(self, files: Iterable[Tuple[str, bytes]]) -> UploadReport:
        return await core.upload_many(
            self.engine, self.store, self.db, self.user_id, files, self.config.documents_collection
        )

    async def retrieve_document(self, record: DocumentRecord) -> bytes:
        return await core.retrieve_document(self.engine, self.store, record)

    async def view_document(self, record: DocumentRecord) -> TemporaryView:
        return await core.view_document(self.engine, self.store, record, self.config.view_ttl_seconds)

    async def download_document(self, record: DocumentRecord) -> DownloadedFile:
        return await core.download_document(self.engine, self.store, record)

    async def trash(self, record: DocumentRecord, now: datetime | None = None) -> DocumentRecord:
        return await maintain.trash(self.db, record, now, self.config.documents_collection)

    async def restore(self, record: DocumentRecord) -> DocumentRecord:
        return await maintain.restore(self.db, record, self.config.documents_collection)

    async def purge(self, record: DocumentRecord) -> None:
        await maintain.purge(self.db, self.store, record, self.config.documents_collection)

    async def toggle_favorite(self, record: DocumentRecord) -> DocumentRecord:
        return await maintain.toggle_favorite(self.db, record, self.config.documents_collection)

    async def trash_many(self, records: Iterable[DocumentRecord], now: datetime | None = None) -> BatchSummary:
        return await maintain.trash_many(self.db, records, now, self.config.documents_collection)

    async def restore_many(self, records: Iterable[DocumentRecord]) -> BatchSummary:
        return await maintain.restore_many(self.db, records, self.config.documents_collection)

    async def purge_many(self, records: Iterable[DocumentRecord]) -> BatchSummary:
        return await maintain.purge_many(self.db, self.store, records, self.config.documents_collection)

    async def empty_trash(self) -> BatchSummary:
        return await maintain.empty_trash(self.db, self.store, self.user_id, self.config.documents_collection)

    async def sweep_expired(self, now: datetime | None = None) -> BatchSummary:
        return await maintain.sweep_expired(
            self.db, self.store, self.user_id, now, self.config.retention_days, self.config.documents_collection
        )

    async def active_documents(self, query: str = "") -> List[DocumentRecord]:
        records = await maintain.list_active(self.db, self.user_id, self.config.documents_collection)
        return maintain.search_documents(records, query)

    async def trashed_documents(self) -> List[DocumentRecord]:
        return await maintain.list_trash(self.db, self.user_id, self.config.documents_collection)

    async def favorite_documents(self) -> List[DocumentRecord]:
        return await maintain.list_favorites(self.db, self.user_id, self.config.documents_collection)

    async def stats(self) -> maintain.VaultStats:
        return await maintain.vault_stats(self.db, self.user_id, self.config.documents_collection)

    def days_remaining(self, record: DocumentRecord, now: datetime | None = None) -> int:
        return maintain.days_remaining(record, now, self.config.retention_days)

    # ---------- folders ----------

    async def create_folder(self, name: str, protected: bool = False, password: str = "") -> FolderRecord:
        return await folders.create_folder(
            self.db, self.user_id, name, protected, password, self.config.folders_collection
        )

    async def list_folders(self) -> List[FolderRecord]:
        return await folders.list_folders(self.db, self.user_id, self.config.folders_collection)

    async def delete_folder(self, folder: FolderRecord) -> None:
        await folders.delete_folder(self.db, folder, self.config.folders_collection)

    async def open_folder(self, folder_id: str) -> FolderView:
        """Start a new visit to a folder; its gate starts from the folder's initial state."""
        folder = await folders.get_folder(self.db, self.user_id, folder_id, self.config.folders_collection)
        return FolderView(folder, self.db, self.store, self.config.folder_files_collection)

    async def unlock_folder(self, folder_id: str, password: str) -> FolderView:
        """Open and unlock a folder. A missing folder reports the same error as a wrong password."""
        try:
            view = await self.open_folder(folder_id)
        except NotFoundError:
            logger.info("Unlock requested for unknown folder id=%s", folder_id)
            raise ValidationError(WRONG_PASSWORD, operation="unlock") from None
        view.unlock(password)
        return view

    def lock_folder(self, view: FolderView) -> None:
        view.lock()

    # ---------- user actions ----------

    async def upload(self, files: Iterable[Tuple[str, bytes]]) -> OperationResult:
        report = await self.upload_many(files)
        if report.ok:
            return OperationResult(True, "upload", "Files uploaded successfully", value=report)
        return OperationResult(False, "upload", "Failed to upload files", value=report, error=report.failed[1])

    async def view(self, record: DocumentRecord) -> OperationResult:
        try:
            handle = await self.view_document(record)
        except CipherError as e:
            return OperationResult(False, "view", "Failed to decrypt file", error=e)
        except VaultError as e:
            return OperationResult(False, "view", "Failed to view file", error=e)
        return OperationResult(True, "view", "File opened successfully", value=handle)

    async def download(self, record: DocumentRecord) -> OperationResult:
        try:
            downloaded = await self.download_document(record)
        except CipherError as e:
            return OperationResult(False, "download", "Failed to decrypt file", error=e)
        except VaultError as e:
            return OperationResult(False, "download", "Failed to download file", error=e)
        return OperationResult(True, "download", "File downloaded successfully", value=downloaded)

    async def move_to_trash(self, record: DocumentRecord) -> OperationResult:
        try:
            moved = await self.trash(record)
        except VaultError as e:
            return OperationResult(False, "trash", "Failed to move to trash", error=e)
        return OperationResult(True, "trash", "Document moved to trash", value=moved)

    async def restore_selected(self, records: Iterable[DocumentRecord]) -> OperationResult:
        summary = await self.restore_many(records)
        return self._batch_result(summary, "restored successfully", "Failed to restore")

    async def delete_forever(self, records: Iterable[DocumentRecord]) -> OperationResult:
        summary = await self.purge_many(records)
        return self._batch_result(summary, "permanently deleted", "Failed to delete")

    async def empty_trash_action(self) -> OperationResult:
        summary = await self.empty_trash()
        return self._batch_result(summary, "permanently deleted", "Failed to delete")

    @staticmethod
    def _batch_result(summary: BatchSummary, done: str, failed: str) -> OperationResult:
        if summary.ok:
            return OperationResult(True, summary.operation, f"{_plural(summary.success_count)} {done}", value=summary)
        message = f"{failed} {_plural(summary.failure_count)}"
        if summary.success_count:
            message += f"; {_plural(summary.success_count)} {done}"
        return OperationResult(False, summary.operation, message, value=summary)
