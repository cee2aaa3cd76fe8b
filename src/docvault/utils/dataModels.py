from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict

from docvault.utils.errors import ValidationError
from docvault.utils.helper import parse_iso, to_iso


@dataclass(frozen=True)
class DocumentRecord:
    id: str
    blob_id: str
    owner_id: str
    file_name: str
    file_size: int
    created_at: datetime
    favorite: bool = False
    trashed: bool = False
    deleted_at: datetime | None = None

    def __post_init__(self):
        if self.trashed != (self.deleted_at is not None):
            raise ValidationError(
                "Document must be trashed exactly when it carries a deletion timestamp",
                record_id=self.id,
            )
        if self.file_size < 0:
            raise ValidationError("File size cannot be negative", record_id=self.id)

    def with_changes(self, **changes: Any) -> "DocumentRecord":
        return replace(self, **changes)

    def to_fields(self) -> Dict[str, Any]:
        return {
            "userId": self.owner_id,
            "fileId": self.blob_id,
            "fileName": self.file_name,
            "fileSize": self.file_size,
            "isFavorite": self.favorite,
            "isDeleted": self.trashed,
            "deletedAt": to_iso(self.deleted_at) if self.deleted_at else None,
            "createdAt": to_iso(self.created_at),
        }

    @staticmethod
    def from_fields(d: Dict[str, Any]) -> "DocumentRecord":
        created_at = d.get("createdAt") or d["$createdAt"]
        trashed = bool(d.get("isDeleted", False))
        deleted_at = None
        if trashed:
            # older clients set isDeleted without deletedAt; fall back to the last update
            deleted_at = d.get("deletedAt") or d.get("$updatedAt") or d.get("updatedAt") or created_at
        return DocumentRecord(
            id=d["id"],
            blob_id=d["fileId"],
            owner_id=d["userId"],
            file_name=d["fileName"],
            file_size=int(d["fileSize"]),
            created_at=parse_iso(created_at),
            favorite=bool(d.get("isFavorite", False)),
            trashed=trashed,
            deleted_at=parse_iso(deleted_at) if deleted_at else None,
        )


@dataclass(frozen=True)
class FolderRecord:
    id: str
    owner_id: str
    name: str
    protected: bool = False
    password: str = ""

    def __post_init__(self):
        if not self.protected and self.password:
            # an unprotected folder never keeps a password around
            object.__setattr__(self, "password", "")

    def to_fields(self) -> Dict[str, Any]:
        return {
            "userId": self.owner_id,
            "name": self.name,
            "isProtected": self.protected,
            "password": self.password,
        }

    @staticmethod
    def from_fields(d: Dict[str, Any]) -> "FolderRecord":
        return FolderRecord(
            id=d["id"],
            owner_id=d["userId"],
            name=d["name"],
            protected=bool(d.get("isProtected", False)),
            password=d.get("password") or "",
        )


@dataclass(frozen=True)
class FolderFileRecord:
    id: str
    folder_id: str
    name: str
    blob_id: str
    size: int
    mime_type: str = "application/octet-stream"

    def to_fields(self) -> Dict[str, Any]:
        return {
            "folderId": self.folder_id,
            "name": self.name,
            "fileId": self.blob_id,
            "size": self.size,
            "mimeType": self.mime_type,
        }

    @staticmethod
    def from_fields(d: Dict[str, Any]) -> "FolderFileRecord":
        return FolderFileRecord(
            id=d["id"],
            folder_id=d["folderId"],
            name=d["name"],
            blob_id=d["fileId"],
            size=int(d.get("size", 0)),
            mime_type=d.get("mimeType") or "application/octet-stream",
        )


class GateState(Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"


@dataclass
class BatchSummary:
    """Per-item outcome of a batch lifecycle operation."""
    operation: str
    succeeded: list[str]
    failed: Dict[str, Exception]

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed
