"""Object store contract plus two backends.

Blobs are opaque: for documents they hold ``nonce || ciphertext``; for
folder files they hold the plaintext as uploaded.
"""
import asyncio
import logging
import os
import uuid

from pathlib import Path
from typing import Dict, Protocol

from docvault.utils.errors import NotFoundError, StoreError

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    async def put(self, data: bytes, name: str | None = None) -> str: ...

    async def get(self, blob_id: str) -> bytes: ...

    async def delete(self, blob_id: str) -> None: ...


class MemoryObjectStore:
    def __init__(self):
        self.blobs: Dict[str, bytes] = {}
        self.names: Dict[str, str] = {}

    async def put(self, data: bytes, name: str | None = None) -> str:
        blob_id = uuid.uuid4().hex
        self.blobs[blob_id] = bytes(data)
        if name:
            self.names[blob_id] = name
        return blob_id

    async def get(self, blob_id: str) -> bytes:
        try:
            return self.blobs[blob_id]
        except KeyError:
            raise NotFoundError(f"No such blob: {blob_id}", record_id=blob_id) from None

    async def delete(self, blob_id: str) -> None:
        if self.blobs.pop(blob_id, None) is None:
            raise NotFoundError(f"No such blob: {blob_id}", record_id=blob_id)
        self.names.pop(blob_id, None)


class FileObjectStore:
    """Directory of ``<uuid>.bin`` blobs.

    Layout:
      root/
        <uuid>.bin
    """

    def __init__(self, root: Path | str):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, blob_id: str) -> Path:
        if not blob_id or "/" in blob_id or "\\" in blob_id or blob_id.startswith("."):
            raise StoreError(f"Invalid blob id: {blob_id!r}", record_id=blob_id)
        return self.root / f"{blob_id}.bin"

    def _write(self, path: Path, data: bytes) -> None:
        tmp = path.with_suffix(".tmp")
        with tmp.open("wb") as f:
            f.write(data)
        os.replace(tmp, path)

    async def put(self, data: bytes, name: str | None = None) -> str:
        blob_id = str(uuid.uuid4())
        try:
            await asyncio.to_thread(self._write, self._path(blob_id), data)
        except OSError as e:
            raise StoreError(f"Failed to write blob: {e}", operation="put") from e
        logger.debug("Stored blob %s (%s, %d bytes)", blob_id, name or "unnamed", len(data))
        return blob_id

    async def get(self, blob_id: str) -> bytes:
        path = self._path(blob_id)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            raise NotFoundError(f"No such blob: {blob_id}", record_id=blob_id) from None
        except OSError as e:
            raise StoreError(f"Failed to read blob: {e}", operation="get", record_id=blob_id) from e

    async def delete(self, blob_id: str) -> None:
        path = self._path(blob_id)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            raise NotFoundError(f"No such blob: {blob_id}", record_id=blob_id) from None
        except OSError as e:
            raise StoreError(f"Failed to delete blob: {e}", operation="delete", record_id=blob_id) from e
