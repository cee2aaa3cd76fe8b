"""
Tests for folders and the folder gate (docvault.utils.folders)

Coverage targets:
- Folder creation validation
- Gate transitions: locked -> unlocked, wrong password, manual lock
- Gate session scoped to one folder visit
- Folder file operations require an unlocked gate
"""

import pytest

from docvault.utils import folders
from docvault.utils.dataModels import FolderRecord, GateState
from docvault.utils.errors import FolderLockedError, ValidationError
from docvault.utils.folders import EMPTY_PASSWORD, WRONG_PASSWORD, FolderGate, FolderView

from conftest import TEST_USER


@pytest.fixture
def protected():
    return FolderRecord(id="f1", owner_id=TEST_USER, name="Taxes", protected=True, password="S3cret")


class TestFolderRecord:
    def test_unprotected_folder_drops_password(self):
        folder = FolderRecord(id="f", owner_id="u", name="Open", protected=False, password="ignored")
        assert folder.password == ""


class TestCreateFolder:
    @pytest.mark.asyncio
    async def test_create_protected(self, db):
        folder = await folders.create_folder(db, TEST_USER, "Taxes", protected=True, password="S3cret")
        assert folder.protected and folder.password == "S3cret"
        assert [f.id for f in await folders.list_folders(db, TEST_USER)] == [folder.id]

    @pytest.mark.asyncio
    async def test_create_open_stores_no_password(self, db):
        folder = await folders.create_folder(db, TEST_USER, "Open", password="whatever")
        rows = await db.list("folders")
        assert rows[0]["password"] == ""
        assert not folder.protected

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name,protected,password", [
        ("", False, ""),
        ("   ", False, ""),
        ("Taxes", True, ""),
        ("Taxes", True, "   "),
    ])
    async def test_invalid_input(self, db, name, protected, password):
        with pytest.raises(ValidationError):
            await folders.create_folder(db, TEST_USER, name, protected, password)
        assert await db.list("folders") == []

    @pytest.mark.asyncio
    async def test_delete_folder(self, db):
        folder = await folders.create_folder(db, TEST_USER, "Tmp")
        await folders.delete_folder(db, folder)
        assert await folders.list_folders(db, TEST_USER) == []


class TestFolderGate:
    def test_protected_starts_locked(self, protected):
        assert FolderGate(protected).state is GateState.LOCKED

    def test_open_folder_starts_unlocked(self):
        gate = FolderGate(FolderRecord(id="f", owner_id="u", name="Open"))
        assert gate.state is GateState.UNLOCKED

    def test_correct_password_unlocks(self, protected):
        gate = FolderGate(protected)
        gate.unlock("S3cret")
        assert gate.unlocked

    @pytest.mark.parametrize("attempt", ["s3cret", "S3cret ", "wrong"])
    def test_wrong_password_stays_locked(self, protected, attempt):
        gate = FolderGate(protected)
        with pytest.raises(ValidationError) as exc_info:
            gate.unlock(attempt)
        assert exc_info.value.message == WRONG_PASSWORD
        assert gate.state is GateState.LOCKED
        assert gate.entered == ""

    def test_blank_password(self, protected):
        gate = FolderGate(protected)
        with pytest.raises(ValidationError, match=EMPTY_PASSWORD):
            gate.unlock("")
        assert not gate.unlocked

    def test_lock_clears_entered_password(self, protected):
        gate = FolderGate(protected)
        gate.unlock("S3cret")
        assert gate.entered == "S3cret"
        gate.lock()
        assert gate.state is GateState.LOCKED
        assert gate.entered == ""
        with pytest.raises(ValidationError):
            gate.unlock("nope")
        gate.unlock("S3cret")
        assert gate.unlocked


class TestFolderView:
    @pytest.mark.asyncio
    async def test_locked_view_hides_files(self, db, store, protected):
        view = FolderView(protected, db, store)
        with pytest.raises(FolderLockedError):
            await view.list_files()
        with pytest.raises(FolderLockedError):
            await view.upload_file("a.txt", b"a")

    @pytest.mark.asyncio
    async def test_upload_and_list_after_unlock(self, db, store, protected):
        view = FolderView(protected, db, store)
        view.unlock("S3cret")
        record = await view.upload_file("scan.pdf", b"%PDF")

        assert record.mime_type == "application/pdf"
        assert record.size == 4
        # folder files are stored as uploaded
        assert store.blobs[record.blob_id] == b"%PDF"
        assert [f.id for f in await view.list_files()] == [record.id]
        assert (await view.download_file(record)).data == b"%PDF"

    @pytest.mark.asyncio
    async def test_wrong_password_mutates_nothing(self, db, store, protected):
        view = FolderView(protected, db, store)
        before = dict(db.collections)
        with pytest.raises(ValidationError):
            view.unlock("bad")
        assert db.collections == before
        assert store.blobs == {}

    @pytest.mark.asyncio
    async def test_new_visit_starts_locked(self, db, store, protected):
        with FolderView(protected, db, store) as first:
            first.unlock("S3cret")
            await first.upload_file("a.txt", b"a")
        assert not first.unlocked

        second = FolderView(protected, db, store)
        assert not second.unlocked
        with pytest.raises(FolderLockedError):
            await second.list_files()

    @pytest.mark.asyncio
    async def test_delete_file(self, db, store, protected):
        view = FolderView(protected, db, store)
        view.unlock("S3cret")
        record = await view.upload_file("a.txt", b"a")
        await view.delete_file(record)
        assert await view.list_files() == []
        assert store.blobs == {}
