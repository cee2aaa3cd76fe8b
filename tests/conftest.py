"""
Shared pytest fixtures for docvault tests.

Provides:
- A cipher engine with a cheap, deterministic test key
- In-memory object store and document database
- A DocumentVault wired to them for user "user_123"
"""

import pytest

from docvault.crypto.engine import CipherEngine
from docvault.crypto.hash import derive_key
from docvault.storage.blobs import MemoryObjectStore
from docvault.storage.database import MemoryDocumentDatabase
from docvault.utils.config import VaultConfig
from docvault.utils.identity import StaticIdentity
from docvault.vault import DocumentVault

TEST_USER = "user_123"


@pytest.fixture(scope="session")
def test_key() -> bytes:
    return derive_key("test-secret", b"test-salt", 1000)


@pytest.fixture
def engine(test_key):
    return CipherEngine(test_key)


@pytest.fixture
def store():
    return MemoryObjectStore()


@pytest.fixture
def db():
    return MemoryDocumentDatabase()


@pytest.fixture
def config():
    return VaultConfig(iterations=1000, view_ttl_seconds=0.05)


@pytest.fixture
def vault(engine, store, db, config):
    return DocumentVault(engine, store, db, StaticIdentity(TEST_USER), config)
