"""
Runtime configuration for docvault.

All settings can be overridden via environment variables with the
DOCVAULT_ prefix, e.g. ``DOCVAULT_RETENTION_DAYS=14``.

Defaults reproduce the parameters existing vaults were encrypted with;
changing the secret, salt, iteration count or KDF makes previously stored
blobs undecryptable.
"""

import logging
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LEGACY_SECRET = "my-super-secret-key-123"
LEGACY_SALT = b"appwrite-docs"
DEFAULT_PBKDF2_ITERATIONS = 100_000

DEFAULT_T_COST = 4
DEFAULT_M_COST_KiB = 262144  # 256 MiB (tune per device)
DEFAULT_PARALLELISM = 2

RETENTION_DAYS = 30
VIEW_TTL_SECONDS = 10.0

DOCUMENTS_COLLECTION = "documents"
FOLDERS_COLLECTION = "folders"
FOLDER_FILES_COLLECTION = "folder_files"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class VaultConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DOCVAULT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Key derivation
    secret: str = Field(default=LEGACY_SECRET, repr=False, description="Shared passphrase the document key is derived from")
    salt: bytes = Field(default=LEGACY_SALT, description="KDF salt")
    kdf: Literal["pbkdf2", "argon2id"] = Field(default="pbkdf2", description="Key derivation function")
    iterations: int = Field(default=DEFAULT_PBKDF2_ITERATIONS, ge=1, description="PBKDF2 iteration count")
    t_cost: int = Field(default=DEFAULT_T_COST, ge=1, description="Argon2 time cost")
    m_cost_kib: int = Field(default=DEFAULT_M_COST_KiB, ge=8, description="Argon2 memory (KiB)")
    parallelism: int = Field(default=DEFAULT_PARALLELISM, ge=1, description="Argon2 parallelism")

    # Lifecycle
    retention_days: int = Field(default=RETENTION_DAYS, ge=1, description="Days a trashed document is kept")
    view_ttl_seconds: float = Field(default=VIEW_TTL_SECONDS, gt=0, description="Lifetime of decrypted view handles")

    # Collections
    documents_collection: str = DOCUMENTS_COLLECTION
    folders_collection: str = FOLDERS_COLLECTION
    folder_files_collection: str = FOLDER_FILES_COLLECTION

    # Logging
    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
    log_format: str = LOG_FORMAT

    @field_validator("log_level", mode="after")
    @classmethod
    def normalise_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level {v!r}")
        return level


def configure_logging(config: VaultConfig) -> None:
    logging.basicConfig(level=getattr(logging, config.log_level), format=config.log_format)
