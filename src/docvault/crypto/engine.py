"""Async cipher engine.

Key derivation and AES-GCM run in worker threads so a large file or a slow
KDF suspends only the awaiting task, never the event loop.
"""
import asyncio
import logging

from docvault.crypto.aead import seal, open_envelope
from docvault.crypto.hash import derive_key, derive_kmaster
from docvault.utils.config import VaultConfig
from docvault.utils.errors import CipherError

logger = logging.getLogger(__name__)


class CipherEngine:
    def __init__(self, key: bytes):
        if len(key) != 32:
            raise ValueError("CipherEngine requires a 32-byte AES-256 key")
        self._key = key

    @classmethod
    async def from_secret(cls, secret: str, salt: bytes, iterations: int) -> "CipherEngine":
        key = await asyncio.to_thread(derive_key, secret, salt, iterations)
        return cls(key)

    @classmethod
    async def from_config(cls, config: VaultConfig, secret: str | None = None) -> "CipherEngine":
        """Derive the key the config asks for; ``secret`` overrides the configured one."""
        secret = config.secret if secret is None else secret
        if config.kdf == "argon2id":
            key = await asyncio.to_thread(
                derive_kmaster, secret, config.salt, config.t_cost, config.m_cost_kib, config.parallelism
            )
            logger.debug("Derived Argon2id key (t=%d, m=%d KiB)", config.t_cost, config.m_cost_kib)
            return cls(key)
        logger.debug("Deriving PBKDF2 key (%d iterations)", config.iterations)
        return await cls.from_secret(secret, config.salt, config.iterations)

    async def encrypt(self, plaintext: bytes) -> bytes:
        try:
            return await asyncio.to_thread(seal, self._key, plaintext)
        except CipherError:
            raise
        except Exception as e:
            # e.g. OverflowError from cryptography on oversized input
            raise CipherError(f"Encryption failed: {e}", operation="encrypt") from e

    async def decrypt(self, envelope: bytes) -> bytes:
        try:
            return await asyncio.to_thread(open_envelope, self._key, envelope)
        except CipherError:
            raise
        except Exception as e:
            raise CipherError(f"Decryption failed: {e}", operation="decrypt") from e
