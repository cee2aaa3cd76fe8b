import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from docvault.utils.errors import IntegrityError, MalformedEnvelopeError

NONCE_SIZE = 12  # 96-bit nonce (required for GCM)
KEY_SIZE = 32


def aead_encrypt(key: bytes, plaintext: bytes) -> tuple[bytes, bytes]:
    nonce = os.urandom(NONCE_SIZE)
    aesgcm = AESGCM(key)
    ct = aesgcm.encrypt(nonce, plaintext, None)
    return nonce, ct


def aead_decrypt(key: bytes, nonce: bytes, ct: bytes) -> bytes:
    aesgcm = AESGCM(key)
    try:
        return aesgcm.decrypt(nonce, ct, None)
    except InvalidTag as exc:
        raise IntegrityError("Authentication tag mismatch: ciphertext corrupted or wrong key") from exc


def seal(key: bytes, plaintext: bytes) -> bytes:
    """Encrypt plaintext into a self-contained envelope: nonce || ciphertext(+tag)."""
    nonce, ct = aead_encrypt(key, plaintext)
    return nonce + ct


def open_envelope(key: bytes, envelope: bytes) -> bytes:
    """Split an envelope at the nonce boundary and decrypt the remainder."""
    if len(envelope) < NONCE_SIZE:
        raise MalformedEnvelopeError(
            f"Envelope is {len(envelope)} bytes, shorter than the {NONCE_SIZE}-byte nonce"
        )
    nonce, ct = envelope[:NONCE_SIZE], envelope[NONCE_SIZE:]
    return aead_decrypt(key, nonce, ct)
