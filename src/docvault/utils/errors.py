"""Error taxonomy shared by the cipher engine, pipeline, lifecycle and folder gate."""


class VaultError(Exception):
    """Base class for every failure surfaced by docvault.

    ``operation`` and ``record_id`` are filled in by whichever layer knows
    them, so callers can build a user-facing message without parsing text.
    """

    def __init__(self, message: str = "", *, operation: str | None = None, record_id: str | None = None):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.record_id = record_id

    def annotate(self, operation: str, record_id: str | None = None) -> "VaultError":
        if self.operation is None:
            self.operation = operation
        if self.record_id is None:
            self.record_id = record_id
        return self

    def __str__(self) -> str:
        parts = [self.message]
        if self.operation:
            parts.append(f"operation={self.operation}")
        if self.record_id:
            parts.append(f"record={self.record_id}")
        return " ".join(p for p in parts if p)


class CipherError(VaultError):
    pass


class IntegrityError(CipherError):
    """Authentication tag did not verify (tampered data or wrong key)."""


class MalformedEnvelopeError(CipherError):
    """Stored blob is too short to contain a nonce."""


class StoreError(VaultError):
    """Object store or document database call failed."""


class NotFoundError(StoreError):
    pass


class ValidationError(VaultError):
    pass


class FolderLockedError(ValidationError):
    pass
