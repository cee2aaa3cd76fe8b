from typing import Protocol


class IdentityProvider(Protocol):
    def current_user_id(self) -> str: ...


class StaticIdentity:
    """Identity provider pinned to one user id (tests, single-user tools)."""

    def __init__(self, user_id: str):
        if not user_id:
            raise ValueError("user_id must not be empty")
        self.user_id = user_id

    def current_user_id(self) -> str:
        return self.user_id
