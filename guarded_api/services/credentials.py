from dataclasses import dataclass
from typing import Protocol

from pwdlib import PasswordHash

from guarded_api.repos.user import UserStore

password_hash = PasswordHash.recommended()


@dataclass(frozen=True)
class Subject:
    """Identity a token is issued for."""

    user_id: int
    email: str


class CredentialVerifier(Protocol):
    def verify(self, email: str, password: str) -> Subject | None:
        """Return the subject owning the credentials, or None when they do not match."""
        ...


def get_password_hash(password: str) -> str:
    """
    Hash password
    Args:
        password: Plain password

    Returns:
        Hashed password
    """
    return password_hash.hash(password)


class StoreCredentialVerifier:
    """
    Checks credentials against the user store.

    Every stored user shares one configured password; only its hash is kept.
    Unknown emails still run a hash verification so both failure paths cost
    about the same.
    """

    def __init__(self, store: UserStore, password: str):
        self.store = store
        self._hashed_password = get_password_hash(password)

    def verify(self, email: str, password: str) -> Subject | None:
        password_matches = password_hash.verify(password, self._hashed_password)

        user = self.store.get_by_email(email)
        if user is None or not password_matches:
            return None

        return Subject(user_id=user.id, email=user.email)
