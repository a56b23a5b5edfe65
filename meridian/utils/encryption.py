from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from meridian.config import settings


class CredentialError(Exception):
    """A stored credential cannot be encrypted or decrypted with the configured key."""


class CredentialCipher:
    """Symmetric encryption of GitHub tokens at rest (Fernet)."""

    def __init__(self, key: str):
        if not key:
            raise CredentialError("ENCRYPTION_KEY is not configured")
        try:
            self._fernet = Fernet(key.encode() if isinstance(key, str) else key)
        except (ValueError, TypeError) as e:
            raise CredentialError(f"ENCRYPTION_KEY is not a valid Fernet key: {e}") from e

    @classmethod
    def from_settings(cls) -> Optional["CredentialCipher"]:
        if not settings.ENCRYPTION_KEY:
            return None
        return cls(settings.ENCRYPTION_KEY)

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode()

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, stored: str) -> str:
        try:
            return self._fernet.decrypt(stored.encode()).decode()
        except InvalidToken as e:
            raise CredentialError(
                "Stored GitHub token cannot be decrypted. Please reconnect your account."
            ) from e
