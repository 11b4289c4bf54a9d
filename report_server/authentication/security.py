"""
Moderator password checking against a fixed set of bcrypt hashes (LOGIN_HASHES).
"""

import logging
from typing import Iterable, Tuple

import bcrypt
from fastapi import Request

from report_server.config import Settings
from report_server.errors import ConfigurationError

logger = logging.getLogger(__name__)


# bcrypt only reads the first 72 bytes; newer releases raise instead of truncating
MAX_PASSWORD_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:MAX_PASSWORD_BYTES]


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))


class CredentialValidator:
    """Holds the configured hashes for the life of the process; fails closed when there are none."""

    def __init__(self, hashes: Iterable[str] = ()):
        self._hashes: Tuple[str, ...] = tuple(hashes)

    @classmethod
    def from_settings(cls, settings: Settings) -> "CredentialValidator":
        return cls(settings.credential_hashes)

    @property
    def configured(self) -> bool:
        return bool(self._hashes)

    def validate(self, candidate: str) -> bool:
        if not self._hashes:
            logger.warning("%s", ConfigurationError("LOGIN_HASHES is not set; every password is rejected"))
            return False

        for hashed in self._hashes:
            try:
                if verify_password(candidate, hashed):
                    return True
            except ValueError as e:
                logger.error("Error comparing password with hash: %s", e)
        return False


def get_credential_validator(request: Request) -> CredentialValidator:
    return request.app.state.credential_validator
