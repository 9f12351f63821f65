from __future__ import annotations

import logging
from typing import Optional

from mission_monitor.clock import Clock, local_now
from mission_monitor.constants import MIN_PASSWORD_LENGTH, MIN_USERNAME_LENGTH
from mission_monitor.errors import AuthError, ConflictError, MissionMonitorError, ValidationError
from mission_monitor.models import User
from mission_monitor.state_persistence import PersistenceStore

LOGGER = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid username or password"


def hash_password(password: str) -> str:
    """Return a 32-bit rolling string hash of ``password`` as a signed decimal.

    This is a demo placeholder kept for compatibility with existing documents.
    It is NOT a cryptographic hash and offers no protection for real
    credentials; replacing it requires migrating stored ``passwordHash`` values.
    """

    data = password.encode("utf-16-le")
    value = 0
    for index in range(0, len(data), 2):
        code_unit = data[index] | (data[index + 1] << 8)
        value = (value * 31 + code_unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return str(value)


class AccountDirectory:
    """User records and the single active-session pointer."""

    def __init__(self, store: PersistenceStore, *, clock: Clock = local_now) -> None:
        self.store = store
        self.clock = clock

    def register(self, username: str, password: str, display_name: str) -> User:
        if not username or not password or not display_name:
            raise ValidationError("All fields are required")
        if len(username) < MIN_USERNAME_LENGTH:
            raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        document = self.store.load()
        if username in document.users:
            raise ConflictError("Username already exists")

        user = User(
            username=username,
            display_name=display_name,
            password_hash=hash_password(password),
            created_at=self.clock(),
        )
        document.users[username] = user
        document.current_user = username
        if not self.store.save(document):
            raise MissionMonitorError("Failed to create account")

        LOGGER.info("Registered user '%s'", username)
        return user

    def login(self, username: str, password: str) -> User:
        if not username or not password:
            raise ValidationError("Username and password are required")

        document = self.store.load()
        user = document.users.get(username)
        if user is None or user.password_hash != hash_password(password):
            raise AuthError(INVALID_CREDENTIALS_MESSAGE)

        document.current_user = username
        self.store.save(document)
        return user

    def logout(self) -> None:
        document = self.store.load()
        if document.current_user is None:
            return
        document.current_user = None
        self.store.save(document)

    def current_user(self) -> Optional[User]:
        document = self.store.load()
        if document.current_user is None:
            return None
        return document.users.get(document.current_user)

    def is_logged_in(self) -> bool:
        return self.store.load().current_user is not None


__all__ = ["AccountDirectory", "hash_password", "INVALID_CREDENTIALS_MESSAGE"]
