"""
Authentication for the CSC ERP core.

Credentials live in the ``users`` collection of the record store. Passwords
are stored as bcrypt hashes; a stored value that is not a bcrypt hash never
verifies. Failed logins return None whether the username is unknown or the
password is wrong, so callers cannot tell the two apart.

The current session is a single user id kept in the local settings table,
independent of any entity collection.
"""

from __future__ import annotations
from typing import Any, Optional

import bcrypt

from csc_core.errors import AuthenticationError
from csc_core.logging import get_logger
from csc_core.models.entities import Privilege, User, UserRole
from csc_core.offline.record_store import RecordStore

logger = get_logger(__name__)

SESSION_KEY = "csc_erp_session_id"


# ==================== PASSWORD HASHING ====================

def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        str: Hashed password

    Example:
        >>> hash_password("password123")
        '$2b$12$...'
    """
    if not password:
        raise AuthenticationError("Cannot hash an empty password")
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def is_password_hash(value: str) -> bool:
    return bool(value) and value.startswith(("$2a$", "$2b$", "$2y$"))


def verify_password(password: str, hashed: str) -> bool:
    """Check a plain password against a stored bcrypt hash."""
    if not password or not is_password_hash(hashed):
        return False
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        # Malformed hash
        return False


def hash_user_password(user: User) -> User:
    """
    Users-store write hook: replace a plaintext password with its bcrypt hash.

    Rows imported from older backups carry plaintext; hashes and empty
    passwords are left alone.
    """
    if user.password and not is_password_hash(user.password):
        user.password = hash_password(user.password)
        logger.info(f"Hashed plaintext password for user {user.username or user.id}")
    return user


def has_privilege(user: Optional[User], privilege: Privilege) -> bool:
    """ADMIN holds every privilege; other roles need the explicit flag."""
    if user is None:
        return False
    if user.role == UserRole.ADMIN:
        return True
    return privilege in user.privileges


# ==================== SESSION POINTER ====================

class SessionPointer:
    """The persisted "current user id" scalar."""

    def __init__(self, settings_backend: Any, key: str = SESSION_KEY):
        """
        Args:
            settings_backend: Object with get_setting/set_setting (the local store)
            key: Settings key holding the user id
        """
        self._backend = settings_backend
        self._key = key

    def get(self) -> Optional[str]:
        value = self._backend.get_setting(self._key)
        return str(value) if value else None

    def set(self, user_id: Optional[str]) -> None:
        self._backend.set_setting(self._key, user_id)


# ==================== AUTH GATE ====================

class AuthGate:
    """
    login / get_session / set_session on top of the users record store.

    Usage:
        auth = AuthGate(users_store, SessionPointer(local_store))
        user = auth.login("admin", "password123")
        if user:
            auth.set_session(user)
    """

    def __init__(self, users: RecordStore[User], session: SessionPointer):
        self._users = users
        self._session = session

    def login(self, username: str, password: str) -> Optional[User]:
        """Return the matching user, or None for any credential mismatch."""
        username = username or ""
        if not username or not password:
            return None

        for user in self._users.all():
            if user.username != username:
                continue
            if verify_password(password, user.password):
                logger.info(f"Login succeeded for {username}")
                return user
            if not is_password_hash(user.password):
                logger.warning(f"User {username} has no password hash on record")
            break

        logger.info(f"Login failed for {username}")
        return None

    def get_session(self) -> Optional[User]:
        """Resolve the persisted session pointer to a user, if any."""
        user_id = self._session.get()
        if not user_id:
            return None
        return self._users.get(user_id)

    current_session = get_session

    def set_session(self, user: Optional[User]) -> None:
        """Persist or clear the session pointer."""
        self._session.set(user.id if user else None)
