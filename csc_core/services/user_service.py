# =============================================================================
# csc_core/services/user_service.py
# User Service - staff accounts, roles and passwords
# =============================================================================

from __future__ import annotations
from dataclasses import replace
from typing import List, Optional

from .base_service import BaseService, ServiceResult, new_record_id
from csc_core.auth import hash_password
from csc_core.errors import DataValidationError
from csc_core.models import Privilege, User, UserRole, validate_user
from csc_core.offline.record_store import RecordStore

DEFAULT_STAFF_PRIVILEGES = [Privilege.MANAGE_CUSTOMERS, Privilege.MANAGE_JOBS]


class UserService(BaseService):
    """
    Service for user management.

    Passwords arrive in plain text and are stored as bcrypt hashes. At least
    one ADMIN account always remains.

    Usage:
        service = UserService(db.users)
        result = service.register(User(id="", username="clerk"), "counter#1")
        service.change_password(result.data.id, "new-secret")
    """

    def __init__(self, users: RecordStore[User]):
        super().__init__()
        self._users = users

    def _require(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise DataValidationError(f"User {user_id} not found", field="id", actual=user_id)
        return user

    def _check_username_free(self, username: str, user_id: str) -> None:
        for other in self._users.all():
            if other.username == username and other.id != user_id:
                raise DataValidationError(
                    f"Username {username} is already taken",
                    field="username",
                    actual=username,
                )

    def _admin_ids(self) -> List[str]:
        return [u.id for u in self._users.all() if u.role == UserRole.ADMIN]

    def register(self, user: User, password: str) -> ServiceResult:
        """
        Create a user with a fresh id when none is given.

        Returns:
            ServiceResult with the saved User (password hashed)
        """
        def _register():
            if not user.id:
                user.id = new_record_id("u")
            validate_user(user)
            if not password:
                raise DataValidationError("Password is required", field="password")
            self._check_username_free(user.username, user.id)
            if not user.privileges and user.role == UserRole.STAFF:
                user.privileges = list(DEFAULT_STAFF_PRIVILEGES)
            user.password = hash_password(password)
            saved = self._users.save(user)
            self.logger.info(f"Registered user {saved.username} ({saved.role.value})")
            return saved

        return self.safe_execute("Registering user", _register)

    def update(self, user: User, password: Optional[str] = None) -> ServiceResult:
        """
        Save profile, role and privilege edits.

        A blank ``password`` keeps the stored hash. Demoting the last ADMIN
        is refused.
        """
        def _update():
            existing = self._require(user.id)
            validate_user(user)
            self._check_username_free(user.username, user.id)
            if (
                existing.role == UserRole.ADMIN
                and user.role != UserRole.ADMIN
                and self._admin_ids() == [user.id]
            ):
                raise DataValidationError(
                    "At least one administrator must remain", field="role"
                )
            updated = replace(
                user,
                password=hash_password(password) if password else existing.password,
            )
            return self._users.save(updated)

        return self.safe_execute("Updating user", _update)

    def change_password(self, user_id: str, password: str) -> ServiceResult:
        def _change():
            if not password:
                raise DataValidationError("Password is required", field="password")
            user = self._require(user_id)
            user.password = hash_password(password)
            saved = self._users.save(user)
            self.logger.info(f"Password changed for {saved.username}")
            return saved

        return self.safe_execute("Changing password", _change)

    def delete(self, user_id: str) -> ServiceResult:
        """Revoke access; the last ADMIN cannot be deleted."""
        def _delete():
            user = self._require(user_id)
            if user.role == UserRole.ADMIN and self._admin_ids() == [user_id]:
                raise DataValidationError(
                    "At least one administrator must remain", field="role"
                )
            self._users.delete(user_id)
            self.logger.info(f"Deleted user {user.username}")
            return user_id

        return self.safe_execute("Deleting user", _delete)
