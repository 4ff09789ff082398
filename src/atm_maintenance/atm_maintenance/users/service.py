from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_min_length, require_non_empty
from ..core.enums import UserRole
from ..core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from ..storage.live import LiveCollection
from ..storage.service import DatabaseService
from .model import User

MIN_PASSWORD_LENGTH = 4


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: str
    name: str
    username: str
    role: UserRole


def _find_by_username(users: LiveCollection[User], username: str, *, exclude_id: Optional[str] = None) -> Optional[User]:
    for user in users.items():
        if user.username == username and user.user_id != exclude_id:
            return user
    return None


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: LiveCollection[User]):
        self._users = users

    def authenticate(self, username: str, password: str) -> SessionUser:
        user = _find_by_username(self._users, (username or "").strip())
        if not user:
            raise AuthenticationError("اسم المستخدم أو كلمة المرور غير صحيحة.")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except (ValueError, TypeError):
            # e.g. legacy plain-text values or corrupted hashes
            ok = False

        if not ok:
            raise AuthenticationError("اسم المستخدم أو كلمة المرور غير صحيحة.")

        return SessionUser(user_id=str(user.user_id), name=user.name, username=user.username, role=user.role)


class UserService:
    """Use case: registration and user management (admin)."""

    def __init__(self, database: DatabaseService, users: LiveCollection[User]):
        self._db = database
        self._users = users

    def list_users(self) -> list[User]:
        return self._users.items()

    def get(self, user_id: str) -> Optional[User]:
        for user in self._users.items():
            if user.user_id == user_id:
                return user
        return None

    def _new_user(self, *, name: str, username: str, password: str, role: UserRole) -> User:
        name = require_non_empty(name, "الاسم")
        username = require_non_empty(username, "اسم المستخدم")
        require_min_length(password, "كلمة المرور", MIN_PASSWORD_LENGTH)

        if _find_by_username(self._users, username):
            raise ValidationError("اسم المستخدم مستخدم بالفعل.")

        return User(username=username, password_hash=generate_password_hash(password), role=UserRole(role), name=name)

    def register(self, *, name: str, username: str, password: str, role: UserRole = UserRole.BANK) -> str:
        """Self-service sign-up from the login screen."""
        return self._db.add_user(self._new_user(name=name, username=username, password=password, role=role))

    def add(self, *, current_role: UserRole, name: str, username: str, password: str, role: UserRole) -> str:
        if current_role != UserRole.ADMIN:
            raise AuthorizationError("ليس لديك صلاحية لتنفيذ هذا الإجراء")
        return self._db.add_user(self._new_user(name=name, username=username, password=password, role=role))

    def update(
        self,
        *,
        current_role: UserRole,
        user_id: str,
        name: str,
        username: str,
        role: UserRole,
        password: Optional[str] = None,
    ) -> User:
        if current_role != UserRole.ADMIN:
            raise AuthorizationError("ليس لديك صلاحية لتنفيذ هذا الإجراء")

        user = self.get(user_id)
        if not user:
            raise ValidationError("المستخدم غير موجود")

        username = require_non_empty(username, "اسم المستخدم")
        if _find_by_username(self._users, username, exclude_id=user_id):
            raise ValidationError("اسم المستخدم مستخدم بالفعل.")

        password_hash = user.password_hash
        if password:
            require_min_length(password, "كلمة المرور", MIN_PASSWORD_LENGTH)
            password_hash = generate_password_hash(password)

        updated = replace(
            user,
            name=require_non_empty(name, "الاسم"),
            username=username,
            role=UserRole(role),
            password_hash=password_hash,
        )
        self._db.update_user(updated)
        return updated

    def delete(self, *, current_role: UserRole, current_user_id: str, user_id: str) -> None:
        if current_role != UserRole.ADMIN:
            raise AuthorizationError("ليس لديك صلاحية لتنفيذ هذا الإجراء")
        if user_id == current_user_id:
            raise ValidationError("لا يمكنك حذف حسابك")
        if not self.get(user_id):
            raise ValidationError("المستخدم غير موجود")
        self._db.delete_user(user_id)
