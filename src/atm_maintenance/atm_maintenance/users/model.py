from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..core.enums import UserRole


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Note: plain data object (no storage access). ``user_id`` is ``None`` until
    the store assigns one.
    """

    username: str
    password_hash: str
    role: UserRole
    name: str
    user_id: Optional[str] = None

    def to_record(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "password_hash": self.password_hash,
            "role": self.role.value,
            "name": self.name,
        }

    def to_public_dict(self) -> dict[str, Any]:
        return {"id": self.user_id, "username": self.username, "role": self.role.value, "name": self.name}

    @classmethod
    def from_record(cls, user_id: Optional[str], data: dict[str, Any]) -> "User":
        return cls(
            user_id=user_id,
            username=str(data.get("username", "")),
            password_hash=str(data.get("password_hash", "")),
            role=UserRole(data.get("role", UserRole.BANK.value)),
            name=str(data.get("name", "")),
        )
