from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """User roles used for authorization."""

    ADMIN = "admin"
    BANK = "bank"


class ReportCategory(str, Enum):
    """Maintenance category tags (values are the stored labels)."""

    CORRECTIVE = "الديكورات التصحيحية"
    MODERN = "الديكورات الحديثة"

    @classmethod
    def parse(cls, text: str) -> "ReportCategory":
        """Accept either the stored label or the member name (any case)."""
        value = (text or "").strip()
        for member in cls:
            if value == member.value or value.upper() == member.name:
                return member
        raise ValueError(f"التصنيف {text!r} غير صالح")


class SortOption(str, Enum):
    DATE_DESC = "date-desc"
    DATE_ASC = "date-asc"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"
    SERIAL_ASC = "serial-asc"
    SERIAL_DESC = "serial-desc"


class AnalyticsPeriod(str, Enum):
    """Time window for the analytics view."""

    ALL = "all"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"

    @property
    def days(self):
        return {"30d": 30, "90d": 90}.get(self.value)
