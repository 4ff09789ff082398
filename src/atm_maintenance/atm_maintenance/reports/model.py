from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import format_iso_datetime, parse_iso_datetime
from ..core.enums import ReportCategory

__all__ = ["Report", "ReportCategory"]


@dataclass(frozen=True)
class Report:
    """Domain entity: ATM maintenance report.

    Plain data object; persistence lives in the storage layer. ``report_id`` is
    ``None`` until the store assigns one.
    """

    atm_name: str
    atm_number: str
    serial_number: str
    governorate: str
    address: str
    maintenance_date: datetime
    technical_report: str
    category: tuple[ReportCategory, ...]
    notes: str = ""
    before_photos: tuple[str, ...] = ()
    after_photos: tuple[str, ...] = ()
    report_id: Optional[str] = None

    def to_record(self) -> dict[str, Any]:
        """Document stored in either backend (the id is the document key)."""
        return {
            "atm_name": self.atm_name,
            "atm_number": self.atm_number,
            "serial_number": self.serial_number,
            "governorate": self.governorate,
            "address": self.address,
            "maintenance_date": format_iso_datetime(self.maintenance_date),
            "technical_report": self.technical_report,
            "notes": self.notes,
            "before_photos": list(self.before_photos),
            "after_photos": list(self.after_photos),
            "category": [c.value for c in self.category],
        }

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.report_id, **self.to_record()}

    @classmethod
    def from_record(cls, report_id: Optional[str], data: dict[str, Any]) -> "Report":
        raw_date = data.get("maintenance_date")
        maintenance_date = raw_date if isinstance(raw_date, datetime) else parse_iso_datetime(str(raw_date))
        return cls(
            report_id=report_id,
            atm_name=str(data.get("atm_name", "")),
            atm_number=str(data.get("atm_number", "")),
            serial_number=str(data.get("serial_number", "")),
            governorate=str(data.get("governorate", "")),
            address=str(data.get("address", "")),
            maintenance_date=maintenance_date,
            technical_report=str(data.get("technical_report", "")),
            notes=str(data.get("notes") or ""),
            before_photos=tuple(data.get("before_photos") or ()),
            after_photos=tuple(data.get("after_photos") or ()),
            category=tuple(ReportCategory.parse(c) for c in data.get("category") or ()),
        )

    @property
    def sort_timestamp(self) -> float:
        return self.maintenance_date.timestamp()
