from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Optional, Sequence

from ..common.collation import collation_key
from ..common.datetime_utils import utc_calendar_date
from ..core.constants import DEFAULT_ADMIN_PAGE_SIZE
from ..core.enums import ReportCategory, SortOption
from .model import Report

SEARCH_FIELDS = ("atm_name", "serial_number", "governorate", "atm_number", "address")


@dataclass(frozen=True)
class ReportQuery:
    """Dashboard criteria; ``None`` means "all" for every filter."""

    search: str = ""
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    category: Optional[ReportCategory] = None
    governorate: Optional[str] = None
    sort: SortOption = SortOption.DATE_DESC

    def criteria_key(self) -> str:
        """Stable text form used to detect criteria changes across requests."""
        return "|".join(
            [
                self.search,
                self.date_from.isoformat() if self.date_from else "",
                self.date_to.isoformat() if self.date_to else "",
                self.category.name if self.category else "",
                self.governorate or "",
                self.sort.value,
            ]
        )


def _matches(report: Report, query: ReportQuery, needle: str) -> bool:
    if query.date_from or query.date_to:
        report_day = utc_calendar_date(report.maintenance_date)
        if query.date_from and report_day < query.date_from:
            return False
        if query.date_to and report_day > query.date_to:
            return False

    if query.category and query.category not in report.category:
        return False

    if query.governorate and report.governorate != query.governorate:
        return False

    if not needle:
        return True
    return any(needle in getattr(report, f).lower() for f in SEARCH_FIELDS)


def filter_reports(reports: Iterable[Report], query: ReportQuery) -> list[Report]:
    needle = query.search.strip().lower()
    return [r for r in reports if _matches(r, query, needle)]


def sort_reports(reports: Iterable[Report], sort: SortOption) -> list[Report]:
    items = list(reports)
    if sort == SortOption.DATE_ASC:
        return sorted(items, key=lambda r: r.sort_timestamp)
    if sort == SortOption.NAME_ASC:
        return sorted(items, key=lambda r: collation_key(r.atm_name))
    if sort == SortOption.NAME_DESC:
        return sorted(items, key=lambda r: collation_key(r.atm_name), reverse=True)
    if sort == SortOption.SERIAL_ASC:
        return sorted(items, key=lambda r: collation_key(r.serial_number))
    if sort == SortOption.SERIAL_DESC:
        return sorted(items, key=lambda r: collation_key(r.serial_number), reverse=True)
    return sorted(items, key=lambda r: r.sort_timestamp, reverse=True)


def apply_query(reports: Iterable[Report], query: ReportQuery) -> list[Report]:
    return sort_reports(filter_reports(reports, query), query.sort)


def active_filter_count(query: ReportQuery) -> int:
    """Number of panel filters in use (search and sort are not counted)."""
    return sum(1 for v in (query.date_from, query.date_to, query.category, query.governorate) if v)


def governorate_options(reports: Iterable[Report]) -> list[str]:
    return sorted({r.governorate for r in reports if r.governorate}, key=collation_key)


class IncrementalReveal:
    """Infinite-scroll pagination: a growing prefix of the result list.

    Any change of criteria resets the window to a single page.
    """

    def __init__(self, page_size: int = DEFAULT_ADMIN_PAGE_SIZE, *, visible: Optional[int] = None, criteria: str = ""):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.page_size = page_size
        self.visible = visible if visible is not None else page_size
        self.criteria = criteria

    def apply_criteria(self, criteria: str) -> bool:
        if criteria != self.criteria:
            self.criteria = criteria
            self.reset()
            return True
        return False

    def reset(self) -> None:
        self.visible = self.page_size

    def load_more(self, total: int) -> bool:
        if self.visible < total:
            self.visible += self.page_size
            return True
        return False

    def window(self, items: Sequence[Any]) -> list[Any]:
        return list(items[: self.visible])

    def has_more(self, total: int) -> bool:
        return self.visible < total

    def to_state(self) -> dict[str, Any]:
        return {"page_size": self.page_size, "visible": self.visible, "criteria": self.criteria}

    @classmethod
    def from_state(cls, state: Optional[dict[str, Any]], *, page_size: int) -> "IncrementalReveal":
        if not state or int(state.get("page_size", 0)) != page_size:
            return cls(page_size)
        return cls(page_size, visible=int(state.get("visible", page_size)), criteria=str(state.get("criteria", "")))
