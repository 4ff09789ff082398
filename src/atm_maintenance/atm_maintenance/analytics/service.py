from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from ..common.datetime_utils import now_local, to_local_naive
from ..core.constants import RECENT_MONTHS_IN_SUMMARY
from ..core.enums import AnalyticsPeriod, ReportCategory
from ..reports.model import Report


@dataclass(frozen=True)
class MonthCount:
    year: int
    month: int
    count: int

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class Summary:
    total: int
    corrective: int
    modern: int
    monthly: list[MonthCount]


@dataclass(frozen=True)
class BankOverview:
    total: int
    corrective: int
    modern: int
    this_month: int


class AnalyticsService:
    """Read-only statistics over the current report snapshot."""

    def filter_reports(
        self,
        reports: Iterable[Report],
        *,
        period: AnalyticsPeriod = AnalyticsPeriod.ALL,
        governorate: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> list[Report]:
        now = now or now_local()
        out = []
        for report in reports:
            if governorate and report.governorate != governorate:
                continue
            if period.days is not None:
                age = now - to_local_naive(report.maintenance_date)
                if age > timedelta(days=period.days):
                    continue
            out.append(report)
        return out

    def category_counts(self, reports: Iterable[Report]) -> dict[ReportCategory, int]:
        counts = {c: 0 for c in ReportCategory}
        for report in reports:
            for category in set(report.category):
                counts[category] += 1
        return counts

    def governorate_counts(self, reports: Iterable[Report]) -> list[tuple[str, int]]:
        counts = Counter(r.governorate for r in reports)
        # most reports first, first-seen order on ties
        return sorted(counts.items(), key=lambda item: item[1], reverse=True)

    def monthly_counts(self, reports: Iterable[Report]) -> list[MonthCount]:
        counts: Counter = Counter()
        for report in reports:
            d = to_local_naive(report.maintenance_date)
            counts[(d.year, d.month)] += 1
        return [MonthCount(year=y, month=m, count=c) for (y, m), c in sorted(counts.items(), reverse=True)]

    def summary(self, reports: Iterable[Report]) -> Summary:
        items = list(reports)
        by_category = self.category_counts(items)
        return Summary(
            total=len(items),
            corrective=by_category[ReportCategory.CORRECTIVE],
            modern=by_category[ReportCategory.MODERN],
            monthly=self.monthly_counts(items)[:RECENT_MONTHS_IN_SUMMARY],
        )

    def bank_overview(self, reports: Iterable[Report], *, now: Optional[datetime] = None) -> BankOverview:
        now = now or now_local()
        items = list(reports)
        by_category = self.category_counts(items)
        this_month = 0
        for report in items:
            d = to_local_naive(report.maintenance_date)
            if (d.year, d.month) == (now.year, now.month):
                this_month += 1
        return BankOverview(
            total=len(items),
            corrective=by_category[ReportCategory.CORRECTIVE],
            modern=by_category[ReportCategory.MODERN],
            this_month=this_month,
        )
