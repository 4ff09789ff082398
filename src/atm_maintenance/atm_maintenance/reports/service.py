from __future__ import annotations

import logging
from dataclasses import replace
from typing import IO, Iterable, Optional, Sequence, Union

from ..common.validators import require_max_items, require_non_empty
from ..core.constants import PHOTO_SLOTS
from ..core.exceptions import RemoteUnavailableError, ValidationError
from ..storage.live import LiveCollection
from ..storage.service import DatabaseService
from . import importer
from .importer import ImportResult
from .model import Report

logger = logging.getLogger(__name__)


class ReportService:
    """Use case: create/edit/delete/import maintenance reports (admin)."""

    def __init__(self, database: DatabaseService, reports: LiveCollection[Report]):
        self._db = database
        self._reports = reports

    def list_reports(self) -> list[Report]:
        return self._reports.items()

    def get(self, report_id: str) -> Optional[Report]:
        for report in self._reports.items():
            if report.report_id == report_id:
                return report
        return None

    @staticmethod
    def validate(report: Report) -> Report:
        cleaned = replace(
            report,
            atm_name=require_non_empty(report.atm_name, "اسم الماكينة"),
            atm_number=require_non_empty(report.atm_number, "رقم الماكينة"),
            serial_number=require_non_empty(report.serial_number, "الرقم المسلسل"),
            governorate=require_non_empty(report.governorate, "المحافظة"),
            address=require_non_empty(report.address, "العنوان"),
            technical_report=require_non_empty(report.technical_report, "التقرير الفني"),
            notes=(report.notes or "").strip(),
            before_photos=tuple(p for p in report.before_photos if p),
            after_photos=tuple(p for p in report.after_photos if p),
            category=tuple(dict.fromkeys(report.category)),
        )
        if not cleaned.category:
            raise ValidationError("يرجى اختيار تصنيف واحد على الأقل")
        require_max_items(cleaned.before_photos, "صور قبل الإصلاح", PHOTO_SLOTS)
        require_max_items(cleaned.after_photos, "صور بعد الإصلاح", PHOTO_SLOTS)
        return cleaned

    def create(self, report: Report) -> str:
        report = self.validate(report)
        return self._db.add_report(report)

    def update(self, report: Report) -> Report:
        if not report.report_id:
            raise ValidationError("معرف التقرير مطلوب للتعديل")
        report = self.validate(report)
        if not self._db.update_report(report):
            raise ValidationError("التقرير غير موجود")
        return report

    def delete(self, report_ids: Sequence[str]) -> int:
        ids = [i for i in dict.fromkeys(report_ids) if i]
        if not ids:
            raise ValidationError("لم يتم تحديد أي تقارير")
        self._db.delete_reports(ids)
        return len(ids)

    def bulk_add(self, reports: Iterable[Report]) -> list[str]:
        return [self._db.add_report(report) for report in reports]

    def import_file(self, source: Union[str, IO[bytes]], filename: str = "") -> ImportResult:
        """Add every valid row; a failed write stops the import at that row.

        ``success_count`` is always the number of rows actually stored.
        """
        parsed = importer.parse_file(source, filename)
        errors = list(parsed.errors)
        committed = 0
        for row_number, report in zip(parsed.row_numbers, parsed.reports):
            try:
                self._db.add_report(report)
            except RemoteUnavailableError as e:
                logger.error("Import stopped at row %d after %d reports: %s", row_number, committed, e)
                errors.append(f"صف {row_number}: تعذر حفظ هذا الصف والصفوف التي تليه ({e}).")
                break
            committed += 1
        logger.info("Imported %d reports (%d rows rejected)", committed, len(parsed.errors))
        return ImportResult(success_count=committed, errors=errors)
