from __future__ import annotations

import io
from typing import Iterable

import pandas as pd

from ..common.datetime_utils import utc_calendar_date
from ..core.enums import ReportCategory
from .importer import IMPORT_COLUMNS
from .model import Report

TEMPLATE_INSTRUCTIONS = {
    "atm_name": "اسم الماكينة (مطلوب)",
    "atm_number": "رقم الماكينة (مطلوب)",
    "serial_number": "الرقم المسلسل (مطلوب)",
    "governorate": "المحافظة (مطلوب)",
    "address": "العنوان (مطلوب)",
    "maintenance_date": "YYYY-MM-DD (مطلوب)",
    "category": f'"{ReportCategory.CORRECTIVE.value}" أو "{ReportCategory.MODERN.value}" (افصل بفاصلة للتعدد)',
    "technical_report": "التقرير الفني (مطلوب)",
    "notes": "ملاحظات (اختياري)",
}


def _to_xlsx(df: pd.DataFrame, sheet_name: str) -> bytes:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
    return buf.getvalue()


def report_rows(reports: Iterable[Report]) -> list[dict[str, str]]:
    """Rows in the import column layout so exports can be re-imported."""
    return [
        {
            "atm_name": r.atm_name,
            "atm_number": r.atm_number,
            "serial_number": r.serial_number,
            "governorate": r.governorate,
            "address": r.address,
            "maintenance_date": utc_calendar_date(r.maintenance_date).strftime("%Y-%m-%d"),
            "category": ", ".join(c.value for c in r.category),
            "technical_report": r.technical_report,
            "notes": r.notes,
        }
        for r in reports
    ]


def export_reports(reports: Iterable[Report]) -> bytes:
    df = pd.DataFrame(report_rows(reports), columns=IMPORT_COLUMNS)
    return _to_xlsx(df, "Reports")


def import_template() -> bytes:
    df = pd.DataFrame([TEMPLATE_INSTRUCTIONS], columns=IMPORT_COLUMNS)
    return _to_xlsx(df, "Template")
