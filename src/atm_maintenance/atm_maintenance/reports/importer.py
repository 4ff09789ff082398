"""Spreadsheet import of maintenance reports.

Each row is checked on its own; rejected rows produce one message each and the
rest of the file is still imported.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import IO, Any, Optional, Union

import pandas as pd

from ..core.enums import ReportCategory
from .model import Report

logger = logging.getLogger(__name__)

IMPORT_COLUMNS = [
    "atm_name",
    "atm_number",
    "serial_number",
    "governorate",
    "address",
    "maintenance_date",
    "category",
    "technical_report",
    "notes",
]
REQUIRED_COLUMNS = [c for c in IMPORT_COLUMNS if c != "notes"]

# header row + 1-based numbering
ROW_OFFSET = 2


@dataclass
class ParsedSheet:
    reports: list[Report] = field(default_factory=list)
    # sheet row of each entry in ``reports``
    row_numbers: list[int] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ImportResult:
    success_count: int
    errors: list[str]


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _cell_text(value: Any) -> str:
    if _is_blank(value):
        return ""
    # Excel stores "1001" as 1001.0
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _parse_date(value: Any) -> Optional[datetime]:
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    parsed = pd.to_datetime(_cell_text(value), errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def parse_rows(rows: list[dict[str, Any]]) -> ParsedSheet:
    result = ParsedSheet()
    for index, row in enumerate(rows):
        row_number = index + ROW_OFFSET

        missing = [c for c in REQUIRED_COLUMNS if _is_blank(row.get(c))]
        if missing:
            result.errors.append(f"صف {row_number}: يحتوي على حقول مطلوبة فارغة ({', '.join(missing)}).")
            continue

        categories = [c.strip() for c in _cell_text(row.get("category")).split(",") if c.strip()]
        if not categories:
            result.errors.append(f"صف {row_number}: حقل التصنيف مطلوب ولا يمكن أن يكون فارغًا.")
            continue

        parsed_categories = []
        invalid = []
        for text in categories:
            try:
                parsed_categories.append(ReportCategory.parse(text))
            except ValueError:
                invalid.append(text)
        if invalid:
            result.errors.append(f"صف {row_number}: قيم التصنيف '{', '.join(invalid)}' غير صالحة.")
            continue

        maintenance_date = _parse_date(row.get("maintenance_date"))
        if maintenance_date is None:
            result.errors.append(
                f"صف {row_number}: صيغة التاريخ '{_cell_text(row.get('maintenance_date'))}' غير صالحة. استخدم YYYY-MM-DD."
            )
            continue

        result.row_numbers.append(row_number)
        result.reports.append(
            Report(
                atm_name=_cell_text(row.get("atm_name")),
                atm_number=_cell_text(row.get("atm_number")),
                serial_number=_cell_text(row.get("serial_number")),
                governorate=_cell_text(row.get("governorate")),
                address=_cell_text(row.get("address")),
                maintenance_date=maintenance_date,
                category=tuple(dict.fromkeys(parsed_categories)),
                technical_report=_cell_text(row.get("technical_report")),
                notes=_cell_text(row.get("notes")),
                # photos cannot be imported
                before_photos=(),
                after_photos=(),
            )
        )
    return result


def read_sheet(source: Union[str, IO[bytes]], filename: str = "") -> list[dict[str, Any]]:
    """First sheet (or CSV) as a list of row dicts keyed by header."""
    name = (filename or (source if isinstance(source, str) else "")).lower()
    if name.endswith(".csv"):
        df = pd.read_csv(source, dtype=object, keep_default_na=False)
    else:
        df = pd.read_excel(source, sheet_name=0, dtype=object, engine="openpyxl")
    df.columns = [str(c).strip() for c in df.columns]
    return df.to_dict(orient="records")


def parse_file(source: Union[str, IO[bytes]], filename: str = "") -> ParsedSheet:
    try:
        rows = read_sheet(source, filename)
    except Exception:
        logger.exception("Error processing import file %s", filename or source)
        return ParsedSheet(errors=["حدث خطأ غير متوقع أثناء معالجة الملف. تأكد من أنه ملف Excel صالح."])
    return parse_rows(rows)
