from __future__ import annotations

import io
from datetime import datetime

from src.atm_maintenance.atm_maintenance.core.enums import ReportCategory
from src.atm_maintenance.atm_maintenance.reports import importer
from src.atm_maintenance.atm_maintenance.reports.exporter import export_reports, import_template


def _row(**overrides):
    row = {
        "atm_name": "فرع الدقي",
        "atm_number": "ATM-7",
        "serial_number": "SN-7",
        "governorate": "الجيزة",
        "address": "شارع التحرير",
        "maintenance_date": "2025-02-01",
        "category": ReportCategory.MODERN.value,
        "technical_report": "New wrap",
        "notes": "",
    }
    row.update(overrides)
    return row


def test_valid_row_and_invalid_category_row():
    parsed = importer.parse_rows([_row(), _row(category="X")])

    assert len(parsed.reports) == 1
    assert len(parsed.errors) == 1
    assert "صف 3:" in parsed.errors[0]
    assert "'X'" in parsed.errors[0]


def test_parsed_report_fields():
    [report] = importer.parse_rows([_row(notes="ok", atm_number=1001.0, category="corrective, MODERN")]).reports

    assert report.atm_number == "1001"
    assert report.maintenance_date == datetime(2025, 2, 1)
    assert report.category == (ReportCategory.CORRECTIVE, ReportCategory.MODERN)
    assert report.notes == "ok"
    assert report.before_photos == () and report.after_photos == ()
    assert report.report_id is None


def test_missing_required_fields_are_listed():
    parsed = importer.parse_rows([_row(address=" ", technical_report=None, notes=None)])

    assert parsed.reports == []
    assert parsed.errors == ["صف 2: يحتوي على حقول مطلوبة فارغة (address, technical_report)."]


def test_category_of_only_separators_is_rejected():
    parsed = importer.parse_rows([_row(category=" , ")])

    assert parsed.errors == ["صف 2: حقل التصنيف مطلوب ولا يمكن أن يكون فارغًا."]


def test_invalid_date_is_rejected():
    parsed = importer.parse_rows([_row(maintenance_date="not a date")])

    assert parsed.errors == ["صف 2: صيغة التاريخ 'not a date' غير صالحة. استخدم YYYY-MM-DD."]


def test_native_datetime_cells_are_accepted():
    [report] = importer.parse_rows([_row(maintenance_date=datetime(2024, 11, 3, 10, 0))]).reports

    assert report.maintenance_date == datetime(2024, 11, 3, 10, 0)


def test_csv_file_is_read_by_header():
    text = ",".join(importer.IMPORT_COLUMNS) + "\n"
    text += "A,1,S1,القاهرة,Addr,2025-03-01,corrective,Fixed,\n"
    text += "B,2,S2,القاهرة,,2025-03-02,modern,Fixed,\n"

    parsed = importer.parse_file(io.BytesIO(text.encode("utf-8")), "reports.csv")

    assert [r.atm_name for r in parsed.reports] == ["A"]
    assert parsed.errors == ["صف 3: يحتوي على حقول مطلوبة فارغة (address)."]


def test_unreadable_file_gives_single_error():
    parsed = importer.parse_file(io.BytesIO(b"definitely not a workbook"), "reports.xlsx")

    assert parsed.reports == []
    assert len(parsed.errors) == 1


def test_exported_workbook_can_be_imported_again(report_factory):
    reports = [
        report_factory(atm_name="A", category=(ReportCategory.CORRECTIVE, ReportCategory.MODERN)),
        report_factory(atm_name="B", notes="n"),
    ]

    parsed = importer.parse_file(io.BytesIO(export_reports(reports)), "export.xlsx")

    assert parsed.errors == []
    assert [(r.atm_name, r.category, r.notes) for r in parsed.reports] == [
        ("A", (ReportCategory.CORRECTIVE, ReportCategory.MODERN), ""),
        ("B", (ReportCategory.CORRECTIVE,), "n"),
    ]


def test_template_has_import_headers():
    rows = importer.read_sheet(io.BytesIO(import_template()), "template.xlsx")

    assert list(rows[0]) == importer.IMPORT_COLUMNS
