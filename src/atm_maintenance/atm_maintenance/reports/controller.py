from __future__ import annotations

import io
from typing import Optional

from flask import Flask, jsonify, request, send_file, session

from ..common.datetime_utils import parse_iso_datetime, parse_optional_date
from ..common.http import admin_required, error_response, login_required
from ..core.enums import ReportCategory, SortOption, UserRole
from ..core.exceptions import ValidationError
from ..container import Container
from .exporter import export_reports, import_template
from .model import Report
from .query import IncrementalReveal, ReportQuery, active_filter_count, apply_query, governorate_options

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
VIEW_STATE_KEY = "report_view"


def _category(value: Optional[str]) -> Optional[ReportCategory]:
    if not value or value == "all":
        return None
    try:
        return ReportCategory.parse(value)
    except ValueError as e:
        raise ValidationError(f"التصنيف '{value}' غير صالح") from e


def query_from_args(args) -> ReportQuery:
    try:
        date_from = parse_optional_date(args.get("date_from"))
        date_to = parse_optional_date(args.get("date_to"))
    except ValueError as e:
        raise ValidationError("صيغة التاريخ غير صالحة. استخدم YYYY-MM-DD.") from e
    try:
        sort = SortOption(args.get("sort") or SortOption.DATE_DESC.value)
    except ValueError as e:
        raise ValidationError("خيار الترتيب غير صالح") from e
    governorate = args.get("governorate")
    return ReportQuery(
        search=args.get("search", ""),
        date_from=date_from,
        date_to=date_to,
        category=_category(args.get("category")),
        governorate=None if not governorate or governorate == "all" else governorate,
        sort=sort,
    )


def report_from_payload(data: dict, report_id: Optional[str] = None) -> Report:
    try:
        maintenance_date = parse_iso_datetime(str(data.get("maintenance_date") or ""))
    except ValueError as e:
        raise ValidationError("تاريخ الصيانة غير صالح") from e
    try:
        category = tuple(ReportCategory.parse(c) for c in data.get("category") or ())
    except ValueError as e:
        raise ValidationError(str(e)) from e
    return Report(
        report_id=report_id,
        atm_name=str(data.get("atm_name") or ""),
        atm_number=str(data.get("atm_number") or ""),
        serial_number=str(data.get("serial_number") or ""),
        governorate=str(data.get("governorate") or ""),
        address=str(data.get("address") or ""),
        maintenance_date=maintenance_date,
        technical_report=str(data.get("technical_report") or ""),
        notes=str(data.get("notes") or ""),
        before_photos=tuple(data.get("before_photos") or ()),
        after_photos=tuple(data.get("after_photos") or ()),
        category=category,
    )


def register(app: Flask, container: Container) -> None:
    @app.route("/api/reports", methods=["GET"], endpoint="reports_list")
    @login_required
    def reports_list():
        query = query_from_args(request.args)
        page_size = container.admin_page_size if session.get("role") == UserRole.ADMIN.value else container.bank_page_size

        all_reports = container.report_service.list_reports()
        results = apply_query(all_reports, query)

        view = IncrementalReveal.from_state(session.get(VIEW_STATE_KEY), page_size=page_size)
        if not view.apply_criteria(query.criteria_key()) and request.args.get("more") == "1":
            view.load_more(len(results))
        session[VIEW_STATE_KEY] = view.to_state()

        return jsonify(
            {
                "items": [r.to_dict() for r in view.window(results)],
                "total": len(results),
                "visible": min(view.visible, len(results)),
                "has_more": view.has_more(len(results)),
                "active_filters": active_filter_count(query),
                "governorates": governorate_options(all_reports),
            }
        )

    @app.route("/api/reports/<report_id>", methods=["GET"], endpoint="reports_detail")
    @login_required
    def reports_detail(report_id: str):
        report = container.report_service.get(report_id)
        if not report:
            return error_response("التقرير غير موجود", 404)
        return jsonify(report.to_dict())

    @app.route("/api/reports", methods=["POST"], endpoint="reports_create")
    @admin_required
    def reports_create():
        report = report_from_payload(request.get_json(silent=True) or {})
        report_id = container.report_service.create(report)
        return jsonify({"id": report_id}), 201

    @app.route("/api/reports/<report_id>", methods=["PUT"], endpoint="reports_update")
    @admin_required
    def reports_update(report_id: str):
        report = report_from_payload(request.get_json(silent=True) or {}, report_id=report_id)
        updated = container.report_service.update(report)
        return jsonify(updated.to_dict())

    @app.route("/api/reports/<report_id>", methods=["DELETE"], endpoint="reports_delete")
    @admin_required
    def reports_delete(report_id: str):
        container.report_service.delete([report_id])
        return jsonify({"deleted": 1})

    @app.route("/api/reports/delete", methods=["POST"], endpoint="reports_bulk_delete")
    @admin_required
    def reports_bulk_delete():
        ids = (request.get_json(silent=True) or {}).get("ids") or []
        deleted = container.report_service.delete([str(i) for i in ids])
        return jsonify({"deleted": deleted})

    @app.route("/api/reports/import", methods=["POST"], endpoint="reports_import")
    @admin_required
    def reports_import():
        upload = request.files.get("file")
        if not upload or not upload.filename:
            return error_response("اختر ملفًا للاستيراد", 400)
        result = container.report_service.import_file(io.BytesIO(upload.read()), upload.filename)
        return jsonify({"success_count": result.success_count, "errors": result.errors})

    @app.route("/api/reports/export", methods=["GET"], endpoint="reports_export")
    @admin_required
    def reports_export():
        results = apply_query(container.report_service.list_reports(), query_from_args(request.args))
        return send_file(
            io.BytesIO(export_reports(results)),
            mimetype=XLSX_MIMETYPE,
            as_attachment=True,
            download_name="atm_maintenance_reports.xlsx",
        )

    @app.route("/api/reports/import-template", methods=["GET"], endpoint="reports_import_template")
    @admin_required
    def reports_import_template():
        return send_file(
            io.BytesIO(import_template()),
            mimetype=XLSX_MIMETYPE,
            as_attachment=True,
            download_name="import-template.xlsx",
        )
