from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import login_required
from ..core.enums import AnalyticsPeriod
from ..core.exceptions import ValidationError
from ..container import Container
from ..reports.query import governorate_options


def register(app: Flask, container: Container) -> None:
    analytics = container.analytics_service

    @app.route("/api/analytics", methods=["GET"], endpoint="analytics")
    @login_required
    def analytics_view():
        try:
            period = AnalyticsPeriod(request.args.get("period") or AnalyticsPeriod.ALL.value)
        except ValueError as e:
            raise ValidationError("الفترة غير صالحة") from e
        governorate = request.args.get("governorate")
        if governorate == "all":
            governorate = None

        reports = container.report_service.list_reports()
        filtered = analytics.filter_reports(reports, period=period, governorate=governorate)
        by_category = analytics.category_counts(filtered)

        return jsonify(
            {
                "total": len(filtered),
                "by_category": [{"category": c.value, "count": n} for c, n in by_category.items()],
                "category_instances": sum(by_category.values()),
                "by_governorate": [{"name": name, "count": n} for name, n in analytics.governorate_counts(filtered)],
                "governorates": governorate_options(reports),
            }
        )

    @app.route("/api/overview", methods=["GET"], endpoint="overview")
    @login_required
    def overview():
        reports = container.report_service.list_reports()
        summary = analytics.summary(reports)
        bank = analytics.bank_overview(reports)
        return jsonify(
            {
                "total": summary.total,
                "corrective": summary.corrective,
                "modern": summary.modern,
                "this_month": bank.this_month,
                "monthly": [{"month": m.label, "count": m.count} for m in summary.monthly],
            }
        )
