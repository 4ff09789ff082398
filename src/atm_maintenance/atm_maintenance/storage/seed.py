from __future__ import annotations

import logging
from datetime import datetime

from werkzeug.security import generate_password_hash

from ..core.constants import COLLECTION_KEYS, REPORTS_COLLECTION, USERS_COLLECTION
from ..core.enums import ReportCategory, UserRole
from ..reports.model import Report
from ..users.model import User
from .local_backend import LocalStorageBackend

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password"


def demo_users() -> list[User]:
    return [
        User(user_id="user-admin", username="admin", password_hash=generate_password_hash(DEMO_PASSWORD), role=UserRole.ADMIN, name="مدير النظام"),
        User(user_id="user-bank", username="bank", password_hash=generate_password_hash(DEMO_PASSWORD), role=UserRole.BANK, name="مستخدم البنك"),
    ]


def demo_reports() -> list[Report]:
    return [
        Report(
            report_id="report-demo-1",
            atm_name="فرع التحرير",
            atm_number="ATM-1001",
            serial_number="SN-50231",
            governorate="القاهرة",
            address="ميدان التحرير، وسط البلد",
            maintenance_date=datetime(2024, 5, 12, 10, 30),
            technical_report="استبدال الواجهة الأمامية وإعادة طلاء الإطار.",
            notes="",
            category=(ReportCategory.CORRECTIVE,),
        ),
        Report(
            report_id="report-demo-2",
            atm_name="فرع سموحة",
            atm_number="ATM-2040",
            serial_number="SN-71802",
            governorate="الإسكندرية",
            address="شارع فوزي معاذ، سموحة",
            maintenance_date=datetime(2024, 6, 3, 9, 0),
            technical_report="تركيب لوحة إرشادية حديثة وإضاءة LED.",
            notes="يحتاج متابعة بعد شهر.",
            category=(ReportCategory.MODERN, ReportCategory.CORRECTIVE),
        ),
    ]


def seed_local_data(backend: LocalStorageBackend) -> None:
    """Write demo users/reports into collections that were never stored."""
    if not backend.has_collection(USERS_COLLECTION):
        backend.replace_all(USERS_COLLECTION, [{**u.to_record(), "id": u.user_id} for u in demo_users()])
        logger.info("Seeded demo users into %s", COLLECTION_KEYS[USERS_COLLECTION])
    if not backend.has_collection(REPORTS_COLLECTION):
        backend.replace_all(REPORTS_COLLECTION, [{**r.to_record(), "id": r.report_id} for r in demo_reports()])
        logger.info("Seeded demo reports into %s", COLLECTION_KEYS[REPORTS_COLLECTION])
