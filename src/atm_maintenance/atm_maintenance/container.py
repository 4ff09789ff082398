from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .analytics.service import AnalyticsService
from .core.constants import (
    DEFAULT_ADMIN_PAGE_SIZE,
    DEFAULT_BANK_PAGE_SIZE,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_SYNC_BATCH_SIZE,
)
from .reports.model import Report
from .reports.service import ReportService
from .storage.changes import ChangeFeed
from .storage.key_value import LocalKeyValueStore
from .storage.live import LiveCollection
from .storage.seed import seed_local_data
from .storage.service import DatabaseService, RemoteFactory
from .users.model import User
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    store: LocalKeyValueStore
    feed: ChangeFeed
    database: DatabaseService

    reports_state: LiveCollection[Report]
    users_state: LiveCollection[User]

    auth_service: AuthService
    user_service: UserService
    report_service: ReportService
    analytics_service: AnalyticsService

    admin_page_size: int = DEFAULT_ADMIN_PAGE_SIZE
    bank_page_size: int = DEFAULT_BANK_PAGE_SIZE

    def start(self) -> None:
        self.database.start()
        self.reports_state.attach(self.database.subscribe_to_reports)
        self.users_state.attach(self.database.subscribe_to_users)

    def close(self) -> None:
        self.reports_state.detach()
        self.users_state.detach()
        self.database.close()


def build_container(
    *,
    data_dir: str,
    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    sync_batch_size: int = DEFAULT_SYNC_BATCH_SIZE,
    auto_seed: bool = True,
    admin_page_size: int = DEFAULT_ADMIN_PAGE_SIZE,
    bank_page_size: int = DEFAULT_BANK_PAGE_SIZE,
    remote_factory: Optional[RemoteFactory] = None,
    seeder: Optional[Callable] = None,
) -> Container:
    store = LocalKeyValueStore(data_dir)
    feed = ChangeFeed()
    database = DatabaseService(
        store,
        feed,
        remote_factory=remote_factory,
        seeder=seeder or (seed_local_data if auto_seed else None),
        poll_interval=poll_interval,
        sync_batch_size=sync_batch_size,
    )

    reports_state: LiveCollection[Report] = LiveCollection()
    users_state: LiveCollection[User] = LiveCollection()

    return Container(
        store=store,
        feed=feed,
        database=database,
        reports_state=reports_state,
        users_state=users_state,
        auth_service=AuthService(users_state),
        user_service=UserService(database, users_state),
        report_service=ReportService(database, reports_state),
        analytics_service=AnalyticsService(),
        admin_page_size=admin_page_size,
        bank_page_size=bank_page_size,
    )
