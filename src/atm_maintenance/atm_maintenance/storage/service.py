from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Union

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError

from ..core.constants import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_SYNC_BATCH_SIZE,
    LS_CONFIG_KEY,
    REPORTS_COLLECTION,
    USERS_COLLECTION,
)
from ..core.exceptions import ConfigurationError, RemoteUnavailableError
from ..reports.model import Report
from ..users.model import User
from .backend import Record, StorageBackend, Unsubscribe
from .changes import ChangeFeed
from .config_store import RemoteConfig, parse_remote_config
from .firestore_backend import FirestoreBackend
from .key_value import LocalKeyValueStore
from .local_backend import LocalStorageBackend

logger = logging.getLogger(__name__)

RemoteFactory = Callable[[RemoteConfig], StorageBackend]


@dataclass(frozen=True)
class SyncResult:
    reports: int
    users: int


@dataclass
class _Subscription:
    collection: str
    deliver: Callable[[list[Record]], None]
    unsubscribe: Optional[Unsubscribe] = None


def _decode(records: list[Record], from_record: Callable[[Optional[str], Record], Any], kind: str) -> list[Any]:
    # malformed stored records are logged and left out
    decoded = []
    for record in records:
        try:
            decoded.append(from_record(record.get("id"), record))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning("Skipping malformed %s record %r: %s", kind, record.get("id"), e)
    return decoded


def _sorted_reports(records: list[Record]) -> list[Report]:
    reports = _decode(records, Report.from_record, "report")
    # newest first for the raw feed
    reports.sort(key=lambda r: r.sort_timestamp, reverse=True)
    return reports


def _users(records: list[Record]) -> list[User]:
    return _decode(records, User.from_record, "user")


class DatabaseService:
    """Uniform subscribe/mutate interface over the active storage backend.

    The backend is chosen in ``start()``: Firestore when connection parameters
    are stored, the local key-value store otherwise. ``reload()`` tears the
    whole data layer down and builds it again (used after config changes).
    """

    def __init__(
        self,
        store: LocalKeyValueStore,
        feed: ChangeFeed,
        *,
        remote_factory: Optional[RemoteFactory] = None,
        seeder: Optional[Callable[[LocalStorageBackend], None]] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        sync_batch_size: int = DEFAULT_SYNC_BATCH_SIZE,
    ):
        self._store = store
        self._feed = feed
        self._remote_factory = remote_factory or (
            lambda config: FirestoreBackend.from_config(config, batch_size=sync_batch_size)
        )
        self._seeder = seeder
        self._local = LocalStorageBackend(store, feed, poll_interval=poll_interval)
        self._backend: Optional[StorageBackend] = None
        self._subscriptions: list[_Subscription] = []
        self._lock = threading.RLock()

    # --- lifecycle ---

    def start(self) -> None:
        with self._lock:
            if self._backend is not None:
                return
            self._backend = self._choose_backend()
            self._backend.start()
            for sub in self._subscriptions:
                self._attach(sub)

    def close(self) -> None:
        with self._lock:
            for sub in self._subscriptions:
                self._detach(sub)
            if self._backend is not None:
                self._backend.close()
            self._backend = None

    def reload(self) -> None:
        """Full restart of the data layer; every subscriber gets a fresh snapshot."""
        logger.info("Reloading data layer")
        with self._lock:
            self.close()
            self.start()

    def _choose_backend(self) -> StorageBackend:
        raw = self._store.get(LS_CONFIG_KEY)
        if raw:
            try:
                config = parse_remote_config(raw)
                backend = self._remote_factory(config)
                logger.info("Using remote document store (project=%s)", config.project_id)
                return backend
            except (ConfigurationError, GoogleAPIError, GoogleAuthError, ValueError, OSError):
                logger.exception("Failed to initialize remote store, falling back to local storage")
                return self._local
        if self._seeder is not None:
            self._seeder(self._local)
        logger.info("Using local storage at %s", self._store.directory)
        return self._local

    @property
    def backend(self) -> StorageBackend:
        if self._backend is None:
            raise RuntimeError("DatabaseService.start() has not been called")
        return self._backend

    def is_remote_connected(self) -> bool:
        return self._backend is not None and self._backend.is_remote

    # --- subscriptions ---

    def _attach(self, sub: _Subscription) -> None:
        backend = self.backend
        try:
            sub.unsubscribe = backend.subscribe(sub.collection, sub.deliver)
        except (GoogleAPIError, GoogleAuthError, RemoteUnavailableError):
            if not backend.is_remote:
                raise
            logger.exception("Remote %s listener failed, serving the local snapshot", sub.collection)
            sub.deliver(self._local.load_all(sub.collection))
            sub.unsubscribe = None

    @staticmethod
    def _detach(sub: _Subscription) -> None:
        if sub.unsubscribe is not None:
            sub.unsubscribe()
            sub.unsubscribe = None

    def _subscribe(self, collection: str, deliver: Callable[[list[Record]], None]) -> Unsubscribe:
        sub = _Subscription(collection=collection, deliver=deliver)
        with self._lock:
            self._subscriptions.append(sub)
            if self._backend is not None:
                self._attach(sub)

        def unsubscribe() -> None:
            with self._lock:
                if sub in self._subscriptions:
                    self._subscriptions.remove(sub)
                self._detach(sub)

        return unsubscribe

    def subscribe_to_reports(self, callback: Callable[[list[Report]], None]) -> Unsubscribe:
        return self._subscribe(REPORTS_COLLECTION, lambda records: callback(_sorted_reports(records)))

    def subscribe_to_users(self, callback: Callable[[list[User]], None]) -> Unsubscribe:
        return self._subscribe(USERS_COLLECTION, lambda records: callback(_users(records)))

    # --- reports ---

    def add_report(self, report: Report) -> str:
        return self.backend.add(REPORTS_COLLECTION, report.to_record(), record_id=report.report_id)

    def update_report(self, report: Report) -> bool:
        if not report.report_id:
            raise ValueError("Cannot update a report without an id")
        return self.backend.update(REPORTS_COLLECTION, report.report_id, report.to_record())

    def delete_reports(self, report_ids: Sequence[str]) -> None:
        self.backend.delete_many(REPORTS_COLLECTION, list(report_ids))

    # --- users ---

    def add_user(self, user: User) -> str:
        return self.backend.add(USERS_COLLECTION, user.to_record())

    def update_user(self, user: User) -> bool:
        if not user.user_id:
            raise ValueError("Cannot update a user without an id")
        return self.backend.update(USERS_COLLECTION, user.user_id, user.to_record())

    def delete_user(self, user_id: str) -> None:
        self.backend.delete(USERS_COLLECTION, user_id)

    # --- remote administration ---

    def _require_remote(self) -> StorageBackend:
        backend = self._backend
        if backend is None or not backend.is_remote:
            raise RemoteUnavailableError("لا يوجد اتصال بقاعدة البيانات السحابية.")
        return backend

    def test_connection(self) -> bool:
        backend = self._require_remote()
        return backend.probe()

    def sync_local_to_remote(self) -> SyncResult:
        """Push every locally stored report and user to the remote store."""
        backend = self._require_remote()
        local_reports = self._local.load_all(REPORTS_COLLECTION)
        local_users = self._local.load_all(USERS_COLLECTION)
        if not local_reports and not local_users:
            return SyncResult(reports=0, users=0)

        operations: list[tuple[str, str, Record]] = []
        for collection, records in ((REPORTS_COLLECTION, local_reports), (USERS_COLLECTION, local_users)):
            for record in records:
                data = {k: v for k, v in record.items() if k != "id"}
                operations.append((collection, str(record["id"]), data))

        backend.push_all(operations)
        logger.info("Synced %d reports and %d users to remote", len(local_reports), len(local_users))
        return SyncResult(reports=len(local_reports), users=len(local_users))

    def current_config(self) -> Optional[RemoteConfig]:
        raw = self._store.get(LS_CONFIG_KEY)
        if not raw:
            return None
        try:
            return parse_remote_config(raw)
        except ConfigurationError:
            return None

    def save_config(self, raw: Union[str, dict[str, Any], RemoteConfig]) -> RemoteConfig:
        config = parse_remote_config(raw)
        self._store.set_json(LS_CONFIG_KEY, config.to_dict())
        self.reload()
        return config

    def clear_config(self) -> None:
        self._store.remove(LS_CONFIG_KEY)
        self.reload()
