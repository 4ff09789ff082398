from __future__ import annotations

import itertools
from datetime import datetime
from typing import Any, Optional

import pytest
from google.api_core.exceptions import ServiceUnavailable

from src.atm_maintenance.atm_maintenance.container import build_container
from src.atm_maintenance.atm_maintenance.core.enums import ReportCategory
from src.atm_maintenance.atm_maintenance.reports.model import Report
from src.atm_maintenance.atm_maintenance.storage.changes import ChangeFeed
from src.atm_maintenance.atm_maintenance.storage.key_value import LocalKeyValueStore
from src.atm_maintenance.atm_maintenance.storage.local_backend import LocalStorageBackend


# --- Firestore stand-ins (only the client surface the backend touches) ---


class FakeSnapshot:
    def __init__(self, doc_id: str, data: dict):
        self.id = doc_id
        self._data = dict(data)

    def to_dict(self) -> dict:
        return dict(self._data)


class FakeWatch:
    def __init__(self, client: "FakeFirestoreClient", collection: str, callback, broken: bool = False):
        self.client = client
        self.collection = collection
        self.callback = callback
        self.active = True
        # a broken watch fails on its own thread and never calls back
        self.broken = broken

    def fire(self) -> None:
        if self.active and not self.broken:
            self.callback(self.client.snapshots(self.collection), [], None)

    def unsubscribe(self) -> None:
        self.active = False


class FakeDocumentRef:
    def __init__(self, client: "FakeFirestoreClient", collection: str, doc_id: str):
        self.client = client
        self.collection = collection
        self.id = doc_id

    def set(self, data: dict, merge: bool = False) -> None:
        self.client.write(self.collection, self.id, data, merge=merge)

    def delete(self) -> None:
        self.client.remove(self.collection, self.id)


class FakeQuery:
    def __init__(self, client: "FakeFirestoreClient", collection: str, limit: Optional[int] = None):
        self.client = client
        self.collection = collection
        self._limit = limit

    def get(self, retry=None, timeout=None):
        self.client.reads += 1
        self.client.read_timeouts.append(timeout)
        if self.client.fail_reads:
            raise ServiceUnavailable("offline")
        docs = self.client.snapshots(self.collection)
        return docs[: self._limit] if self._limit is not None else docs


class FakeCollection:
    def __init__(self, client: "FakeFirestoreClient", name: str):
        self.client = client
        self.name = name

    def document(self, doc_id: str) -> FakeDocumentRef:
        return FakeDocumentRef(self.client, self.name, doc_id)

    def add(self, data: dict):
        doc_id = f"auto{next(self.client.ids)}"
        self.client.write(self.name, doc_id, data)
        return None, FakeDocumentRef(self.client, self.name, doc_id)

    def get(self, retry=None, timeout=None):
        return FakeQuery(self.client, self.name).get(retry=retry, timeout=timeout)

    def stream(self):
        return iter(FakeQuery(self.client, self.name).get())

    def limit(self, count: int) -> FakeQuery:
        return FakeQuery(self.client, self.name, count)

    def on_snapshot(self, callback) -> FakeWatch:
        # like the real Watch, registering never raises
        watch = FakeWatch(self.client, self.name, callback, broken=self.client.fail_listeners)
        self.client.watches.append(watch)
        watch.fire()
        return watch


class FakeBatch:
    def __init__(self, client: "FakeFirestoreClient"):
        self.client = client
        self.ops: list[tuple] = []

    def set(self, ref: FakeDocumentRef, data: dict, merge: bool = False) -> None:
        self.ops.append(("set", ref, data, merge))

    def delete(self, ref: FakeDocumentRef) -> None:
        self.ops.append(("delete", ref, None, False))

    def commit(self) -> None:
        self.client.commits += 1
        if self.client.fail_on_commit == self.client.commits:
            raise ServiceUnavailable("batch rejected")
        self.client.batch_sizes.append(len(self.ops))
        for kind, ref, data, merge in self.ops:
            if kind == "set":
                self.client.write(ref.collection, ref.id, data, merge=merge)
            else:
                self.client.remove(ref.collection, ref.id)


class FakeFirestoreClient:
    def __init__(self):
        self.data: dict[str, dict[str, dict]] = {}
        self.watches: list[FakeWatch] = []
        self.ids = itertools.count(1)
        self.commits = 0
        self.batch_sizes: list[int] = []
        self.reads = 0
        self.read_timeouts: list[Optional[float]] = []
        self.fail_on_commit: Optional[int] = None
        self.fail_reads = False
        self.fail_listeners = False
        self.closed = False

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, name)

    def batch(self) -> FakeBatch:
        return FakeBatch(self)

    def snapshots(self, collection: str) -> list[FakeSnapshot]:
        return [FakeSnapshot(k, v) for k, v in self.data.get(collection, {}).items()]

    def write(self, collection: str, doc_id: str, data: dict, merge: bool = False) -> None:
        docs = self.data.setdefault(collection, {})
        docs[doc_id] = {**docs.get(doc_id, {}), **data} if merge else dict(data)
        self._notify(collection)

    def remove(self, collection: str, doc_id: str) -> None:
        self.data.get(collection, {}).pop(doc_id, None)
        self._notify(collection)

    def _notify(self, collection: str) -> None:
        for watch in self.watches:
            if watch.collection == collection:
                watch.fire()

    def close(self) -> None:
        self.closed = True


# --- fixtures ---


@pytest.fixture()
def fixed_now():
    return datetime(2025, 3, 15, 9, 0, 0)


@pytest.fixture()
def store(tmp_path):
    return LocalKeyValueStore(tmp_path / "data")


@pytest.fixture()
def feed():
    return ChangeFeed()


@pytest.fixture()
def local_backend(store, feed):
    backend = LocalStorageBackend(store, feed, poll_interval=0)
    backend.start()
    yield backend
    backend.close()


@pytest.fixture()
def firestore_client():
    return FakeFirestoreClient()


def make_report(**overrides: Any) -> Report:
    fields: dict[str, Any] = dict(
        atm_name="فرع المعادي",
        atm_number="ATM-1",
        serial_number="SN-1",
        governorate="القاهرة",
        address="شارع 9",
        maintenance_date=datetime(2025, 1, 10, 12, 0),
        technical_report="Replaced fascia",
        notes="",
        category=(ReportCategory.CORRECTIVE,),
    )
    fields.update(overrides)
    return Report(**fields)


@pytest.fixture()
def report_factory():
    return make_report


@pytest.fixture()
def container(tmp_path):
    c = build_container(data_dir=str(tmp_path / "app-data"), poll_interval=0, auto_seed=False)
    c.start()
    yield c
    c.close()
