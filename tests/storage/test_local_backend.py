from __future__ import annotations

import os

from src.atm_maintenance.atm_maintenance.core.constants import LS_REPORTS_KEY, REPORTS_COLLECTION, USERS_COLLECTION
from src.atm_maintenance.atm_maintenance.reports.model import Report
from src.atm_maintenance.atm_maintenance.storage.key_value import LocalKeyValueStore


def test_add_then_read_back_keeps_fields(local_backend, report_factory):
    report = report_factory(notes="check lock", before_photos=("a.png", "b.png"))

    new_id = local_backend.add(REPORTS_COLLECTION, report.to_record())

    records = local_backend.load_all(REPORTS_COLLECTION)
    assert len(records) == 1
    stored = Report.from_record(records[0]["id"], records[0])
    assert new_id.startswith("report-")
    assert stored.report_id == new_id
    assert stored.to_record() == report.to_record()


def test_reports_are_prepended_users_appended(local_backend, report_factory):
    first = local_backend.add(REPORTS_COLLECTION, report_factory(atm_name="A").to_record())
    second = local_backend.add(REPORTS_COLLECTION, report_factory(atm_name="B").to_record())
    u1 = local_backend.add(USERS_COLLECTION, {"username": "a"})
    u2 = local_backend.add(USERS_COLLECTION, {"username": "b"})

    assert [r["id"] for r in local_backend.load_all(REPORTS_COLLECTION)] == [second, first]
    assert [u["id"] for u in local_backend.load_all(USERS_COLLECTION)] == [u1, u2]


def test_delete_many_removes_exactly_the_given_ids(local_backend, report_factory):
    ids = [local_backend.add(REPORTS_COLLECTION, report_factory(atm_name=str(i)).to_record()) for i in range(5)]

    local_backend.delete_many(REPORTS_COLLECTION, [ids[1], ids[3]])

    remaining = {r["id"] for r in local_backend.load_all(REPORTS_COLLECTION)}
    assert remaining == {ids[0], ids[2], ids[4]}


def test_update_replaces_whole_record_and_ignores_unknown_id(local_backend):
    rid = local_backend.add(USERS_COLLECTION, {"username": "a", "name": "Old", "role": "bank"})

    assert local_backend.update(USERS_COLLECTION, rid, {"username": "a", "role": "admin"}) is True
    assert local_backend.update(USERS_COLLECTION, "user-missing", {"username": "x"}) is False

    [record] = local_backend.load_all(USERS_COLLECTION)
    assert record == {"id": rid, "username": "a", "role": "admin"}


def test_subscribe_gets_snapshot_now_and_after_own_writes(local_backend):
    seen: list[list] = []
    unsubscribe = local_backend.subscribe(USERS_COLLECTION, seen.append)

    local_backend.add(USERS_COLLECTION, {"username": "a"})
    unsubscribe()
    local_backend.add(USERS_COLLECTION, {"username": "b"})

    assert [len(s) for s in seen] == [0, 1]


def test_writes_from_another_process_are_published(store, local_backend, feed):
    notified = []
    feed.subscribe(REPORTS_COLLECTION, lambda: notified.append(True))

    other = LocalKeyValueStore(store.directory)
    other.set_json(LS_REPORTS_KEY, [{"id": "report-x", "atm_name": "X"}])
    path = store.directory / f"{LS_REPORTS_KEY}.json"
    os.utime(path, ns=(1_000_000_000, 1_000_000_000))

    assert local_backend.check_external_changes() == [REPORTS_COLLECTION]
    assert notified == [True]
    assert local_backend.check_external_changes() == []


def test_key_value_store_round_trip_and_remove(store):
    assert store.get("missing") is None
    assert store.version("missing") is None

    store.set_json("k", {"a": "ب"})
    assert store.get_json("k") == {"a": "ب"}
    assert store.version("k") is not None

    store.remove("k")
    store.remove("k")
    assert store.get_json("k", []) == []
