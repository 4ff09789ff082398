from __future__ import annotations

import logging
import threading
import uuid
from typing import Optional, Sequence

from ..core.constants import (
    COLLECTION_KEYS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    LOCAL_ID_PREFIXES,
    REPORTS_COLLECTION,
)
from .backend import Record, SnapshotCallback, StorageBackend, Unsubscribe
from .changes import ChangeFeed
from .key_value import LocalKeyValueStore

logger = logging.getLogger(__name__)


class LocalStorageBackend(StorageBackend):
    """Collections stored as JSON arrays in the local key-value store.

    Same-process subscribers are notified through the ChangeFeed on every
    write; a poller thread picks up files rewritten by other processes.
    """

    is_remote = False

    def __init__(
        self,
        store: LocalKeyValueStore,
        feed: ChangeFeed,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        prepend_collections: Sequence[str] = (REPORTS_COLLECTION,),
    ):
        self._store = store
        self._feed = feed
        self._poll_interval = poll_interval
        self._prepend = set(prepend_collections)
        self._seen_versions: dict[str, Optional[int]] = {}
        self._stop = threading.Event()
        self._poller: Optional[threading.Thread] = None

    # --- lifecycle ---

    def start(self) -> None:
        if self._poller and self._poller.is_alive():
            return
        for collection, key in COLLECTION_KEYS.items():
            self._seen_versions[collection] = self._store.version(key)
        self._stop.clear()
        if self._poll_interval and self._poll_interval > 0:
            self._poller = threading.Thread(target=self._poll_loop, name="local-store-poller", daemon=True)
            self._poller.start()

    def close(self) -> None:
        self._stop.set()
        if self._poller:
            self._poller.join(timeout=self._poll_interval * 2 + 1)
            self._poller = None

    def _poll_loop(self) -> None:
        while not self._stop.wait(self._poll_interval):
            self.check_external_changes()

    def check_external_changes(self) -> list[str]:
        """Publish collections whose files changed since last seen."""
        changed = []
        for collection, key in COLLECTION_KEYS.items():
            version = self._store.version(key)
            if version != self._seen_versions.get(collection):
                self._seen_versions[collection] = version
                changed.append(collection)
        for collection in changed:
            logger.debug("Local store changed outside this process: %s", collection)
            self._feed.publish(collection)
        return changed

    # --- reads ---

    def has_collection(self, collection: str) -> bool:
        return self._store.contains(COLLECTION_KEYS[collection])

    def load_all(self, collection: str) -> list[Record]:
        return list(self._store.get_json(COLLECTION_KEYS[collection], []) or [])

    def subscribe(self, collection: str, callback: SnapshotCallback) -> Unsubscribe:
        def handler() -> None:
            callback(self.load_all(collection))

        unsubscribe = self._feed.subscribe(collection, handler)
        callback(self.load_all(collection))
        return unsubscribe

    # --- writes ---

    def _save(self, collection: str, records: list[Record]) -> None:
        key = COLLECTION_KEYS[collection]
        self._store.set_json(key, records)
        self._seen_versions[collection] = self._store.version(key)
        self._feed.publish(collection)

    def new_id(self, collection: str) -> str:
        return f"{LOCAL_ID_PREFIXES[collection]}-{uuid.uuid4().hex}"

    def add(self, collection: str, data: Record, *, record_id: Optional[str] = None) -> str:
        with self._store.lock:
            records = self.load_all(collection)
            new_record = {**data, "id": record_id or self.new_id(collection)}
            if collection in self._prepend:
                records.insert(0, new_record)
            else:
                records.append(new_record)
            self._save(collection, records)
        return new_record["id"]

    def update(self, collection: str, record_id: str, data: Record) -> bool:
        with self._store.lock:
            records = self.load_all(collection)
            for index, record in enumerate(records):
                if record.get("id") == record_id:
                    records[index] = {**data, "id": record_id}
                    break
            else:
                logger.warning("Update skipped, %s/%s not found in local store", collection, record_id)
                return False
            self._save(collection, records)
        return True

    def delete(self, collection: str, record_id: str) -> None:
        self.delete_many(collection, [record_id])

    def delete_many(self, collection: str, record_ids: Sequence[str]) -> None:
        doomed = set(record_ids)
        with self._store.lock:
            records = [r for r in self.load_all(collection) if r.get("id") not in doomed]
            self._save(collection, records)

    def replace_all(self, collection: str, records: list[Record]) -> None:
        with self._store.lock:
            self._save(collection, list(records))
