from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Sequence

from google.api_core.exceptions import GoogleAPIError
from google.api_core.retry import Retry
from google.cloud import firestore
from google.oauth2 import service_account

from ..core.constants import (
    DEFAULT_READ_TIMEOUT_SECONDS,
    DEFAULT_SYNC_BATCH_SIZE,
    LOCAL_ID_PREFIXES,
    REPORTS_COLLECTION,
)
from ..core.exceptions import RemoteUnavailableError
from .backend import Record, SnapshotCallback, StorageBackend, Unsubscribe, chunked
from .config_store import RemoteConfig

logger = logging.getLogger(__name__)


def is_local_id(record_id: Optional[str]) -> bool:
    """Ids minted by the local store are never reused as document keys on add."""
    if not record_id:
        return False
    return any(str(record_id).startswith(f"{prefix}-") for prefix in LOCAL_ID_PREFIXES.values())


class FirestoreBackend(StorageBackend):
    """Collections stored in Google Cloud Firestore.

    Reads arrive through push listeners (``on_snapshot``); writes go straight
    to the store without retries. A failed call surfaces as RemoteUnavailableError.
    """

    is_remote = True

    def __init__(
        self,
        client: Any,
        *,
        batch_size: int = DEFAULT_SYNC_BATCH_SIZE,
        read_timeout: float = DEFAULT_READ_TIMEOUT_SECONDS,
    ):
        self._client = client
        self._batch_size = batch_size
        self._read_timeout = read_timeout
        self._watches: list[Any] = []

    @classmethod
    def from_config(cls, config: RemoteConfig, *, batch_size: int = DEFAULT_SYNC_BATCH_SIZE) -> "FirestoreBackend":
        credentials = None
        if config.credentials_info:
            credentials = service_account.Credentials.from_service_account_info(config.credentials_info)
        elif config.credentials_file:
            credentials = service_account.Credentials.from_service_account_file(config.credentials_file)
        client = firestore.Client(project=config.project_id, credentials=credentials, database=config.database)
        logger.info("Firestore client ready (project=%s, database=%s)", config.project_id, config.database)
        return cls(client, batch_size=batch_size)

    @property
    def client(self) -> Any:
        return self._client

    def close(self) -> None:
        for watch in list(self._watches):
            try:
                watch.unsubscribe()
            except GoogleAPIError:
                logger.warning("Failed to stop a Firestore listener", exc_info=True)
        self._watches.clear()
        close = getattr(self._client, "close", None)
        if callable(close):
            close()

    # --- reads ---

    def _read_retry(self) -> Retry:
        # transient errors are retried, but never past the read timeout
        return Retry(timeout=self._read_timeout)

    @staticmethod
    def _records(documents: Iterable[Any]) -> list[Record]:
        return [{**(doc.to_dict() or {}), "id": doc.id} for doc in documents]

    def subscribe(self, collection: str, callback: SnapshotCallback) -> Unsubscribe:
        """Deliver a snapshot read now, then keep pushing listener snapshots.

        ``on_snapshot`` never raises: watch failures surface later on its
        background thread. The bounded read is what reports an unreachable
        or forbidden store to the caller.
        """
        col = self._client.collection(collection)
        try:
            documents = col.get(retry=self._read_retry(), timeout=self._read_timeout)
        except GoogleAPIError as e:
            raise RemoteUnavailableError(str(e) or "فشل الاتصال بقاعدة البيانات.") from e
        callback(self._records(documents))

        def on_snapshot(col_snapshot, changes, read_time) -> None:
            callback(self._records(col_snapshot))

        watch = col.on_snapshot(on_snapshot)
        self._watches.append(watch)

        def unsubscribe() -> None:
            if watch in self._watches:
                self._watches.remove(watch)
            watch.unsubscribe()

        return unsubscribe

    def load_all(self, collection: str) -> list[Record]:
        try:
            return self._records(self._client.collection(collection).stream())
        except GoogleAPIError as e:
            raise RemoteUnavailableError(str(e)) from e

    def probe(self) -> bool:
        """Minimal bounded read used to check connectivity."""
        try:
            query = self._client.collection(REPORTS_COLLECTION).limit(1)
            query.get(retry=self._read_retry(), timeout=self._read_timeout)
        except GoogleAPIError as e:
            logger.error("Test connection failed: %s", e)
            raise RemoteUnavailableError(str(e) or "فشل الاتصال بقاعدة البيانات.") from e
        return True

    # --- writes ---

    def add(self, collection: str, data: Record, *, record_id: Optional[str] = None) -> str:
        try:
            if record_id and not is_local_id(record_id):
                self._client.collection(collection).document(record_id).set(data)
                return record_id
            _, ref = self._client.collection(collection).add(data)
            return ref.id
        except GoogleAPIError as e:
            raise RemoteUnavailableError(str(e)) from e

    def update(self, collection: str, record_id: str, data: Record) -> bool:
        try:
            self._client.collection(collection).document(record_id).set(data, merge=True)
        except GoogleAPIError as e:
            raise RemoteUnavailableError(str(e)) from e
        return True

    def delete(self, collection: str, record_id: str) -> None:
        try:
            self._client.collection(collection).document(record_id).delete()
        except GoogleAPIError as e:
            raise RemoteUnavailableError(str(e)) from e

    def delete_many(self, collection: str, record_ids: Sequence[str]) -> None:
        col = self._client.collection(collection)
        try:
            for chunk in chunked(list(record_ids), self._batch_size):
                batch = self._client.batch()
                for record_id in chunk:
                    batch.delete(col.document(record_id))
                batch.commit()
        except GoogleAPIError as e:
            raise RemoteUnavailableError(str(e)) from e

    def push_all(self, operations: Sequence[tuple[str, str, Record]]) -> int:
        """Merge ``(collection, id, data)`` triples in fixed-size batches.

        A failing batch aborts the remaining ones; earlier batches stay committed.
        Returns the number of committed writes.
        """
        committed = 0
        for chunk in chunked(list(operations), self._batch_size):
            batch = self._client.batch()
            for collection, record_id, data in chunk:
                batch.set(self._client.collection(collection).document(record_id), data, merge=True)
            try:
                batch.commit()
            except GoogleAPIError as e:
                logger.error("Sync aborted after %d writes: %s", committed, e)
                raise RemoteUnavailableError(str(e)) from e
            committed += len(chunk)
            logger.info("Sync batch committed (%d/%d)", committed, len(operations))
        return committed
