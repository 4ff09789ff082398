from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Optional, Sequence

Record = dict[str, Any]
SnapshotCallback = Callable[[list[Record]], None]
Unsubscribe = Callable[[], None]


class StorageBackend(ABC):
    """Strategy Pattern: where the report/user collections live.

    Records travel as plain dicts carrying their ``id`` next to the fields.
    """

    is_remote: bool = False

    def start(self) -> None:
        """Acquire background resources (listeners, pollers)."""

    def close(self) -> None:
        """Release background resources."""

    @abstractmethod
    def subscribe(self, collection: str, callback: SnapshotCallback) -> Unsubscribe:
        raise NotImplementedError

    @abstractmethod
    def load_all(self, collection: str) -> list[Record]:
        raise NotImplementedError

    @abstractmethod
    def add(self, collection: str, data: Record, *, record_id: Optional[str] = None) -> str:
        raise NotImplementedError

    @abstractmethod
    def update(self, collection: str, record_id: str, data: Record) -> bool:
        raise NotImplementedError

    @abstractmethod
    def delete(self, collection: str, record_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_many(self, collection: str, record_ids: Sequence[str]) -> None:
        raise NotImplementedError

    # Remote-only operations
    def probe(self) -> bool:
        raise NotImplementedError

    def push_all(self, operations: Sequence[tuple[str, str, Record]]) -> int:
        raise NotImplementedError


def chunked(items: Sequence, size: int) -> Iterable[Sequence]:
    for start in range(0, len(items), size):
        yield items[start : start + size]
