from __future__ import annotations

import threading
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class LiveCollection(Generic[T]):
    """Latest snapshot delivered by a DatabaseService subscription.

    Snapshots may arrive from listener threads, so reads copy under a lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._items: list[T] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    def attach(self, subscribe: Callable[[Callable[[list[T]], None]], Callable[[], None]]) -> None:
        self.detach()
        self._unsubscribe = subscribe(self.replace)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def replace(self, items: list[T]) -> None:
        with self._lock:
            self._items = list(items)

    def items(self) -> list[T]:
        with self._lock:
            return list(self._items)
