"""Re-entrancy guard for pool operations.

The engine calls out to asset collaborators in the middle of an operation.
The guard is held for the whole operation; any second entry, from a
collaborator callback on the same thread or from another thread, is rejected
instead of waiting.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

from .errors import ReentrantCall


class ReentrancyGuard:
    def __init__(self) -> None:
        self._lock = threading.Lock()

    @property
    def entered(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def enter(self, operation: str) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise ReentrantCall(f"{operation}: another operation is in flight on this pool")
        try:
            yield
        finally:
            self._lock.release()
