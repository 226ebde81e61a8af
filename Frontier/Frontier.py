"""
Frontier/Frontier.py — URL normalization and the bounded FIFO crawl frontier.
"""
from __future__ import annotations

import logging
from collections import deque
from typing import Optional

logger = logging.getLogger(__name__)


def normalize_url(url: str) -> str:
    """Return the dedup key for *url*.

    Drops everything from the first ``#`` and then the trailing ``/``.
    A run of trailing slashes is removed as a whole so that
    ``normalize_url(normalize_url(u)) == normalize_url(u)`` for every *u*.
    """
    return url.split("#", 1)[0].rstrip("/")


class Frontier:
    """FIFO queue of discovered URLs plus the visited set, capped by *budget*.

    The queue holds raw URLs; both duplicate checks use
    :func:`normalize_url`. :meth:`dequeue` marks the returned URL visited
    in the same step so it can never be queued again while it is scanned.
    """

    def __init__(self, budget: int) -> None:
        self.budget = max(0, budget)
        self._queue: deque[str] = deque()
        self._queued: set[str] = set()
        self._visited: set[str] = set()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def enqueue(self, url: str) -> bool:
        """Append *url* unless it was already visited or queued.

        Returns *True* when the URL was added.
        """
        key = normalize_url(url)
        if not key or key in self._visited or key in self._queued:
            return False
        self._queue.append(url)
        self._queued.add(key)
        return True

    def dequeue(self) -> Optional[str]:
        """Pop the head URL and mark it visited, or return *None*."""
        if self.is_exhausted():
            return None
        url = self._queue.popleft()
        key = normalize_url(url)
        self._queued.discard(key)
        self._visited.add(key)
        return url

    def is_exhausted(self) -> bool:
        return not self._queue or len(self._visited) >= self.budget

    def is_visited(self, url: str) -> bool:
        return normalize_url(url) in self._visited

    @property
    def visited(self) -> frozenset[str]:
        return frozenset(self._visited)

    def __len__(self) -> int:
        return len(self._queue)
