"""
Work queues for controller keys.

WorkQueue guarantees:
  - a key added several times while pending is delivered once
  - a key is handed to at most one worker at a time; re-adding it while it is
    being processed schedules exactly one more delivery after done()
  - after shut_down() no further keys are handed out

DelayingQueue adds add_after(); RateLimitingQueue adds per-key backoff.
"""

import heapq
import itertools
import threading
import time
from collections import deque
from typing import Deque, Dict, List, Optional, Set, Tuple

from rolesync.queue.rate_limiter import ItemExponentialFailureRateLimiter


class WorkQueue:
    """FIFO of keys with dedup and per-key mutual exclusion."""

    def __init__(self, name: str = ""):
        self.name = name
        self._cond = threading.Condition()
        self._queue: Deque[str] = deque()
        self._dirty: Set[str] = set()
        self._processing: Set[str] = set()
        self._shutting_down = False

    def add(self, item: str) -> None:
        with self._cond:
            if self._shutting_down:
                return
            if item in self._dirty:
                return
            self._dirty.add(item)
            if item in self._processing:
                return
            self._queue.append(item)
            self._cond.notify()

    def get(self) -> Tuple[Optional[str], bool]:
        """Block until a key is available. Returns (key, shutdown)."""
        with self._cond:
            while not self._queue and not self._shutting_down:
                self._cond.wait()
            if self._shutting_down:
                return None, True
            item = self._queue.popleft()
            self._processing.add(item)
            self._dirty.discard(item)
            return item, False

    def done(self, item: str) -> None:
        """Mark a key as processed, requeueing it if it was re-added meanwhile."""
        with self._cond:
            self._processing.discard(item)
            if item in self._dirty:
                self._queue.append(item)
                self._cond.notify()

    def shut_down(self) -> None:
        with self._cond:
            self._shutting_down = True
            self._cond.notify_all()

    @property
    def shutting_down(self) -> bool:
        with self._cond:
            return self._shutting_down

    @property
    def in_flight(self) -> int:
        with self._cond:
            return len(self._processing)

    def __len__(self) -> int:
        with self._cond:
            return len(self._queue)


class DelayingQueue(WorkQueue):
    """WorkQueue that can hold keys back for a while before adding them."""

    def __init__(self, name: str = ""):
        super().__init__(name)
        self._waiting_cond = threading.Condition()
        self._waiting: List[Tuple[float, int, str]] = []
        self._ready_at: Dict[str, float] = {}
        self._seq = itertools.count()
        self._waiter: Optional[threading.Thread] = None

    def add_after(self, item: str, delay: float) -> None:
        if self.shutting_down:
            return
        if delay <= 0:
            self.add(item)
            return

        ready_at = time.monotonic() + delay
        with self._waiting_cond:
            self._ensure_waiter()
            # keep only the earliest pending deadline per key
            current = self._ready_at.get(item)
            if current is not None and current <= ready_at:
                return
            self._ready_at[item] = ready_at
            heapq.heappush(self._waiting, (ready_at, next(self._seq), item))
            self._waiting_cond.notify()

    def _ensure_waiter(self) -> None:
        # started on first use; exits on shut_down()
        if self._waiter is None:
            self._waiter = threading.Thread(
                target=self._waiting_loop,
                name=f"{self.name or 'workqueue'}-delay",
                daemon=True,
            )
            self._waiter.start()

    @property
    def waiting(self) -> int:
        with self._waiting_cond:
            return len(self._ready_at)

    def shut_down(self) -> None:
        super().shut_down()
        with self._waiting_cond:
            self._waiting_cond.notify_all()

    def _waiting_loop(self) -> None:
        with self._waiting_cond:
            while not self.shutting_down:
                now = time.monotonic()
                while self._waiting and self._waiting[0][0] <= now:
                    ready_at, _, item = heapq.heappop(self._waiting)
                    if self._ready_at.get(item) != ready_at:
                        continue
                    del self._ready_at[item]
                    self.add(item)

                timeout = self._waiting[0][0] - now if self._waiting else None
                self._waiting_cond.wait(timeout)


class RateLimitingQueue(DelayingQueue):
    """DelayingQueue whose requeues back off per key."""

    def __init__(
        self,
        rate_limiter: Optional[ItemExponentialFailureRateLimiter] = None,
        name: str = "",
    ):
        super().__init__(name)
        self.rate_limiter = rate_limiter or ItemExponentialFailureRateLimiter()

    def add_rate_limited(self, item: str) -> None:
        self.add_after(item, self.rate_limiter.when(item))

    def forget(self, item: str) -> None:
        """Reset the backoff for a key. Does not remove it from the queue."""
        self.rate_limiter.forget(item)

    def num_requeues(self, item: str) -> int:
        return self.rate_limiter.num_requeues(item)
