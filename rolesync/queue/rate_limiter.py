"""Per-item backoff for failed work."""

import threading
from typing import Dict

from rolesync.models.controller import ControllerConfig


class ItemExponentialFailureRateLimiter:
    """
    Exponential backoff per item: base_delay * 2^failures, capped at max_delay.

    Failures accumulate until forget() is called for the item. There is no
    retry limit.
    """

    def __init__(self, base_delay: float = 0.005, max_delay: float = 1000.0):
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._failures: Dict[str, int] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: ControllerConfig) -> "ItemExponentialFailureRateLimiter":
        return cls(config.base_delay_seconds, config.max_delay_seconds)

    def when(self, item: str) -> float:
        """Record a failure for item and return how long to wait before retrying."""
        with self._lock:
            exp = self._failures.get(item, 0)
            self._failures[item] = exp + 1

        # 2^64 already dwarfs any sane cap
        if exp >= 64:
            return self.max_delay
        return min(self.base_delay * (2 ** exp), self.max_delay)

    def num_requeues(self, item: str) -> int:
        with self._lock:
            return self._failures.get(item, 0)

    def forget(self, item: str) -> None:
        with self._lock:
            self._failures.pop(item, None)
