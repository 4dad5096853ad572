"""Rate-limited work queue for controller keys."""

from rolesync.queue.rate_limiter import ItemExponentialFailureRateLimiter
from rolesync.queue.workqueue import DelayingQueue, RateLimitingQueue, WorkQueue

__all__ = [
    "DelayingQueue",
    "ItemExponentialFailureRateLimiter",
    "RateLimitingQueue",
    "WorkQueue",
]
