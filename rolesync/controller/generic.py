"""
Generic controller skeleton.

Drives a pluggable sync function from a rate-limited work queue:

  key → sync_func(key) → success: forget backoff
                       → MalformedInputError: log, drop
                       → any other error: log, requeue with backoff

One worker handles a given key at a time; distinct keys sync concurrently.
"""

import threading
import time
from typing import Any, Callable, List, Optional

from rolesync.errors import MalformedInputError
from rolesync.keys import key_for, split_key
from rolesync.log import get_module_logger
from rolesync.models.controller import ControllerConfig
from rolesync.models.source import LiveValue, Tombstone
from rolesync.queue.workqueue import RateLimitingQueue, WorkQueue
from rolesync.store.events import EventHandler

logger = get_module_logger()


class GenericController:
    """Runs worker threads that feed queued keys to a sync function."""

    def __init__(
        self,
        name: str,
        sync_func: Callable[[str], None],
        caches_synced: Callable[[], bool],
        queue: RateLimitingQueue,
        config: Optional[ControllerConfig] = None,
    ):
        self.name = name
        self.sync_func = sync_func
        self.caches_synced = caches_synced
        self.queue = queue
        self.config = config or ControllerConfig(name=name)
        self._workers: List[threading.Thread] = []
        self._running = False

    @property
    def status(self) -> str:
        return "running" if self._running else "stopped"

    def run(self, workers: int, stop_event: threading.Event) -> None:
        """Sync keys until stop_event is set.

        Returns early, without starting workers, if the caches never sync.
        In-flight keys finish before run() returns.
        """
        logger.info("controller_starting", controller=self.name, workers=workers)
        try:
            if not self.wait_for_cache_sync(stop_event):
                logger.error("cache_sync_failed", controller=self.name)
                return

            self._running = True
            for i in range(workers):
                worker = threading.Thread(
                    target=self.run_worker,
                    name=f"{self.name}-worker-{i}",
                    daemon=True,
                )
                worker.start()
                self._workers.append(worker)

            stop_event.wait()
        finally:
            self.queue.shut_down()
            for worker in self._workers:
                worker.join()
            self._workers = []
            self._running = False
            logger.info("controller_stopped", controller=self.name)

    def wait_for_cache_sync(self, stop_event: threading.Event) -> bool:
        deadline = time.monotonic() + self.config.cache_sync_timeout_seconds
        while not self.caches_synced():
            if stop_event.is_set() or time.monotonic() >= deadline:
                return False
            stop_event.wait(self.config.cache_sync_poll_seconds)
        return True

    def run_worker(self) -> None:
        while self.process_next_work_item():
            pass

    def process_next_work_item(self) -> bool:
        """Handle one key. Returns False once the queue is shut down."""
        key, shutdown = self.queue.get()
        if shutdown:
            return False

        try:
            self.sync_func(key)
        except MalformedInputError as e:
            logger.error("sync_dropped", controller=self.name, key=key, error=str(e))
            self.queue.forget(key)
        except Exception as e:
            logger.warning(
                "sync_failed",
                controller=self.name,
                key=key,
                error=str(e),
                error_type=type(e).__name__,
                requeues=self.queue.num_requeues(key),
            )
            self.queue.add_rate_limited(key)
        else:
            self.queue.forget(key)
        finally:
            self.queue.done(key)
        return True


def delete_key(notification: Any) -> str:
    """Key of the object carried by a delete notification."""
    if isinstance(notification, Tombstone):
        split_key(notification.key)
        return notification.key
    if isinstance(notification, LiveValue):
        return key_for(notification.value)
    return key_for(notification)


def naive_event_handler(queue: WorkQueue) -> EventHandler:
    """Enqueue the key of every object that changes."""

    def enqueue(key_func: Callable[[Any], str], obj: Any) -> None:
        try:
            queue.add(key_func(obj))
        except MalformedInputError as e:
            logger.error("event_key_failed", error=str(e))

    return EventHandler(
        on_add=lambda obj: enqueue(key_for, obj),
        on_update=lambda old, cur: enqueue(key_for, cur),
        on_delete=lambda obj: enqueue(delete_key, obj),
    )
