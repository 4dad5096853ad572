"""Change notification plumbing shared by the in-memory stores."""

from typing import Any, Callable, List, Optional


class EventHandler:
    """Callbacks for add/update/delete notifications. Any may be omitted."""

    def __init__(
        self,
        on_add: Optional[Callable[[Any], None]] = None,
        on_update: Optional[Callable[[Any, Any], None]] = None,
        on_delete: Optional[Callable[[Any], None]] = None,
    ):
        self.on_add = on_add
        self.on_update = on_update
        self.on_delete = on_delete


class EventSource:
    """Fan-out of notifications to registered handlers, plus a synced flag."""

    def __init__(self, synced: bool = True):
        self._handlers: List[EventHandler] = []
        self._synced = synced

    def add_event_handler(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    def has_synced(self) -> bool:
        return self._synced

    def mark_synced(self) -> None:
        self._synced = True

    def _notify_add(self, obj: Any) -> None:
        for handler in list(self._handlers):
            if handler.on_add:
                handler.on_add(obj)

    def _notify_update(self, old: Any, new: Any) -> None:
        for handler in list(self._handlers):
            if handler.on_update:
                handler.on_update(old, new)

    def _notify_delete(self, notification: Any) -> None:
        for handler in list(self._handlers):
            if handler.on_delete:
                handler.on_delete(notification)
