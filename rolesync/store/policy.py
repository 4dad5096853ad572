"""
Policy Store: in-memory source-of-truth store of Policy containers.

Stands in for the watch cache of the source API: writes are announced to
registered handlers, deletes arrive wrapped in a LiveValue.
"""

import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

from rolesync.keys import format_key, key_for
from rolesync.models.source import LiveValue, Policy
from rolesync.store.events import EventSource


class PolicyStore(EventSource):
    """In-memory Policy store with change notifications."""

    def __init__(self, synced: bool = True):
        super().__init__(synced=synced)
        self._lock = threading.Lock()
        self._policies: Dict[str, Policy] = {}

    def put(self, policy: Policy) -> Policy:
        """Create or replace a policy and notify handlers."""
        stored = policy.model_copy(deep=True)
        stored.last_modified = datetime.now(timezone.utc)
        key = key_for(stored)
        with self._lock:
            old = self._policies.get(key)
            self._policies[key] = stored

        if old is None:
            self._notify_add(stored)
        else:
            self._notify_update(old, stored)
        return stored

    def remove(self, namespace: str, name: str) -> Optional[Policy]:
        """Delete a policy. Returns the removed policy, or None."""
        with self._lock:
            old = self._policies.pop(format_key(namespace, name), None)
        if old is not None:
            self._notify_delete(LiveValue(value=old))
        return old

    def get(self, namespace: str, name: str) -> Optional[Policy]:
        with self._lock:
            return self._policies.get(format_key(namespace, name))

    def list(self) -> List[Policy]:
        with self._lock:
            return list(self._policies.values())
