"""
RBAC Role Store: in-memory derived store.

Serves as both the lister (reads) and the write client of the controller.
Behaves like an API server for the fields the controller cares about:

- create assigns uid, resource_version, creation_timestamp and self_link,
  and rejects objects that already carry a resource_version
- update requires the current resource_version and unchanged uid and
  creation_timestamp; registered validators can reject further changes
- delete of a missing role raises NotFoundError
- reads return deep copies
"""

import itertools
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List
from uuid import uuid4

from rolesync.errors import (
    AlreadyExistsError,
    ConflictError,
    InvalidWriteError,
    NotFoundError,
)
from rolesync.keys import format_key, key_for
from rolesync.models.derived import RBACRole
from rolesync.models.source import LiveValue
from rolesync.store.events import EventSource

KIND = "RBACRole"

Validator = Callable[[RBACRole, RBACRole], None]


def self_link_for(namespace: str, name: str) -> str:
    if namespace:
        return f"/apis/rbac.authorization.k8s.io/v1/namespaces/{namespace}/roles/{name}"
    return f"/apis/rbac.authorization.k8s.io/v1/roles/{name}"


class RBACRoleStore(EventSource):
    """In-memory RBAC role store with change notifications."""

    def __init__(self, synced: bool = True):
        super().__init__(synced=synced)
        self._lock = threading.Lock()
        self._roles: Dict[str, RBACRole] = {}
        self._versions = itertools.count(1)
        self._validators: List[Validator] = []

    def add_validator(self, validator: Validator) -> None:
        """Register a check run on every update as validator(old, new).

        Validators signal rejection by raising InvalidWriteError.
        """
        self._validators.append(validator)

    # --- Reads ---

    def get(self, namespace: str, name: str) -> RBACRole:
        with self._lock:
            role = self._roles.get(format_key(namespace, name))
            if role is None:
                raise NotFoundError(KIND, namespace, name)
            return role.model_copy(deep=True)

    def list(self, namespace: str = "") -> List[RBACRole]:
        with self._lock:
            roles = [
                r for r in self._roles.values()
                if not namespace or r.metadata.namespace == namespace
            ]
            return [r.model_copy(deep=True) for r in roles]

    # --- Writes ---

    def create(self, role: RBACRole) -> RBACRole:
        if role.metadata.resource_version:
            raise InvalidWriteError(
                "resource_version should not be set on objects to be created",
                field="metadata.resource_version",
            )
        key = key_for(role)
        stored = role.model_copy(deep=True)
        with self._lock:
            if key in self._roles:
                raise AlreadyExistsError(f"{KIND} {key!r} already exists")
            meta = stored.metadata
            meta.uid = str(uuid4())
            meta.resource_version = str(next(self._versions))
            meta.creation_timestamp = datetime.now(timezone.utc)
            meta.self_link = self_link_for(meta.namespace, meta.name)
            self._roles[key] = stored
            result = stored.model_copy(deep=True)

        self._notify_add(result)
        return result

    def update(self, role: RBACRole) -> RBACRole:
        key = key_for(role)
        meta = role.metadata
        with self._lock:
            old = self._roles.get(key)
            if old is None:
                raise NotFoundError(KIND, meta.namespace, meta.name)
            if meta.uid and meta.uid != old.metadata.uid:
                raise InvalidWriteError(f"{KIND} {key!r}: uid is immutable", field="metadata.uid")
            if meta.creation_timestamp and meta.creation_timestamp != old.metadata.creation_timestamp:
                raise InvalidWriteError(
                    f"{KIND} {key!r}: creation_timestamp is immutable",
                    field="metadata.creation_timestamp",
                )
            if meta.resource_version and meta.resource_version != old.metadata.resource_version:
                raise ConflictError(
                    f"{KIND} {key!r}: resource_version {meta.resource_version} is stale, "
                    f"current is {old.metadata.resource_version}"
                )
            for validator in self._validators:
                validator(old, role)

            stored = role.model_copy(deep=True)
            stored.metadata.uid = old.metadata.uid
            stored.metadata.creation_timestamp = old.metadata.creation_timestamp
            stored.metadata.self_link = old.metadata.self_link
            stored.metadata.resource_version = str(next(self._versions))
            self._roles[key] = stored
            result = stored.model_copy(deep=True)
            previous = old.model_copy(deep=True)

        self._notify_update(previous, result)
        return result

    def delete(self, namespace: str, name: str) -> None:
        with self._lock:
            old = self._roles.pop(format_key(namespace, name), None)
        if old is None:
            raise NotFoundError(KIND, namespace, name)
        self._notify_delete(LiveValue(value=old))
