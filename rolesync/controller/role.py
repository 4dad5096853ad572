"""
Origin Role → RBAC Role controller.

Keeps one RBAC role per source role, converging on every key it is handed:

  neither exists        → nothing to do
  source gone           → delete the RBAC role (orphaning anything bound to it)
  RBAC role missing     → create it from the converted source role
  both exist, differ    → update, preserving the RBAC role's identity fields
  update rejected       → delete the RBAC role so the next sync recreates it

Source roles arrive embedded in Policy containers; the ingestion handlers
flatten them into a per-controller indexed cache and enqueue their keys.
"""

import threading
from typing import Any, Callable, Iterable, Optional, Protocol, Set

from rolesync.cache.indexer import Indexer
from rolesync.controller.generic import GenericController, naive_event_handler
from rolesync.convert import convert_role
from rolesync.errors import InvalidWriteError, MalformedInputError, NotFoundError
from rolesync.keys import key_for, split_key
from rolesync.log import get_module_logger
from rolesync.models.controller import ControllerConfig
from rolesync.models.derived import RBACRole
from rolesync.models.source import Policy, SourceRole, Tombstone, decode_deleted_policy
from rolesync.queue.rate_limiter import ItemExponentialFailureRateLimiter
from rolesync.queue.workqueue import RateLimitingQueue
from rolesync.store.events import EventHandler

logger = get_module_logger()


class Informer(Protocol):
    def add_event_handler(self, handler: EventHandler) -> None: ...

    def has_synced(self) -> bool: ...


class RBACRoleLister(Protocol):
    def get(self, namespace: str, name: str) -> RBACRole: ...


class RBACRoleClient(Protocol):
    def create(self, role: RBACRole) -> Any: ...

    def update(self, role: RBACRole) -> Any: ...

    def delete(self, namespace: str, name: str) -> None: ...


def semantic_equal(a: RBACRole, b: RBACRole) -> bool:
    """Field-by-field equality of two roles, nested models included."""
    return a.model_dump() == b.model_dump()


def _tombstone_namespace(obj: Any) -> Optional[str]:
    if isinstance(obj, Tombstone):
        key = obj.key
    elif isinstance(obj, dict) and obj.get("kind") == "tombstone":
        key = obj.get("key")
    else:
        return None
    if not isinstance(key, str):
        return None
    try:
        namespace, _ = split_key(key)
    except MalformedInputError:
        return None
    return namespace


def _lookup(getter: Callable[[str, str], Any], namespace: str, name: str) -> Optional[Any]:
    try:
        return getter(namespace, name)
    except NotFoundError:
        return None


class OriginToRBACRoleController:
    """Projects roles held in Policy containers onto RBAC roles."""

    def __init__(
        self,
        policy_informer: Informer,
        rbac_informer: Informer,
        rbac_client: RBACRoleClient,
        config: Optional[ControllerConfig] = None,
        rbac_lister: Optional[RBACRoleLister] = None,
    ):
        self.config = config or ControllerConfig()
        self.rbac_client = rbac_client
        self.rbac_lister = rbac_lister or rbac_informer
        self.origin_indexer: Indexer[SourceRole] = Indexer(kind="Role")

        self.queue = RateLimitingQueue(
            ItemExponentialFailureRateLimiter.from_config(self.config),
            name="origin-to-rbac-role",
        )
        self.controller = GenericController(
            name=self.config.name,
            sync_func=self.sync_role,
            caches_synced=lambda: rbac_informer.has_synced() and policy_informer.has_synced(),
            queue=self.queue,
            config=self.config,
        )

        rbac_informer.add_event_handler(naive_event_handler(self.queue))
        policy_informer.add_event_handler(self.policy_event_handler())

    def run(self, stop_event: threading.Event) -> None:
        self.controller.run(self.config.workers, stop_event)

    def enqueue(self, key: str) -> None:
        """Queue a key for reconciliation. Raises MalformedInputError on a bad key."""
        split_key(key)
        self.queue.add(key)

    # --- Reconcile ---

    def sync_role(self, key: str) -> None:
        namespace, name = split_key(key)

        rbac_role = _lookup(self.rbac_lister.get, namespace, name)
        origin_role = _lookup(self.origin_indexer.get, namespace, name)

        if rbac_role is None and origin_role is None:
            return

        if origin_role is None:
            # orphan on delete to minimize fan-out; bindings are not cleaned here
            logger.info("rbac_role_delete", namespace=namespace, name=name)
            try:
                self.rbac_client.delete(namespace, name)
            except NotFoundError:
                pass
            return

        # conversion may share structure with the cached source role
        equivalent_role = convert_role(origin_role).model_copy(deep=True)

        if rbac_role is None:
            equivalent_role.metadata.resource_version = ""
            logger.info("rbac_role_create", namespace=namespace, name=name)
            self.rbac_client.create(equivalent_role)
            return

        # store-owned fields never match a fresh conversion
        meta = equivalent_role.metadata
        meta.self_link = rbac_role.metadata.self_link
        meta.uid = rbac_role.metadata.uid
        meta.resource_version = rbac_role.metadata.resource_version
        meta.creation_timestamp = rbac_role.metadata.creation_timestamp

        if semantic_equal(equivalent_role, rbac_role):
            return

        logger.info("rbac_role_write", namespace=namespace, name=name)
        try:
            self.rbac_client.update(equivalent_role)
        except InvalidWriteError as e:
            # the existing role is wrong in a way update can't fix; drop it so
            # the next sync recreates it
            logger.warning(
                "rbac_role_update_invalid",
                namespace=namespace,
                name=name,
                error=str(e),
            )
            try:
                self.rbac_client.delete(namespace, name)
            except Exception as delete_err:
                logger.warning(
                    "rbac_role_self_heal_delete_failed",
                    namespace=namespace,
                    name=name,
                    error=str(delete_err),
                )
            raise

    # --- Ingestion ---

    def policy_event_handler(self) -> EventHandler:
        return EventHandler(
            on_add=self.on_policy_add,
            on_update=self.on_policy_update,
            on_delete=self.on_policy_delete,
        )

    def on_policy_add(self, policy: Policy) -> None:
        self._ingest(policy.roles.values())

    def on_policy_update(self, old: Policy, cur: Policy) -> None:
        current_keys = self._ingest(cur.roles.values())
        for role in old.roles.values():
            key = self._safe_key(role)
            if key is not None and key not in current_keys:
                self._evict_key(key)

    def on_policy_delete(self, obj: Any) -> None:
        try:
            policy = decode_deleted_policy(obj)
        except MalformedInputError as e:
            logger.error("policy_delete_undecodable", error=str(e))
            # the tombstone key still names the namespace the policy governed
            namespace = _tombstone_namespace(obj)
            if namespace is not None:
                self._evict(self.origin_indexer.by_namespace(namespace))
            return
        # one policy per namespace: anything still cached there belonged to it
        self._evict(policy.roles.values())
        self._evict(self.origin_indexer.by_namespace(policy.metadata.namespace))

    def _ingest(self, roles: Iterable[SourceRole]) -> Set[str]:
        """Cache and enqueue each role. Returns the keys handled."""
        keys = set()
        for role in roles:
            key = self._safe_key(role)
            if key is None:
                continue
            self.origin_indexer.add(role)
            self.queue.add(key)
            keys.add(key)
        return keys

    def _evict(self, roles: Iterable[SourceRole]) -> None:
        for role in roles:
            key = self._safe_key(role)
            if key is not None:
                self._evict_key(key)

    def _evict_key(self, key: str) -> None:
        self.origin_indexer.delete_by_key(key)
        self.queue.add(key)

    def _safe_key(self, role: SourceRole) -> Optional[str]:
        try:
            return key_for(role)
        except MalformedInputError as e:
            logger.error("role_key_failed", error=str(e))
            return None
