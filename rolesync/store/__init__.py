"""In-memory source and derived stores."""

from rolesync.store.events import EventHandler, EventSource
from rolesync.store.policy import PolicyStore
from rolesync.store.rbac import RBACRoleStore

__all__ = ["EventHandler", "EventSource", "PolicyStore", "RBACRoleStore"]
