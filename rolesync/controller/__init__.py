"""Sync controllers."""

from rolesync.controller.generic import GenericController, naive_event_handler
from rolesync.controller.role import OriginToRBACRoleController, semantic_equal

__all__ = [
    "GenericController",
    "OriginToRBACRoleController",
    "naive_event_handler",
    "semantic_equal",
]
