"""rolesync data models."""

from rolesync.models.controller import ControllerConfig
from rolesync.models.derived import RBACPolicyRule, RBACRole
from rolesync.models.meta import ObjectMeta
from rolesync.models.source import (
    DeleteNotification,
    LiveValue,
    Policy,
    PolicyRule,
    SourceRole,
    Tombstone,
    decode_deleted_policy,
)

__all__ = [
    "ControllerConfig",
    "DeleteNotification",
    "LiveValue",
    "ObjectMeta",
    "Policy",
    "PolicyRule",
    "RBACPolicyRule",
    "RBACRole",
    "SourceRole",
    "Tombstone",
    "decode_deleted_policy",
]
