"""Derived store models: RBAC roles."""

from typing import List

from pydantic import BaseModel

from rolesync.models.meta import ObjectMeta


class RBACPolicyRule(BaseModel):
    """A grant in RBAC shape."""

    verbs: List[str] = []
    api_groups: List[str] = []
    resources: List[str] = []
    resource_names: List[str] = []
    non_resource_urls: List[str] = []


class RBACRole(BaseModel):
    """A namespaced RBAC role."""

    metadata: ObjectMeta
    rules: List[RBACPolicyRule] = []
