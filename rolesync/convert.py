"""
Converter from source roles to RBAC roles.

Pure: builds fresh objects, never shares lists or dicts with its input, and
leaves store-owned identity fields at their defaults.
"""

from typing import Iterable, List

from rolesync.errors import ConversionError
from rolesync.models.derived import RBACPolicyRule, RBACRole
from rolesync.models.meta import ObjectMeta
from rolesync.models.source import PolicyRule, SourceRole


def _as_set(values: Iterable[str]) -> List[str]:
    return sorted(set(values))


def convert_rule(rule: PolicyRule) -> RBACPolicyRule:
    """Convert a single source rule."""
    if rule.attribute_restrictions:
        raise ConversionError("attribute restrictions are not supported in RBAC rules")
    return RBACPolicyRule(
        verbs=_as_set(rule.verbs),
        api_groups=_as_set(rule.api_groups),
        resources=_as_set(rule.resources),
        resource_names=_as_set(rule.resource_names),
        non_resource_urls=_as_set(rule.non_resource_urls),
    )


def convert_role(role: SourceRole) -> RBACRole:
    """Convert a source role into the RBAC shape."""
    try:
        rules = [convert_rule(rule) for rule in role.rules]
    except ConversionError as e:
        raise ConversionError(
            f"role {role.metadata.namespace}/{role.metadata.name}: {e}"
        ) from e

    return RBACRole(
        metadata=ObjectMeta(
            name=role.metadata.name,
            namespace=role.metadata.namespace,
            labels=dict(role.metadata.labels),
            annotations=dict(role.metadata.annotations),
        ),
        rules=rules,
    )
