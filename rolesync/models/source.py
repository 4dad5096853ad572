"""Source-of-truth models: policies and the roles they hold."""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from rolesync.errors import MalformedInputError
from rolesync.models.meta import ObjectMeta


class PolicyRule(BaseModel):
    """A single grant inside a source role."""

    verbs: List[str] = []
    api_groups: List[str] = []
    resources: List[str] = []
    resource_names: List[str] = []
    non_resource_urls: List[str] = []
    attribute_restrictions: Optional[Dict[str, Any]] = None


class SourceRole(BaseModel):
    """A named role as held by the source-of-truth store."""

    metadata: ObjectMeta
    rules: List[PolicyRule] = []


class Policy(BaseModel):
    """Container object: one policy per namespace, holding many roles."""

    metadata: ObjectMeta
    last_modified: Optional[datetime] = None
    roles: Dict[str, SourceRole] = {}


# --- Delete notifications ---

class LiveValue(BaseModel):
    """A deleted object delivered directly."""

    kind: Literal["live"] = "live"
    value: Any


class Tombstone(BaseModel):
    """A deleted object the watch cache had already evicted.

    Only the last value the watcher saw survives, and it may be stale.
    """

    kind: Literal["tombstone"] = "tombstone"
    key: str
    last_known: Any = None


DeleteNotification = Annotated[Union[LiveValue, Tombstone], Field(discriminator="kind")]

_notification_adapter = TypeAdapter(DeleteNotification)


def decode_deleted_policy(obj: Any) -> Policy:
    """Resolve a delete notification to the Policy it carried.

    Accepts a notification model or its dict form. Raises MalformedInputError
    when neither the live value nor the tombstone holds a decodable Policy.
    """
    try:
        notification = _notification_adapter.validate_python(obj)
    except ValidationError as e:
        raise MalformedInputError(f"couldn't decode delete notification {obj!r}") from e

    if notification.kind == "live":
        payload = notification.value
    else:
        payload = notification.last_known

    if isinstance(payload, Policy):
        return payload
    try:
        return Policy.model_validate(payload)
    except ValidationError as e:
        raise MalformedInputError(
            f"{notification.kind} notification does not hold a policy: {payload!r}"
        ) from e
