"""
Key encoding for cached objects.

"<namespace>/<name>" for namespaced objects, "<name>" otherwise. format_key and
split_key are the only producers and consumers of keys, so every key round-trips.
"""

from typing import Any, Tuple

from rolesync.errors import MalformedInputError


def format_key(namespace: str, name: str) -> str:
    """Build the key for (namespace, name)."""
    if not name:
        raise MalformedInputError("object has no name")
    if "/" in name or "/" in namespace:
        raise MalformedInputError(
            f"namespace {namespace!r} and name {name!r} must not contain '/'"
        )
    if namespace:
        return f"{namespace}/{name}"
    return name


def split_key(key: str) -> Tuple[str, str]:
    """Parse a key into (namespace, name)."""
    parts = key.split("/")
    if len(parts) == 1:
        namespace, name = "", parts[0]
    elif len(parts) == 2:
        namespace, name = parts
    else:
        raise MalformedInputError(f"unexpected key format: {key!r}")
    if not name:
        raise MalformedInputError(f"key {key!r} has an empty name")
    return namespace, name


def key_for(obj: Any) -> str:
    """Key of any object carrying a `metadata` with namespace and name."""
    metadata = getattr(obj, "metadata", None)
    if metadata is None:
        raise MalformedInputError(f"object has no metadata: {obj!r}")
    return format_key(metadata.namespace, metadata.name)
