"""
Error taxonomy for the sync controller.

- NotFoundError: a lookup found nothing. Selects the create/delete branch.
- TransientStoreError: network/server failures. Requeued with backoff.
- InvalidWriteError: the derived store rejected a write as invalid.
- MalformedInputError: unusable input. Logged and dropped, never requeued.
"""

from typing import Optional


class RoleSyncError(Exception):
    """Base class for all sync errors."""
    pass


class NotFoundError(RoleSyncError):
    """The requested object does not exist."""

    def __init__(self, kind: str, namespace: str, name: str):
        self.kind = kind
        self.namespace = namespace
        self.name = name
        where = f"{namespace}/{name}" if namespace else name
        super().__init__(f"{kind} {where!r} not found")


class TransientStoreError(RoleSyncError):
    """A store call failed in a way that may succeed on retry."""
    pass


class AlreadyExistsError(TransientStoreError):
    """Create collided with an existing object."""
    pass


class ConflictError(TransientStoreError):
    """Update was based on a stale resource version."""
    pass


class InvalidWriteError(RoleSyncError):
    """The store rejected a write as semantically invalid."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class MalformedInputError(RoleSyncError):
    """Input that cannot be processed no matter how often it is retried."""
    pass


class ConversionError(MalformedInputError):
    """A source role has no equivalent in the derived shape."""
    pass
