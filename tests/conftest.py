"""Shared fixtures: a scriptable derived store and role builders."""

from typing import Dict, List, Tuple

import pytest

from rolesync.controller.role import OriginToRBACRoleController
from rolesync.errors import NotFoundError
from rolesync.keys import format_key, key_for
from rolesync.log import configure_logging
from rolesync.models.controller import ControllerConfig
from rolesync.models.derived import RBACRole
from rolesync.store.policy import PolicyStore
from rolesync.store.rbac import RBACRoleStore

configure_logging()


class FakeRBACClient:
    """Derived store that records every write and can be told to fail.

    Set errors["get" | "create" | "update" | "delete"] to an exception to make
    that call raise it. Writes that fail are still recorded.
    """

    def __init__(self, roles=()):
        self.roles: Dict[str, RBACRole] = {key_for(r): r.model_copy(deep=True) for r in roles}
        self.calls: List[Tuple[str, object]] = []
        self.errors: Dict[str, Exception] = {}

    @property
    def ops(self) -> List[str]:
        return [op for op, _ in self.calls]

    def get(self, namespace: str, name: str) -> RBACRole:
        if "get" in self.errors:
            raise self.errors["get"]
        role = self.roles.get(format_key(namespace, name))
        if role is None:
            raise NotFoundError("RBACRole", namespace, name)
        return role.model_copy(deep=True)

    def create(self, role: RBACRole) -> RBACRole:
        self.calls.append(("create", role.model_copy(deep=True)))
        if "create" in self.errors:
            raise self.errors["create"]
        self.roles[key_for(role)] = role.model_copy(deep=True)
        return role

    def update(self, role: RBACRole) -> RBACRole:
        self.calls.append(("update", role.model_copy(deep=True)))
        if "update" in self.errors:
            raise self.errors["update"]
        self.roles[key_for(role)] = role.model_copy(deep=True)
        return role

    def delete(self, namespace: str, name: str) -> None:
        key = format_key(namespace, name)
        self.calls.append(("delete", key))
        if "delete" in self.errors:
            raise self.errors["delete"]
        if key not in self.roles:
            raise NotFoundError("RBACRole", namespace, name)
        del self.roles[key]


@pytest.fixture
def fake_client():
    return FakeRBACClient()


@pytest.fixture
def controller(fake_client):
    """Controller whose derived reads and writes go to fake_client."""
    controller = OriginToRBACRoleController(
        policy_informer=PolicyStore(),
        rbac_informer=RBACRoleStore(),
        rbac_client=fake_client,
        rbac_lister=fake_client,
        config=ControllerConfig(base_delay_seconds=0.001),
    )
    yield controller
    controller.queue.shut_down()
