"""Tests for the FastAPI API endpoints."""

import time

import pytest
from fastapi.testclient import TestClient

from rolesync.api.app import create_app
from rolesync.errors import InvalidWriteError
from rolesync.models.controller import ControllerConfig
from rolesync.store.policy import PolicyStore
from rolesync.store.rbac import RBACRoleStore


def _wait_for(predicate, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def _policy_payload(namespace="a", roles=("r1",)):
    return {
        "metadata": {"namespace": namespace, "name": "default"},
        "roles": {
            name: {
                "metadata": {"namespace": namespace, "name": name},
                "rules": [{"verbs": ["get"], "resources": ["pods"]}],
            }
            for name in roles
        },
    }


@pytest.fixture
def app():
    return create_app(
        policy_store=PolicyStore(),
        rbac_store=RBACRoleStore(),
        config=ControllerConfig(base_delay_seconds=0.001),
    )


@pytest.fixture
def client(app):
    return TestClient(app)


class TestStatusEndpoints:
    def test_healthz(self, client):
        response = client.get("/healthz")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "stopped"
        assert data["caches_synced"] is True

    def test_healthz_reports_unsynced_caches(self):
        client = TestClient(create_app(policy_store=PolicyStore(synced=False)))
        assert client.get("/healthz").json()["caches_synced"] is False

    def test_queue_reflects_ingested_roles(self, client):
        client.put("/policies", json=_policy_payload(roles=("r1", "r2")))

        data = client.get("/queue").json()
        assert data["depth"] == 2
        assert data["in_flight"] == 0
        assert data["cached_roles"] == 2


class TestReconcileEndpoints:
    def test_enqueue_key(self, client, app):
        response = client.post("/reconcile/a/r1")
        assert response.status_code == 200
        assert response.json() == {"key": "a/r1", "queued": True, "result": None}
        assert len(app.state.controller.queue) == 1

    def test_enqueue_malformed_key(self, client):
        response = client.post("/reconcile/a/b/c")
        assert response.status_code == 400

    def test_reconcile_now_creates_role(self, client):
        client.put("/policies", json=_policy_payload())

        response = client.post("/reconcile/a/r1", params={"now": True})
        assert response.status_code == 200
        assert response.json()["result"] == "converged"

        role = client.get("/roles/a/r1").json()
        assert role["metadata"]["uid"]
        assert role["rules"][0]["verbs"] == ["get"]

    def test_reconcile_now_reports_store_errors(self, client, app):
        def reject_all(old, new):
            raise InvalidWriteError("frozen")

        client.put("/policies", json=_policy_payload())
        client.post("/reconcile/a/r1", params={"now": True})
        app.state.rbac_store.add_validator(reject_all)
        payload = _policy_payload()
        payload["roles"]["r1"]["rules"][0]["verbs"] = ["list"]
        client.put("/policies", json=payload)

        response = client.post("/reconcile/a/r1", params={"now": True})
        assert response.status_code == 502
        assert "InvalidWriteError" in response.json()["detail"]
        # self-heal removed the stale role
        assert client.get("/roles/a/r1").status_code == 404


class TestPolicyAndRoleEndpoints:
    def test_put_policy_without_name(self, client):
        payload = _policy_payload()
        payload["metadata"]["name"] = ""
        assert client.put("/policies", json=payload).status_code == 400

    def test_delete_policy(self, client, app):
        client.put("/policies", json=_policy_payload())

        response = client.delete("/policies/a/default")
        assert response.status_code == 200
        assert len(app.state.controller.origin_indexer) == 0

        assert client.delete("/policies/a/default").status_code == 404

    def test_get_missing_role(self, client):
        assert client.get("/roles/a/missing").status_code == 404

    def test_list_roles(self, client):
        client.put("/policies", json=_policy_payload(roles=("r1", "r2")))
        client.post("/reconcile/a/r1", params={"now": True})
        client.post("/reconcile/a/r2", params={"now": True})

        assert len(client.get("/roles").json()) == 2
        assert client.get("/roles", params={"namespace": "b"}).json() == []


class TestRunningController:
    def test_put_policy_converges_without_manual_reconcile(self, app):
        """With the app running, ingested roles reach the derived store on their own."""
        with TestClient(app) as client:
            client.put("/policies", json=_policy_payload(roles=("r1", "r2")))

            assert _wait_for(lambda: client.get("/roles/a/r1").status_code == 200)
            assert _wait_for(lambda: client.get("/roles/a/r2").status_code == 200)
            assert client.get("/healthz").json()["status"] == "running"

            client.delete("/policies/a/default")
            assert _wait_for(lambda: client.get("/roles").json() == [])

        controller = app.state.controller
        assert controller.controller.status == "stopped"
        assert controller.queue.shutting_down
