"""
rolesync API: FastAPI endpoints.

Operational surface for a running controller:
- Health and cache sync status
- Queue inspection
- Manual reconciliation of a key
- Policy ingestion into the in-memory source store
- Derived role inspection
"""

import threading
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from rolesync.controller.role import OriginToRBACRoleController
from rolesync.errors import MalformedInputError, NotFoundError
from rolesync.log import configure_logging, get_module_logger
from rolesync.models.controller import ControllerConfig
from rolesync.models.source import Policy
from rolesync.store.policy import PolicyStore
from rolesync.store.rbac import RBACRoleStore

logger = get_module_logger()


# --- Response Models ---

class HealthResponse(BaseModel):
    status: str
    caches_synced: bool


class QueueResponse(BaseModel):
    depth: int
    in_flight: int
    waiting: int
    cached_roles: int


class ReconcileResponse(BaseModel):
    key: str
    queued: bool
    result: Optional[str] = None


# --- Application Factory ---

def create_app(
    policy_store: Optional[PolicyStore] = None,
    rbac_store: Optional[RBACRoleStore] = None,
    config: Optional[ControllerConfig] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The controller runs in a background thread for the lifetime of the app
    and drains its in-flight keys on shutdown.
    """

    config = config or ControllerConfig()
    configure_logging(config.log_level, config.json_logs)

    ps = policy_store or PolicyStore()
    rs = rbac_store or RBACRoleStore()
    controller = OriginToRBACRoleController(
        policy_informer=ps,
        rbac_informer=rs,
        rbac_client=rs,
        config=config,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        stop_event = threading.Event()
        runner = threading.Thread(
            target=controller.run,
            args=(stop_event,),
            name=f"{config.name}-runner",
            daemon=True,
        )
        runner.start()
        try:
            yield
        finally:
            stop_event.set()
            runner.join()

    app = FastAPI(
        title="rolesync API",
        description="Policy role to RBAC role sync controller",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.policy_store = ps
    app.state.rbac_store = rs
    app.state.controller = controller

    # === STATUS ===

    @app.get("/healthz", response_model=HealthResponse)
    def healthz():
        return HealthResponse(
            status=controller.controller.status,
            caches_synced=controller.controller.caches_synced(),
        )

    @app.get("/queue", response_model=QueueResponse)
    def queue_status():
        queue = controller.queue
        return QueueResponse(
            depth=len(queue),
            in_flight=queue.in_flight,
            waiting=queue.waiting,
            cached_roles=len(controller.origin_indexer),
        )

    # === RECONCILER CONTROL ===

    @app.post("/reconcile/{key:path}", response_model=ReconcileResponse)
    def reconcile(key: str, now: bool = False):
        """Queue a key, or with ?now=true converge it inline."""
        if not now:
            try:
                controller.enqueue(key)
            except MalformedInputError as e:
                raise HTTPException(400, str(e))
            return ReconcileResponse(key=key, queued=True)

        try:
            controller.sync_role(key)
        except MalformedInputError as e:
            raise HTTPException(400, str(e))
        except Exception as e:
            logger.warning("manual_sync_failed", key=key, error=str(e))
            raise HTTPException(502, f"{type(e).__name__}: {e}")
        return ReconcileResponse(key=key, queued=False, result="converged")

    # === SOURCE POLICIES ===

    @app.put("/policies")
    def put_policy(policy: Policy):
        """Create or replace a policy in the source store."""
        try:
            stored = ps.put(policy)
        except MalformedInputError as e:
            raise HTTPException(400, str(e))
        return stored.model_dump(mode="json")

    @app.delete("/policies/{namespace}/{name}")
    def delete_policy(namespace: str, name: str):
        removed = ps.remove(namespace, name)
        if removed is None:
            raise HTTPException(404, "Policy not found")
        return {"deleted": f"{namespace}/{name}"}

    # === DERIVED ROLES ===

    @app.get("/roles/{namespace}/{name}")
    def get_role(namespace: str, name: str):
        try:
            return rs.get(namespace, name).model_dump(mode="json")
        except NotFoundError:
            raise HTTPException(404, "Role not found")

    @app.get("/roles")
    def list_roles(namespace: str = ""):
        return [r.model_dump(mode="json") for r in rs.list(namespace)]

    return app
