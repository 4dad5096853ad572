"""Controller configuration."""

from pydantic import BaseModel, Field


class ControllerConfig(BaseModel):
    """Configuration for a sync controller."""

    name: str = "OriginRoleToRBACRoleController"
    workers: int = Field(ge=1, default=1)
    base_delay_seconds: float = Field(gt=0, default=0.005)
    max_delay_seconds: float = Field(gt=0, default=1000.0)
    cache_sync_timeout_seconds: float = 60.0
    cache_sync_poll_seconds: float = 0.1
    log_level: str = "INFO"
    json_logs: bool = False
