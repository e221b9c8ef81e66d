"""Installation schemas."""
import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from .common import CamelModel


class InstallRequest(CamelModel):
    package_id: Optional[str] = None
    tenant_id: Optional[str] = None
    config: dict[str, Any] = Field(default_factory=dict)


class UninstallRequest(CamelModel):
    package_id: Optional[str] = None
    tenant_id: Optional[str] = None


class InstallationStatusUpdate(CamelModel):
    status: str


class InstallationResponse(CamelModel):
    id: uuid.UUID
    package_id: str
    tenant_id: Optional[str]
    status: str
    config: dict[str, Any]
    enabled_features: list[str]
    installed_by: str
    last_health_check: Optional[datetime]
    last_health_status: str
    error_message: Optional[str]
    installed_at: Optional[datetime]
    updated_at: Optional[datetime]


class HealthCheckResponse(CamelModel):
    status: str
    service_response: Optional[Any] = None
    error: Optional[str] = None
    checked_at: datetime
    response_time_ms: Optional[float] = None
