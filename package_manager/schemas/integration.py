"""Platform integration schemas.

Read responses are always built from masked config; the only schema that
carries a raw key is IntegrationKeyResponse.
"""
import uuid
from datetime import datetime
from typing import Any, Optional

from .common import CamelModel


class IntegrationResponse(CamelModel):
    id: uuid.UUID
    integration_id: str
    name: str
    provider: str
    description: str
    icon: str
    category: str
    config: dict[str, Any]  # masked
    configured: bool
    enabled: bool
    used_by_packages: list[str]
    updated_by: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class IntegrationUpdate(CamelModel):
    """Partial update: omitted config keys keep their stored values."""
    config: Optional[dict[str, Any]] = None
    enabled: Optional[bool] = None


class IntegrationUpdateResponse(CamelModel):
    integration_id: str
    name: str
    enabled: bool
    configured: bool


class IntegrationKeyResponse(CamelModel):
    integration_id: str
    api_key: str
    config: dict[str, Any]


class IntegrationTestResult(CamelModel):
    success: bool
    message: str
    details: Optional[dict[str, Any]] = None
