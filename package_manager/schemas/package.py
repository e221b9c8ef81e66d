"""Package registry schemas."""
import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from .common import CamelModel
from .installation import InstallationResponse


class PackagePermission(CamelModel):
    key: str
    label: str = ""
    description: str = ""
    category: str = ""


class PackageCreate(CamelModel):
    """
    Request to register a custom package.

    Required fields are checked by the registry, not by the schema, so
    a missing field is reported as a single validation message.
    """
    package_id: Optional[str] = None
    name: Optional[str] = None
    description: str = ""
    version: Optional[str] = None
    icon: Optional[str] = None
    category: Optional[str] = None
    service_url: Optional[str] = None
    port: Optional[int] = None
    base_path: Optional[str] = None
    health_endpoint: Optional[str] = None
    manifest_endpoint: Optional[str] = None
    required_integrations: list[str] = Field(default_factory=list)
    permissions: list[PackagePermission] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    documentation: Optional[str] = None


class PackageUpdate(CamelModel):
    """Admin edit. package_id and type are immutable."""
    name: Optional[str] = None
    description: Optional[str] = None
    version: Optional[str] = None
    icon: Optional[str] = None
    category: Optional[str] = None
    service_url: Optional[str] = None
    port: Optional[int] = None
    base_path: Optional[str] = None
    health_endpoint: Optional[str] = None
    manifest_endpoint: Optional[str] = None
    required_integrations: Optional[list[str]] = None
    permissions: Optional[list[PackagePermission]] = None
    features: Optional[list[str]] = None
    documentation: Optional[str] = None
    status: Optional[str] = None


class PackageResponse(CamelModel):
    id: uuid.UUID
    package_id: str
    name: str
    description: str
    version: str
    icon: str
    category: str
    type: str
    service_url: str
    port: int
    base_path: str
    health_endpoint: str
    manifest_endpoint: str
    required_integrations: list[str]
    permissions: list[PackagePermission]
    features: list[str]
    screenshots: list[str]
    author: str
    documentation: Optional[str]
    status: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class PackageListItem(PackageResponse):
    """Catalog entry with its org-wide installation state."""
    installed: bool = False
    installation_status: Optional[str] = None
    installation_id: Optional[uuid.UUID] = None


class PackageDetail(PackageResponse):
    installed: bool = False
    installation: Optional[InstallationResponse] = None


class InstallationWithPackage(InstallationResponse):
    package: Optional[PackageResponse] = None
