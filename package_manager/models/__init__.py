from .base import Base
from .installation import HealthStatus, InstallationStatus, PackageInstallation
from .integration import IntegrationCategory, PlatformIntegration
from .package import Package, PackageStatus, PackageType

__all__ = [
    "Base",
    "Package",
    "PackageStatus",
    "PackageType",
    "PackageInstallation",
    "InstallationStatus",
    "HealthStatus",
    "PlatformIntegration",
    "IntegrationCategory",
]
