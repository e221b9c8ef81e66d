"""Package installation model."""
import enum
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text, UniqueConstraint, func, text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, updated_at, uuid_pk


class InstallationStatus(str, enum.Enum):
    INSTALLING = "installing"
    ACTIVE = "active"
    DISABLED = "disabled"
    ERROR = "error"
    UNINSTALLING = "uninstalling"


class HealthStatus(str, enum.Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


class PackageInstallation(Base):
    """
    Tracks which packages are installed, org-wide or per tenant.

    tenant_id = NULL means the installation applies to the whole organization.
    At most one installation exists per (package_id, tenant_id). SQL treats
    NULLs as distinct in a unique constraint, so the org-wide scope gets its
    own partial unique index.
    """

    __tablename__ = "package_installations"
    __table_args__ = (
        UniqueConstraint("package_id", "tenant_id", name="uix_installation_package_tenant"),
        Index(
            "uix_installation_package_org",
            "package_id",
            unique=True,
            postgresql_where=text("tenant_id IS NULL"),
            sqlite_where=text("tenant_id IS NULL"),
        ),
    )

    id: Mapped[uuid_pk]
    package_id: Mapped[str] = mapped_column(
        String(100), ForeignKey("packages.package_id", ondelete="CASCADE"), nullable=False, index=True
    )
    tenant_id: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    status: Mapped[str] = mapped_column(
        String(20), default=InstallationStatus.INSTALLING.value, nullable=False
    )
    # Opaque per-installation settings, passed through unexamined
    config: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    # Snapshot of the package's features at install time
    enabled_features: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    installed_by: Mapped[str] = mapped_column(String(255), nullable=False)

    last_health_check: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    last_health_status: Mapped[str] = mapped_column(
        String(20), default=HealthStatus.UNKNOWN.value, nullable=False
    )
    error_message: Mapped[Optional[str]] = mapped_column(Text)

    installed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[updated_at]

    def __repr__(self) -> str:
        return f"<PackageInstallation {self.package_id} tenant={self.tenant_id} status={self.status}>"
