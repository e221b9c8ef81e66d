"""Package model for the catalog of installable services."""
import enum
from typing import Any, Optional

from sqlalchemy import JSON, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, created_at, updated_at, uuid_pk


class PackageType(str, enum.Enum):
    BUILTIN = "builtin"
    MARKETPLACE = "marketplace"
    CUSTOM = "custom"


class PackageStatus(str, enum.Enum):
    AVAILABLE = "available"
    DEPRECATED = "deprecated"


class Package(Base):
    """
    A registered package in the catalog.

    Built-in packages are seeded on startup and can never be deleted.
    Marketplace / custom packages are registered through the admin API.
    The package's backend runs elsewhere; this row only records where it
    lives (service_url + base_path) and how to probe it (health_endpoint).
    """

    __tablename__ = "packages"

    id: Mapped[uuid_pk]
    package_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    version: Mapped[str] = mapped_column(String(50), nullable=False)
    icon: Mapped[str] = mapped_column(String(100), default="package", nullable=False)
    category: Mapped[str] = mapped_column(String(100), default="general", nullable=False)
    type: Mapped[str] = mapped_column(String(20), default=PackageType.MARKETPLACE.value, nullable=False)

    # Where the package's backend lives
    service_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    port: Mapped[int] = mapped_column(Integer, nullable=False)
    base_path: Mapped[str] = mapped_column(String(255), nullable=False)
    health_endpoint: Mapped[str] = mapped_column(String(255), default="/health", nullable=False)
    manifest_endpoint: Mapped[str] = mapped_column(String(255), default="/manifest", nullable=False)

    # Integration ids this package depends on, e.g. ["anthropic", "ahrefs"]
    required_integrations: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    # Ordered list of {key, label, description, category}
    permissions: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    features: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    screenshots: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    author: Mapped[str] = mapped_column(String(255), default="HydroBOS", nullable=False)
    documentation: Mapped[Optional[str]] = mapped_column(String(1024), default="")
    status: Mapped[str] = mapped_column(String(20), default=PackageStatus.AVAILABLE.value, nullable=False)

    created_at: Mapped[created_at]
    updated_at: Mapped[updated_at]

    @property
    def is_builtin(self) -> bool:
        return self.type == PackageType.BUILTIN.value

    @property
    def health_url(self) -> str:
        return f"{self.service_url}{self.health_endpoint}"
