"""Platform integration model: shared third-party credentials."""
import enum
from typing import Any

from sqlalchemy import JSON, Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, created_at, updated_at, uuid_pk


class IntegrationCategory(str, enum.Enum):
    AI = "ai"
    ANALYTICS = "analytics"
    SEARCH = "search"
    CLOUD = "cloud"
    OTHER = "other"


class PlatformIntegration(Base):
    """
    Stores platform-level API keys for external services.

    Keys are shared by every package that requires the integration; packages
    fetch them from the platform instead of managing their own. Secret-bearing
    config values are encrypted at rest (see services.credential_store).
    """

    __tablename__ = "platform_integrations"

    id: Mapped[uuid_pk]
    integration_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    provider: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    icon: Mapped[str] = mapped_column(String(100), default="plug", nullable=False)
    category: Mapped[str] = mapped_column(String(20), default=IntegrationCategory.OTHER.value, nullable=False)

    # apiKey, projectId, region, endpoint + provider-specific fields
    config: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    # Independent of whether a key is present
    enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # Grown by seeding, never shrunk
    used_by_packages: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    updated_by: Mapped[str] = mapped_column(String(255), default="system", nullable=False)

    created_at: Mapped[created_at]
    updated_at: Mapped[updated_at]
