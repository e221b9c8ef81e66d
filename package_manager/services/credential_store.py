"""
Credential store for platform integrations.

Holds per-integration config (API keys and provider metadata), encrypts
secret-bearing values at rest, and masks them on every read path. The raw
form leaves this module only through get_key_for_consumption().
"""
import logging
from typing import Any, Optional

from cryptography.fernet import InvalidToken
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from package_manager.core.encryption import EncryptionService, encryption_service
from package_manager.core.exceptions import NotFoundError
from package_manager.models import PlatformIntegration

logger = logging.getLogger(__name__)

MASK_PREFIX = "•" * 8
SECRET_MARKERS = ("key", "secret")


def is_secret_field(name: str) -> bool:
    """A config field is secret if its name contains "key" or "secret"."""
    lowered = name.lower()
    return any(marker in lowered for marker in SECRET_MARKERS)


def mask_value(value: Any) -> str:
    """Fixed redaction marker + last 4 characters. Empty stays empty."""
    if isinstance(value, str) and value:
        return f"{MASK_PREFIX}{value[-4:]}"
    return ""


def mask_config(config: dict[str, Any]) -> dict[str, Any]:
    return {k: mask_value(v) if is_secret_field(k) else v for k, v in (config or {}).items()}


def is_configured(config: dict[str, Any]) -> bool:
    api_key = (config or {}).get("apiKey")
    return isinstance(api_key, str) and len(api_key) > 0


class CredentialStore:
    """Service for reading and updating platform integration credentials."""

    def __init__(self, db: AsyncSession, encryption: Optional[EncryptionService] = None):
        self.db = db
        self.encryption = encryption or encryption_service

    # ── At-rest encoding ──────────────────────────────────────────

    def encrypt_config(self, config: dict[str, Any]) -> dict[str, Any]:
        return {
            k: self.encryption.encrypt(v) if is_secret_field(k) and isinstance(v, str) else v
            for k, v in config.items()
        }

    def decrypt_config(self, config: dict[str, Any]) -> dict[str, Any]:
        """
        Decrypt secret-bearing values.

        A value written under a different ENCRYPTION_KEY (rotation, or an
        ephemeral key from a previous start) reads as unset, so the integration
        reports as unconfigured until an operator enters the key again.
        """
        return {
            k: self._decrypt_value(k, v) if is_secret_field(k) and isinstance(v, str) else v
            for k, v in (config or {}).items()
        }

    def _decrypt_value(self, field: str, value: str) -> str:
        try:
            return self.encryption.decrypt(value)
        except InvalidToken:
            logger.warning(
                f"Stored '{field}' cannot be decrypted with the current ENCRYPTION_KEY; treating it as unset"
            )
            return ""

    # ── Lookups ───────────────────────────────────────────────────

    async def find(self, integration_id: str) -> Optional[PlatformIntegration]:
        result = await self.db.execute(
            select(PlatformIntegration).where(PlatformIntegration.integration_id == integration_id)
        )
        return result.scalar_one_or_none()

    async def _get_or_404(self, integration_id: str) -> PlatformIntegration:
        integration = await self.find(integration_id)
        if not integration:
            raise NotFoundError("Integration not found")
        return integration

    async def get_raw_config(self, integration_id: str) -> dict[str, Any]:
        """Decrypted config for in-process callers (the verifier). Never serialized."""
        integration = await self._get_or_404(integration_id)
        return self.decrypt_config(integration.config)

    def to_masked_dict(self, integration: PlatformIntegration) -> dict[str, Any]:
        config = self.decrypt_config(integration.config)
        return {
            "id": integration.id,
            "integration_id": integration.integration_id,
            "name": integration.name,
            "provider": integration.provider,
            "description": integration.description,
            "icon": integration.icon,
            "category": integration.category,
            "config": mask_config(config),
            "configured": is_configured(config),
            "enabled": integration.enabled,
            "used_by_packages": list(integration.used_by_packages or []),
            "updated_by": integration.updated_by,
            "created_at": integration.created_at,
            "updated_at": integration.updated_at,
        }

    # ── Operations ────────────────────────────────────────────────

    async def list_integrations(self) -> list[dict[str, Any]]:
        """All integrations, masked, ordered by (category, name)."""
        result = await self.db.execute(
            select(PlatformIntegration).order_by(PlatformIntegration.category, PlatformIntegration.name)
        )
        return [self.to_masked_dict(i) for i in result.scalars().all()]

    async def get_integration(self, integration_id: str) -> dict[str, Any]:
        integration = await self._get_or_404(integration_id)
        return self.to_masked_dict(integration)

    async def update(
        self,
        integration_id: str,
        updated_by: str,
        config: Optional[dict[str, Any]] = None,
        enabled: Optional[bool] = None,
    ) -> dict[str, Any]:
        """
        Shallow merge of `config` into the stored config, optionally toggle `enabled`.

        Omitted keys keep their prior values; provided keys overwrite, empty
        string included. Last writer wins.

        Returns:
            Masked summary: {integration_id, name, enabled, configured}
        """
        integration = await self._get_or_404(integration_id)

        if config is not None:
            merged = {**(integration.config or {}), **self.encrypt_config(config)}
            integration.config = merged
        if enabled is not None:
            integration.enabled = enabled
        integration.updated_by = updated_by

        await self.db.commit()
        await self.db.refresh(integration)

        logger.info(
            f"Integration '{integration_id}' updated by {updated_by} "
            f"(fields: {sorted(config or {})}, enabled={integration.enabled})"
        )

        return {
            "integration_id": integration.integration_id,
            "name": integration.name,
            "enabled": integration.enabled,
            "configured": is_configured(self.decrypt_config(integration.config)),
        }

    async def get_key_for_consumption(self, integration_id: str) -> dict[str, Any]:
        """
        Sole unmasked read path, for trusted co-resident services.

        Raises:
            NotFoundError: integration missing, disabled, or without an apiKey
        """
        integration = await self.find(integration_id)
        config = self.decrypt_config(integration.config) if integration else {}

        if not integration or not integration.enabled or not is_configured(config):
            raise NotFoundError("Integration not configured or disabled")

        return {
            "integration_id": integration.integration_id,
            "api_key": config["apiKey"],
            "config": config,
        }
