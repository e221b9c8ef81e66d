"""Test stored integration credentials against their providers."""
import logging
from typing import Optional

import httpx
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from package_manager.core.database import get_db
from package_manager.core.exceptions import UpstreamUnreachableError, ValidationError
from package_manager.services.credential_store import CredentialStore, is_configured
from package_manager.verifiers import VerificationResult, create_verifier

logger = logging.getLogger(__name__)


class IntegrationVerifier:
    """
    Runs the provider-specific check for one integration.

    Stateless apart from the credential lookup. Upstream failures become a
    failed VerificationResult; only a missing integration or a missing key
    is raised to the caller.
    """

    def __init__(self, db: AsyncSession, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.db = db
        self.store = CredentialStore(db)
        self.transport = transport

    async def test(self, integration_id: str) -> VerificationResult:
        config = await self.store.get_raw_config(integration_id)
        # Work from this snapshot; no transaction stays open while the provider answers
        await self.db.rollback()
        if not is_configured(config):
            raise ValidationError("API key not configured")

        verifier = create_verifier(integration_id, transport=self.transport)
        if verifier is None:
            return VerificationResult(
                success=False, message=f'No test available for "{integration_id}"'
            )

        try:
            result = await verifier.verify(config["apiKey"], config)
        except UpstreamUnreachableError as e:
            logger.warning(f"Credential test for '{integration_id}' could not reach provider: {e}")
            return VerificationResult(success=False, message=f"Test failed: {e.message}")

        if not result.success:
            logger.warning(f"Credential test for '{integration_id}' failed: {result.message}")
        return result


def get_integration_verifier(db: AsyncSession = Depends(get_db)) -> IntegrationVerifier:
    """FastAPI dependency; tests override it to inject a mock transport."""
    return IntegrationVerifier(db)
