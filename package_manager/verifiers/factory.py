"""Registry of credential verifiers keyed by integration id."""
from typing import Optional

import httpx

from .ahrefs_verifier import AhrefsVerifier
from .anthropic_verifier import AnthropicVerifier
from .base import BaseIntegrationVerifier
from .google_verifier import GooglePageSpeedVerifier, GoogleVisionVerifier

VERIFIERS: dict[str, type[BaseIntegrationVerifier]] = {
    verifier.integration_id: verifier
    for verifier in (
        AnthropicVerifier,
        GooglePageSpeedVerifier,
        GoogleVisionVerifier,
        AhrefsVerifier,
    )
}


def create_verifier(
    integration_id: str, transport: Optional[httpx.AsyncBaseTransport] = None
) -> Optional[BaseIntegrationVerifier]:
    """
    Create the verifier for an integration.

    Returns:
        Verifier instance, or None when no test exists for this integration
    """
    verifier_cls = VERIFIERS.get(integration_id)
    if verifier_cls is None:
        return None
    return verifier_cls(transport=transport)
