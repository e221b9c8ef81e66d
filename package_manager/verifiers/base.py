"""Base credential verifier interface."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from package_manager.core.exceptions import UpstreamUnreachableError


@dataclass
class VerificationResult:
    success: bool
    message: str
    details: dict[str, Any] = field(default_factory=dict)


class BaseIntegrationVerifier(ABC):
    """
    Abstract base class for provider-specific key checks.

    Each subclass makes the cheapest call its provider offers that still
    proves the key is accepted, and decides what counts as success.
    """

    integration_id: str
    display_name: str
    timeout: float = 10.0

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.transport = transport

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        """
        Send one request under this verifier's timeout.

        Raises:
            UpstreamUnreachableError: on timeout or any transport failure
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                return await client.request(method, url, **kwargs)
        except httpx.TimeoutException:
            raise UpstreamUnreachableError(f"{self.display_name} did not respond within {self.timeout}s")
        except httpx.HTTPError as e:
            raise UpstreamUnreachableError(f"{self.display_name} unreachable: {e}")

    def _from_status(self, response: httpx.Response, accepted: bool) -> VerificationResult:
        if accepted:
            return VerificationResult(
                success=True,
                message=f"{self.display_name} API key is valid",
                details={"statusCode": response.status_code},
            )
        return VerificationResult(
            success=False,
            message=f"API returned {response.status_code}",
            details={"statusCode": response.status_code},
        )

    @abstractmethod
    async def verify(self, api_key: str, config: dict[str, Any]) -> VerificationResult:
        """
        Check `api_key` against the provider.

        Args:
            api_key: Raw key
            config: Full decrypted integration config (endpoint overrides, model, ...)

        Raises:
            UpstreamUnreachableError: provider could not be reached
        """
        pass
