from datetime import UTC, datetime
from typing import Any

from .base import BaseIntegrationVerifier, VerificationResult

DEFAULT_ENDPOINT = "https://api.ahrefs.com/v3"


class AhrefsVerifier(BaseIntegrationVerifier):
    """Read-only domain rating lookup for ahrefs.com."""

    integration_id = "ahrefs"
    display_name = "Ahrefs"
    timeout = 10.0

    async def verify(self, api_key: str, config: dict[str, Any]) -> VerificationResult:
        base_url = (config.get("endpoint") or DEFAULT_ENDPOINT).rstrip("/")
        response = await self._send(
            "GET",
            f"{base_url}/site-explorer/domain-rating",
            params={"target": "ahrefs.com", "date": datetime.now(UTC).date().isoformat()},
            headers={"Authorization": f"Bearer {api_key}", "Accept": "application/json"},
        )
        return self._from_status(response, response.is_success)
