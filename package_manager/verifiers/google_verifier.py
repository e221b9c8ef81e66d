from typing import Any

from .base import BaseIntegrationVerifier, VerificationResult

PAGESPEED_ENDPOINT = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
VISION_ENDPOINT = "https://vision.googleapis.com/v1/images:annotate"


class GooglePageSpeedVerifier(BaseIntegrationVerifier):
    """Mobile audit of a fixed, always-up page."""

    integration_id = "google-pagespeed"
    display_name = "Google PageSpeed"
    timeout = 20.0

    async def verify(self, api_key: str, config: dict[str, Any]) -> VerificationResult:
        response = await self._send(
            "GET",
            config.get("endpoint") or PAGESPEED_ENDPOINT,
            params={"url": "https://www.google.com", "strategy": "mobile", "key": api_key},
        )
        return self._from_status(response, response.is_success)


class GoogleVisionVerifier(BaseIntegrationVerifier):
    """
    Empty annotate batch.

    Vision answers an empty batch with 200 or 400 depending on the API
    version; both mean the key itself was accepted.
    """

    integration_id = "google-vision"
    display_name = "Google Vision"
    timeout = 10.0

    async def verify(self, api_key: str, config: dict[str, Any]) -> VerificationResult:
        response = await self._send(
            "POST",
            config.get("endpoint") or VISION_ENDPOINT,
            params={"key": api_key},
            headers={"Content-Type": "application/json"},
            json={"requests": []},
        )
        return self._from_status(response, response.is_success or response.status_code == 400)
