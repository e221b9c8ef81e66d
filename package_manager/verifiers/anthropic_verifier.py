from typing import Any

from .base import BaseIntegrationVerifier, VerificationResult

DEFAULT_ENDPOINT = "https://api.anthropic.com"
DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
API_VERSION = "2023-06-01"


class AnthropicVerifier(BaseIntegrationVerifier):
    """Minimal messages call: ten tokens, one short prompt."""

    integration_id = "anthropic"
    display_name = "Anthropic"
    timeout = 15.0

    async def verify(self, api_key: str, config: dict[str, Any]) -> VerificationResult:
        base_url = (config.get("endpoint") or DEFAULT_ENDPOINT).rstrip("/")
        response = await self._send(
            "POST",
            f"{base_url}/v1/messages",
            headers={
                "Content-Type": "application/json",
                "x-api-key": api_key,
                "anthropic-version": API_VERSION,
            },
            json={
                "model": config.get("model") or DEFAULT_MODEL,
                "max_tokens": 10,
                "messages": [{"role": "user", "content": 'Say "ok"'}],
            },
        )
        return self._from_status(response, response.is_success)
