"""Integration verifier: per-provider checks against a mocked provider API."""
import json

import httpx
import pytest

from package_manager.core.exceptions import NotFoundError, ValidationError
from package_manager.models import PlatformIntegration
from package_manager.services.credential_store import CredentialStore
from package_manager.services.integration_verifier import IntegrationVerifier
from package_manager.verifiers import VERIFIERS, create_verifier


async def configure(db, integration_id: str, **config) -> None:
    await CredentialStore(db).update(integration_id, "admin@example.com", config=config)


class TestFactory:

    def test_every_seeded_integration_has_a_verifier(self):
        assert set(VERIFIERS) == {"anthropic", "google-pagespeed", "google-vision", "ahrefs"}

    def test_unknown_integration_has_no_verifier(self):
        assert create_verifier("stripe") is None

    def test_timeouts_stay_within_bounds(self):
        assert all(10 <= v.timeout <= 20 for v in VERIFIERS.values())


class TestIntegrationVerifier:

    @pytest.mark.asyncio
    async def test_anthropic_valid_key(self, db, seeded, provider):
        await configure(db, "anthropic", apiKey="sk-ant-test")
        provider.respond(200, {"id": "msg_1"})

        result = await IntegrationVerifier(db, transport=provider.transport).test("anthropic")

        assert result.success
        assert result.message == "Anthropic API key is valid"
        request = provider.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.anthropic.com/v1/messages"
        assert request.headers["x-api-key"] == "sk-ant-test"
        assert json.loads(request.content)["max_tokens"] == 10

    @pytest.mark.asyncio
    async def test_rejected_key_reports_status(self, db, seeded, provider):
        await configure(db, "anthropic", apiKey="sk-bad")
        provider.respond(401, {"error": "invalid x-api-key"})

        result = await IntegrationVerifier(db, transport=provider.transport).test("anthropic")

        assert not result.success
        assert result.message == "API returned 401"

    @pytest.mark.asyncio
    async def test_endpoint_override(self, db, seeded, provider):
        await configure(db, "anthropic", apiKey="sk-ant-test", endpoint="https://proxy.internal/")

        await IntegrationVerifier(db, transport=provider.transport).test("anthropic")

        assert str(provider.requests[0].url) == "https://proxy.internal/v1/messages"

    @pytest.mark.asyncio
    async def test_pagespeed_sends_key_as_query_param(self, db, seeded, provider):
        await configure(db, "google-pagespeed", apiKey="AIza-page")

        result = await IntegrationVerifier(db, transport=provider.transport).test("google-pagespeed")

        assert result.success
        params = provider.requests[0].url.params
        assert params["key"] == "AIza-page"
        assert params["strategy"] == "mobile"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code,valid", [(200, True), (400, True), (403, False)])
    async def test_vision_accepts_bad_request_as_valid_key(self, db, seeded, provider, status_code, valid):
        await configure(db, "google-vision", apiKey="AIza-vision")
        provider.respond(status_code, {})

        result = await IntegrationVerifier(db, transport=provider.transport).test("google-vision")

        assert result.success is valid
        assert json.loads(provider.requests[0].content) == {"requests": []}

    @pytest.mark.asyncio
    async def test_ahrefs_uses_bearer_token(self, db, seeded, provider):
        await configure(db, "ahrefs", apiKey="ahrefs-token")

        result = await IntegrationVerifier(db, transport=provider.transport).test("ahrefs")

        assert result.success
        request = provider.requests[0]
        assert request.headers["authorization"] == "Bearer ahrefs-token"
        assert request.url.path.endswith("/site-explorer/domain-rating")

    @pytest.mark.asyncio
    async def test_transport_failure_is_a_verdict(self, db, seeded, provider):
        await configure(db, "ahrefs", apiKey="ahrefs-token")
        provider.unreachable("Connection reset by peer")

        result = await IntegrationVerifier(db, transport=provider.transport).test("ahrefs")

        assert not result.success
        assert result.message.startswith("Test failed:")
        assert "Connection reset by peer" in result.message

    @pytest.mark.asyncio
    async def test_missing_key(self, db, seeded, provider):
        with pytest.raises(ValidationError):
            await IntegrationVerifier(db, transport=provider.transport).test("anthropic")

        assert provider.requests == []

    @pytest.mark.asyncio
    async def test_unknown_integration(self, db, seeded, provider):
        with pytest.raises(NotFoundError):
            await IntegrationVerifier(db, transport=provider.transport).test("missing")

    @pytest.mark.asyncio
    async def test_integration_without_a_strategy(self, db, provider):
        db.add(
            PlatformIntegration(
                integration_id="stripe",
                name="Stripe",
                provider="Stripe",
                category="other",
                config={},
                used_by_packages=[],
            )
        )
        await db.commit()
        await configure(db, "stripe", apiKey="sk_live_x")

        result = await IntegrationVerifier(db, transport=provider.transport).test("stripe")

        assert not result.success
        assert result.message == 'No test available for "stripe"'
        assert provider.requests == []
