"""Catalog seeding is an idempotent upsert that never clobbers operator data."""
import pytest
from sqlalchemy import func, select

from package_manager.models import Package, PlatformIntegration
from package_manager.schemas.package import PackageCreate, PackageUpdate
from package_manager.services.catalog_seeder import BUILTIN_PACKAGES, CatalogSeeder
from package_manager.services.credential_store import CredentialStore
from package_manager.services.package_registry import PackageRegistry


async def counts(db) -> tuple[int, int]:
    packages = await db.scalar(select(func.count()).select_from(Package))
    integrations = await db.scalar(select(func.count()).select_from(PlatformIntegration))
    return packages, integrations


class TestCatalogSeeder:

    @pytest.mark.asyncio
    async def test_first_run_inserts_builtin_catalog(self, db):
        await CatalogSeeder(db).seed()

        assert await counts(db) == (1, 4)
        package = await PackageRegistry(db).get("seo-optimizer")
        assert package.is_builtin
        assert package.health_url == "http://seo:5003/health"
        assert len(package.permissions) == 14
        assert len(package.features) == 10
        assert package.required_integrations == ["anthropic", "google-pagespeed", "google-vision", "ahrefs"]

    @pytest.mark.asyncio
    async def test_integrations_start_disabled_and_unconfigured(self, db):
        await CatalogSeeder(db).seed()

        for integration in await CredentialStore(db).list_integrations():
            assert integration["enabled"] is False
            assert integration["configured"] is False
            assert integration["config"] == {"apiKey": ""}
            assert integration["used_by_packages"] == ["seo-optimizer"]

    @pytest.mark.asyncio
    async def test_reseeding_keeps_counts(self, db):
        await CatalogSeeder(db).seed()
        await CatalogSeeder(db).seed()

        assert await counts(db) == (1, 4)

    @pytest.mark.asyncio
    async def test_reseeding_preserves_credentials(self, db):
        await CatalogSeeder(db).seed()
        store = CredentialStore(db)
        await store.update("anthropic", "admin@example.com", config={"apiKey": "sk-keep-me"}, enabled=True)

        await CatalogSeeder(db).seed()

        key = await store.get_key_for_consumption("anthropic")
        assert key["api_key"] == "sk-keep-me"

    @pytest.mark.asyncio
    async def test_reseeding_preserves_operator_package_fields(self, db):
        await CatalogSeeder(db).seed()
        registry = PackageRegistry(db)
        await registry.update(
            "seo-optimizer",
            PackageUpdate(service_url="http://seo-canary:5003", version="0.9.0", features=["stale"]),
        )

        await CatalogSeeder(db).seed()
        package = await registry.get("seo-optimizer")
        await db.refresh(package)

        assert package.service_url == "http://seo-canary:5003"
        assert package.version == BUILTIN_PACKAGES[0]["version"]
        assert len(package.features) == 10

    @pytest.mark.asyncio
    async def test_reseeding_leaves_custom_packages_alone(self, db):
        await CatalogSeeder(db).seed()
        await PackageRegistry(db).register(
            PackageCreate(package_id="foo", name="Foo", service_url="http://foo:6000", port=6000, base_path="/api/foo"),
            author="admin@example.com",
        )

        await CatalogSeeder(db).seed()

        package = await PackageRegistry(db).get("foo")
        assert package.service_url == "http://foo:6000"
        assert package.type == "custom"

    @pytest.mark.asyncio
    async def test_used_by_packages_only_grows(self, db):
        await CatalogSeeder(db).seed()
        integration = await CredentialStore(db).find("anthropic")
        integration.used_by_packages = ["other-package"]
        await db.commit()

        await CatalogSeeder(db).seed()
        await db.refresh(integration)

        assert integration.used_by_packages == ["other-package", "seo-optimizer"]

    @pytest.mark.asyncio
    async def test_new_package_dependency_is_added_to_existing_integration(self, db):
        await CatalogSeeder(db).seed()
        extra = dict(BUILTIN_PACKAGES[0], package_id="seo-lite", name="SEO Lite")
        integrations = [
            dict(definition, used_by_packages=["seo-optimizer", "seo-lite"])
            for definition in CatalogSeeder(db).integrations
        ]

        await CatalogSeeder(db, packages=BUILTIN_PACKAGES + [extra], integrations=integrations).seed()

        assert await counts(db) == (2, 4)
        for integration in await CredentialStore(db).list_integrations():
            assert integration["used_by_packages"] == ["seo-optimizer", "seo-lite"]
