"""Package registry: catalog browsing, custom registration, edits and removal."""
from typing import Optional

import pytest
from sqlalchemy import func, select

from package_manager.core.exceptions import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from package_manager.models import Package, PackageInstallation
from package_manager.schemas.package import PackageCreate, PackagePermission, PackageUpdate
from package_manager.services.installation_manager import InstallationManager
from package_manager.services.package_registry import PackageRegistry


def custom_package(package_id: Optional[str] = "foo", **overrides) -> PackageCreate:
    slug = package_id or "foo"
    fields = {
        "package_id": package_id,
        "name": f"{slug.title()} Service",
        "service_url": f"http://{slug}:6000",
        "port": 6000,
        "base_path": f"/api/{slug}",
    }
    fields.update(overrides)
    return PackageCreate(**fields)


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_applies_defaults(self, db):
        package = await PackageRegistry(db).register(custom_package(), author="admin@example.com")

        assert package.type == "custom"
        assert package.version == "1.0.0"
        assert package.icon == "package"
        assert package.category == "general"
        assert package.health_endpoint == "/health"
        assert package.manifest_endpoint == "/manifest"
        assert package.status == "available"
        assert package.author == "admin@example.com"

    @pytest.mark.asyncio
    async def test_register_keeps_permissions_in_order(self, db):
        permissions = [
            PackagePermission(key="foo:b", label="B"),
            PackagePermission(key="foo:a", label="A"),
        ]
        package = await PackageRegistry(db).register(
            custom_package(permissions=permissions), author="admin@example.com"
        )

        assert [p["key"] for p in package.permissions] == ["foo:b", "foo:a"]

    @pytest.mark.asyncio
    async def test_duplicate_package_id_conflicts(self, db):
        registry = PackageRegistry(db)
        await registry.register(custom_package("foo"), author="a@example.com")

        with pytest.raises(ConflictError):
            await registry.register(custom_package("foo", name="Other"), author="a@example.com")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("missing", ["package_id", "name", "service_url", "port", "base_path"])
    async def test_missing_required_field(self, db, missing):
        with pytest.raises(ValidationError):
            await PackageRegistry(db).register(custom_package(**{missing: None}), author="a@example.com")

    @pytest.mark.asyncio
    async def test_missing_package_id_registers_nothing(self, db):
        registry = PackageRegistry(db)

        with pytest.raises(ValidationError, match="packageId, name, serviceUrl, port, and basePath are required"):
            await registry.register(custom_package(package_id=None), author="a@example.com")

        assert await registry.list_packages() == []


class TestList:

    @pytest.mark.asyncio
    async def test_list_orders_by_type_then_name(self, db, seeded):
        registry = PackageRegistry(db)
        await registry.register(custom_package("zeta", name="Zeta"), author="a@example.com")
        await registry.register(custom_package("alpha", name="Alpha"), author="a@example.com")

        entries = await registry.list_packages()

        assert [p.package_id for p, _ in entries] == ["seo-optimizer", "alpha", "zeta"]

    @pytest.mark.asyncio
    async def test_list_hides_deprecated_packages(self, db):
        registry = PackageRegistry(db)
        await registry.register(custom_package("old"), author="a@example.com")
        await registry.update("old", PackageUpdate(status="deprecated"))

        assert await registry.list_packages() == []

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive_substring(self, db, seeded):
        entries = await PackageRegistry(db).list_packages(search="optim")

        assert [p.package_id for p, _ in entries] == ["seo-optimizer"]

    @pytest.mark.asyncio
    async def test_search_treats_wildcards_literally(self, db, seeded):
        assert await PackageRegistry(db).list_packages(search="%") == []

    @pytest.mark.asyncio
    async def test_filters_by_category_and_type(self, db, seeded):
        registry = PackageRegistry(db)
        await registry.register(custom_package("foo", category="ops"), author="a@example.com")

        by_category = await registry.list_packages(category="marketing")
        by_type = await registry.list_packages(package_type="custom")

        assert [p.package_id for p, _ in by_category] == ["seo-optimizer"]
        assert [p.package_id for p, _ in by_type] == ["foo"]

    @pytest.mark.asyncio
    async def test_enriched_with_org_installation_only(self, db, seeded, prober):
        manager = InstallationManager(db, prober)
        await manager.install("seo-optimizer", "tenant-1", {}, installed_by="a@example.com")

        entries = await PackageRegistry(db).list_packages()
        assert entries[0][1] is None

        await manager.install("seo-optimizer", None, {}, installed_by="a@example.com")

        entries = await PackageRegistry(db).list_packages()
        assert entries[0][1] is not None
        assert entries[0][1].tenant_id is None


class TestUpdate:

    @pytest.mark.asyncio
    async def test_update_changes_only_given_fields(self, db):
        registry = PackageRegistry(db)
        await registry.register(custom_package("foo"), author="a@example.com")

        package = await registry.update("foo", PackageUpdate(service_url="http://foo-v2:6000", version="2.0.0"))

        assert package.service_url == "http://foo-v2:6000"
        assert package.version == "2.0.0"
        assert package.name == "Foo Service"

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_status(self, db):
        registry = PackageRegistry(db)
        await registry.register(custom_package("foo"), author="a@example.com")

        with pytest.raises(ValidationError):
            await registry.update("foo", PackageUpdate(status="retired"))

    @pytest.mark.asyncio
    async def test_update_unknown_package(self, db):
        with pytest.raises(NotFoundError):
            await PackageRegistry(db).update("missing", PackageUpdate(name="x"))


class TestUnregister:

    @pytest.mark.asyncio
    async def test_builtin_cannot_be_deleted(self, db, seeded, prober):
        await InstallationManager(db, prober).install("seo-optimizer", None, {}, installed_by="a@example.com")

        with pytest.raises(InvalidOperationError):
            await PackageRegistry(db).unregister("seo-optimizer")

        assert await PackageRegistry(db).find("seo-optimizer") is not None
        count = await db.scalar(select(func.count()).select_from(PackageInstallation))
        assert count == 1

    @pytest.mark.asyncio
    async def test_delete_cascades_to_every_installation(self, db, prober):
        await PackageRegistry(db).register(custom_package("foo"), author="a@example.com")
        manager = InstallationManager(db, prober)
        await manager.install("foo", None, {}, installed_by="a@example.com")
        await manager.install("foo", "tenant-1", {}, installed_by="a@example.com")

        await PackageRegistry(db).unregister("foo")

        assert await db.scalar(select(func.count()).select_from(Package)) == 0
        assert await db.scalar(select(func.count()).select_from(PackageInstallation)) == 0

    @pytest.mark.asyncio
    async def test_delete_unknown_package(self, db):
        with pytest.raises(NotFoundError):
            await PackageRegistry(db).unregister("missing")
