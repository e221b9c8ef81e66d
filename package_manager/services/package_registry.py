"""
Package registry: browse, register, edit and remove catalog entries.
"""
import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from package_manager.core.exceptions import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from package_manager.models import (
    Package,
    PackageInstallation,
    PackageStatus,
    PackageType,
)
from package_manager.schemas.package import PackageCreate, PackageUpdate

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("package_id", "name", "service_url", "port", "base_path")


class PackageRegistry:
    """Service for the package catalog."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find(self, package_id: str) -> Optional[Package]:
        result = await self.db.execute(select(Package).where(Package.package_id == package_id))
        return result.scalar_one_or_none()

    async def get(self, package_id: str) -> Package:
        package = await self.find(package_id)
        if not package:
            raise NotFoundError("Package not found")
        return package

    async def get_org_installation(self, package_id: str) -> Optional[PackageInstallation]:
        result = await self.db.execute(
            select(PackageInstallation).where(
                PackageInstallation.package_id == package_id,
                PackageInstallation.tenant_id.is_(None),
            )
        )
        return result.scalar_one_or_none()

    async def list_packages(
        self,
        category: Optional[str] = None,
        package_type: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[tuple[Package, Optional[PackageInstallation]]]:
        """
        Available packages ordered by (type, name), each paired with its
        org-wide installation (None when not installed).

        `search` is a case-insensitive substring match on the name.
        """
        query = select(Package).where(Package.status == PackageStatus.AVAILABLE.value)
        if category:
            query = query.where(Package.category == category)
        if package_type:
            query = query.where(Package.type == package_type)
        if search:
            query = query.where(Package.name.ilike(f"%{_escape_like(search)}%", escape="\\"))
        query = query.order_by(Package.type, Package.name)

        result = await self.db.execute(query)
        packages = list(result.scalars().all())
        if not packages:
            return []

        # Read-side join against the org-wide scope
        installs = await self.db.execute(
            select(PackageInstallation).where(
                PackageInstallation.package_id.in_([p.package_id for p in packages]),
                PackageInstallation.tenant_id.is_(None),
            )
        )
        install_map = {i.package_id: i for i in installs.scalars().all()}

        return [(p, install_map.get(p.package_id)) for p in packages]

    async def register(self, data: PackageCreate, author: str) -> Package:
        """
        Register a custom package.

        Raises:
            ValidationError: a required field is missing
            ConflictError: package_id already exists
        """
        missing = [f for f in REQUIRED_FIELDS if getattr(data, f) in (None, "")]
        if missing:
            raise ValidationError("packageId, name, serviceUrl, port, and basePath are required")

        if await self.find(data.package_id):
            raise ConflictError("Package ID already exists")

        package = Package(
            package_id=data.package_id,
            name=data.name,
            description=data.description or "",
            version=data.version or "1.0.0",
            icon=data.icon or "package",
            category=data.category or "general",
            type=PackageType.CUSTOM.value,
            service_url=data.service_url,
            port=data.port,
            base_path=data.base_path,
            health_endpoint=data.health_endpoint or "/health",
            manifest_endpoint=data.manifest_endpoint or "/manifest",
            required_integrations=list(data.required_integrations),
            permissions=[p.model_dump() for p in data.permissions],
            features=list(data.features),
            screenshots=[],
            author=author,
            documentation=data.documentation or "",
            status=PackageStatus.AVAILABLE.value,
        )
        self.db.add(package)

        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same id
            await self.db.rollback()
            raise ConflictError("Package ID already exists")

        await self.db.refresh(package)
        logger.info(f"Registered custom package '{package.package_id}' ({package.name}) by {author}")
        return package

    async def update(self, package_id: str, changes: PackageUpdate) -> Package:
        """
        Admin edit of descriptive and endpoint fields.

        Raises:
            NotFoundError: package missing
            ValidationError: unknown status or an emptied required field
        """
        package = await self.get(package_id)
        fields = changes.model_dump(exclude_unset=True)

        if "status" in fields and fields["status"] not in {s.value for s in PackageStatus}:
            raise ValidationError('Status must be "available" or "deprecated"')
        for required in ("name", "service_url", "port", "base_path"):
            if required in fields and fields[required] in (None, ""):
                raise ValidationError(f"{required} cannot be empty")

        for field, value in fields.items():
            if value is not None:
                setattr(package, field, value)

        await self.db.commit()
        await self.db.refresh(package)
        logger.info(f"Package '{package_id}' updated (fields: {sorted(fields)})")
        return package

    async def unregister(self, package_id: str) -> Package:
        """
        Remove a non-builtin package and all its installations.

        Installations are deleted before the package, in one transaction,
        so an interrupted cascade can leave an orphaned package but never
        installations pointing at a missing package.

        Raises:
            NotFoundError: package missing
            InvalidOperationError: package is builtin
        """
        package = await self.get(package_id)
        if package.is_builtin:
            raise InvalidOperationError("Cannot delete built-in packages")

        result = await self.db.execute(
            delete(PackageInstallation).where(PackageInstallation.package_id == package_id)
        )
        await self.db.flush()
        await self.db.delete(package)
        await self.db.commit()

        logger.info(
            f"Removed package '{package_id}' and {result.rowcount} installation(s)"
        )
        return package


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
