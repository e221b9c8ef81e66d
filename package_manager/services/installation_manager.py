"""
Installation manager: install, uninstall, enable/disable and health-check
package installations.

Status lifecycle:

    installing -> active | error
    active <-> disabled          (explicit operator toggle only)
    error -> active | disabled   (healthy re-check, or operator toggle)
    active | disabled | error -> uninstalling -> (row deleted)

Nothing leaves `error` on its own; an operator re-runs the health check,
sets the status, or reinstalls.
"""
import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from package_manager.core.exceptions import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)
from package_manager.models import (
    HealthStatus,
    InstallationStatus,
    Package,
    PackageInstallation,
    PackageStatus,
    PlatformIntegration,
)
from package_manager.services.credential_store import CredentialStore, is_configured
from package_manager.services.health_prober import HealthProber, ProbeResult

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[InstallationStatus, set[InstallationStatus]] = {
    InstallationStatus.INSTALLING: {InstallationStatus.ACTIVE, InstallationStatus.ERROR},
    InstallationStatus.ACTIVE: {InstallationStatus.DISABLED, InstallationStatus.UNINSTALLING},
    InstallationStatus.DISABLED: {InstallationStatus.ACTIVE, InstallationStatus.UNINSTALLING},
    InstallationStatus.ERROR: {
        InstallationStatus.ACTIVE,
        InstallationStatus.DISABLED,
        InstallationStatus.UNINSTALLING,
    },
    InstallationStatus.UNINSTALLING: set(),
}

# Targets an operator may request through set_status()
OPERATOR_STATUSES = {InstallationStatus.ACTIVE.value, InstallationStatus.DISABLED.value}

UNREACHABLE_DURING_INSTALL = "Service not reachable during installation"


class InstallationManager:
    """Service owning every PackageInstallation status change."""

    def __init__(self, db: AsyncSession, prober: HealthProber):
        self.db = db
        self.prober = prober

    # ── Lookups ───────────────────────────────────────────────────

    async def _find_installation(
        self, package_id: str, tenant_id: Optional[str]
    ) -> Optional[PackageInstallation]:
        query = select(PackageInstallation).where(PackageInstallation.package_id == package_id)
        if tenant_id is None:
            query = query.where(PackageInstallation.tenant_id.is_(None))
        else:
            query = query.where(PackageInstallation.tenant_id == tenant_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_package(self, package_id: str) -> Optional[Package]:
        result = await self.db.execute(select(Package).where(Package.package_id == package_id))
        return result.scalar_one_or_none()

    async def list_installations(self) -> list[tuple[PackageInstallation, Optional[Package]]]:
        """Every installation, newest first, paired with its package."""
        result = await self.db.execute(
            select(PackageInstallation).order_by(PackageInstallation.installed_at.desc())
        )
        installations = list(result.scalars().all())
        if not installations:
            return []

        package_ids = {i.package_id for i in installations}
        packages = await self.db.execute(select(Package).where(Package.package_id.in_(package_ids)))
        package_map = {p.package_id: p for p in packages.scalars().all()}

        return [(i, package_map.get(i.package_id)) for i in installations]

    # ── State machine ─────────────────────────────────────────────

    @staticmethod
    def _transition(installation: PackageInstallation, target: InstallationStatus) -> None:
        current = InstallationStatus(installation.status)
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidOperationError(
                f'Cannot change installation status from "{current.value}" to "{target.value}"'
            )
        installation.status = target.value

    async def _missing_integrations(self, package: Package) -> list[str]:
        """Required integrations that are absent, disabled, or have no apiKey."""
        required = list(package.required_integrations or [])
        if not required:
            return []

        result = await self.db.execute(
            select(PlatformIntegration).where(PlatformIntegration.integration_id.in_(required))
        )
        store = CredentialStore(self.db)
        satisfied = {
            i.integration_id
            for i in result.scalars().all()
            if i.enabled and is_configured(store.decrypt_config(i.config))
        }
        return [integration_id for integration_id in required if integration_id not in satisfied]

    @staticmethod
    def _record_probe(
        installation: PackageInstallation, probe: ProbeResult, during_install: bool = False
    ) -> None:
        installation.last_health_check = probe.checked_at
        installation.last_health_status = probe.status.value
        if probe.healthy:
            installation.error_message = None
        elif during_install and not probe.reachable:
            installation.error_message = f"{UNREACHABLE_DURING_INSTALL}: {probe.error}"
        else:
            installation.error_message = probe.error

    # ── Operations ────────────────────────────────────────────────

    async def install(
        self,
        package_id: Optional[str],
        tenant_id: Optional[str],
        config: Optional[dict[str, Any]],
        installed_by: str,
    ) -> PackageInstallation:
        """
        Install a package for a tenant (or org-wide when tenant_id is None).

        Unconfigured required integrations are logged, not enforced. A failed
        health probe is recorded on the installation and does not undo it.

        Raises:
            ValidationError: package_id missing
            NotFoundError: package missing or not available
            ConflictError: already installed for this scope
        """
        if not package_id:
            raise ValidationError("packageId is required")

        package = await self.find_package(package_id)
        if not package or package.status != PackageStatus.AVAILABLE.value:
            raise NotFoundError("Package not found or unavailable")

        if await self._find_installation(package_id, tenant_id):
            raise ConflictError("Package already installed")

        missing = await self._missing_integrations(package)
        if missing:
            logger.warning(
                f'Package "{package.name}" installed without configured integrations: {", ".join(missing)}'
            )

        installation = PackageInstallation(
            package_id=package_id,
            tenant_id=tenant_id,
            status=InstallationStatus.INSTALLING.value,
            config=dict(config or {}),
            enabled_features=list(package.features or []),
            installed_by=installed_by,
            last_health_status=HealthStatus.UNKNOWN.value,
        )
        self.db.add(installation)

        try:
            # The storage constraint is the real uniqueness guard; the lookup above
            # only spares the common case a failed insert.
            await self.db.flush()
            self._transition(installation, InstallationStatus.ACTIVE)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(f"Concurrent install of '{package_id}' (tenant={tenant_id}) lost the race")
            raise ConflictError("Package already installed")

        logger.info(f"Installed '{package_id}' (tenant={tenant_id}) by {installed_by}")

        # Probe outside any transaction, then write the outcome back
        probe = await self.prober.probe(package.health_url)
        self._record_probe(installation, probe, during_install=True)
        await self.db.commit()
        await self.db.refresh(installation)
        return installation

    async def uninstall(self, package_id: Optional[str], tenant_id: Optional[str]) -> None:
        """
        Hard-delete the installation for this scope. Immediate, from any status.

        Raises:
            ValidationError: package_id missing
            NotFoundError: not installed for this scope
        """
        if not package_id:
            raise ValidationError("packageId is required")

        installation = await self._find_installation(package_id, tenant_id)
        if not installation:
            raise NotFoundError("Package not installed")

        await self.db.delete(installation)
        await self.db.commit()
        logger.info(f"Uninstalled '{package_id}' (tenant={tenant_id})")

    async def set_status(self, package_id: str, status: str) -> PackageInstallation:
        """
        Enable or disable the org-wide installation, updating it in place.

        An installation in `error` may be set either way; this is the
        operator override for the no-automatic-recovery rule.

        Raises:
            ValidationError: status is not "active" or "disabled"
            NotFoundError: no org-wide installation
        """
        if status not in OPERATOR_STATUSES:
            raise ValidationError('Status must be "active" or "disabled"')

        installation = await self._find_installation(package_id, None)
        if not installation:
            raise NotFoundError("Package not installed")

        if installation.status != status:
            self._transition(installation, InstallationStatus(status))
            await self.db.commit()
            await self.db.refresh(installation)
            logger.info(f"Installation '{package_id}' is now {status}")

        return installation

    async def check_health(self, package_id: str) -> tuple[ProbeResult, PackageInstallation]:
        """
        Re-probe the org-wide installation and record the outcome.

        An unhealthy service is a normal answer, not an error.

        Raises:
            NotFoundError: package missing or not installed org-wide
        """
        package = await self.find_package(package_id)
        if not package:
            raise NotFoundError("Package not found")

        installation = await self._find_installation(package_id, None)
        if not installation:
            raise NotFoundError("Package not installed")

        health_url = package.health_url
        # End the read transaction before the network call
        await self.db.commit()

        probe = await self.prober.probe(health_url)

        self._record_probe(installation, probe)
        if probe.healthy and installation.status == InstallationStatus.ERROR.value:
            self._transition(installation, InstallationStatus.ACTIVE)
            logger.info(f"Installation '{package_id}' recovered from error")

        await self.db.commit()
        await self.db.refresh(installation)
        return probe, installation
