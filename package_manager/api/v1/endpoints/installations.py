"""Installation endpoints: install, uninstall, enable/disable and health checks."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from package_manager.core.auth import ADMIN_ROLES, AuthenticatedUser, get_current_user, require_role
from package_manager.core.database import get_db
from package_manager.schemas.common import ApiResponse
from package_manager.schemas.installation import (
    HealthCheckResponse,
    InstallationResponse,
    InstallationStatusUpdate,
    InstallRequest,
    UninstallRequest,
)
from package_manager.schemas.package import InstallationWithPackage, PackageResponse
from package_manager.services.health_prober import HealthProber, get_health_prober
from package_manager.services.installation_manager import InstallationManager

router = APIRouter(prefix="/installations", tags=["installations"])


@router.get("", response_model=ApiResponse[list[InstallationWithPackage]])
async def list_installations(
    db: AsyncSession = Depends(get_db),
    prober: HealthProber = Depends(get_health_prober),
    user: AuthenticatedUser = Depends(get_current_user),
):
    """All installations, newest first, each with its package."""
    manager = InstallationManager(db, prober)
    entries = await manager.list_installations()

    items = []
    for installation, package in entries:
        item = InstallationWithPackage.model_validate(installation)
        item.package = PackageResponse.model_validate(package) if package else None
        items.append(item)

    return ApiResponse(data=items)


@router.post(
    "/install",
    response_model=ApiResponse[InstallationResponse],
    status_code=status.HTTP_201_CREATED,
)
async def install_package(
    body: InstallRequest,
    db: AsyncSession = Depends(get_db),
    prober: HealthProber = Depends(get_health_prober),
    user: AuthenticatedUser = Depends(require_role(*ADMIN_ROLES)),
):
    """
    Install a package org-wide (tenantId omitted) or for one tenant.

    An unreachable service does not fail the install; the outcome is recorded
    in lastHealthStatus / errorMessage.
    """
    manager = InstallationManager(db, prober)
    installation = await manager.install(
        body.package_id, body.tenant_id, body.config, installed_by=user.email
    )
    package = await manager.find_package(installation.package_id)

    return ApiResponse(
        message=f'Package "{package.name}" installed successfully',
        data=InstallationResponse.model_validate(installation),
    )


@router.post("/uninstall", response_model=ApiResponse[None])
async def uninstall_package(
    body: UninstallRequest,
    db: AsyncSession = Depends(get_db),
    prober: HealthProber = Depends(get_health_prober),
    user: AuthenticatedUser = Depends(require_role(*ADMIN_ROLES)),
):
    manager = InstallationManager(db, prober)
    await manager.uninstall(body.package_id, body.tenant_id)
    return ApiResponse(message="Package uninstalled successfully")


@router.patch("/{package_id}/status", response_model=ApiResponse[InstallationResponse])
async def set_installation_status(
    package_id: str,
    body: InstallationStatusUpdate,
    db: AsyncSession = Depends(get_db),
    prober: HealthProber = Depends(get_health_prober),
    user: AuthenticatedUser = Depends(require_role(*ADMIN_ROLES)),
):
    manager = InstallationManager(db, prober)
    installation = await manager.set_status(package_id, body.status)
    return ApiResponse(
        message=f"Installation is now {installation.status}",
        data=InstallationResponse.model_validate(installation),
    )


@router.post("/{package_id}/health", response_model=ApiResponse[HealthCheckResponse])
async def check_installation_health(
    package_id: str,
    db: AsyncSession = Depends(get_db),
    prober: HealthProber = Depends(get_health_prober),
    user: AuthenticatedUser = Depends(get_current_user),
):
    """Probe the installed service. An unhealthy answer is still a 200."""
    manager = InstallationManager(db, prober)
    probe, _ = await manager.check_health(package_id)
    return ApiResponse(
        data=HealthCheckResponse(
            status=probe.status.value,
            service_response=probe.service_response,
            error=probe.error,
            checked_at=probe.checked_at,
            response_time_ms=probe.response_time_ms,
        )
    )
