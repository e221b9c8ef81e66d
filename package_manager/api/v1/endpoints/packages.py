"""Package registry endpoints: browse, register, edit and remove catalog entries."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from package_manager.core.auth import (
    ADMIN_ROLES,
    PLATFORM_ADMIN,
    AuthenticatedUser,
    get_current_user,
    require_role,
)
from package_manager.core.database import get_db
from package_manager.schemas.common import ApiResponse
from package_manager.schemas.installation import InstallationResponse
from package_manager.schemas.package import (
    PackageCreate,
    PackageDetail,
    PackageListItem,
    PackageResponse,
    PackageUpdate,
)
from package_manager.services.package_registry import PackageRegistry

router = APIRouter(tags=["packages"])


@router.get("", response_model=ApiResponse[list[PackageListItem]])
async def list_packages(
    category: Optional[str] = Query(None),
    package_type: Optional[str] = Query(None, alias="type"),
    search: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
):
    """List available packages with their org-wide installation state."""
    registry = PackageRegistry(db)
    entries = await registry.list_packages(category=category, package_type=package_type, search=search)

    items = []
    for package, installation in entries:
        item = PackageListItem.model_validate(package)
        item.installed = installation is not None
        if installation:
            item.installation_status = installation.status
            item.installation_id = installation.id
        items.append(item)

    return ApiResponse(data=items)


@router.post(
    "",
    response_model=ApiResponse[PackageResponse],
    status_code=status.HTTP_201_CREATED,
)
async def register_package(
    body: PackageCreate,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(require_role(*ADMIN_ROLES)),
):
    """Register a custom package. The registering admin becomes its author."""
    registry = PackageRegistry(db)
    package = await registry.register(body, author=user.email)
    return ApiResponse(
        message="Package registered successfully",
        data=PackageResponse.model_validate(package),
    )


@router.get("/{package_id}", response_model=ApiResponse[PackageDetail])
async def get_package(
    package_id: str,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
):
    registry = PackageRegistry(db)
    package = await registry.get(package_id)
    installation = await registry.get_org_installation(package_id)

    detail = PackageDetail.model_validate(package)
    detail.installed = installation is not None
    if installation:
        detail.installation = InstallationResponse.model_validate(installation)

    return ApiResponse(data=detail)


@router.patch("/{package_id}", response_model=ApiResponse[PackageResponse])
async def update_package(
    package_id: str,
    body: PackageUpdate,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(require_role(*ADMIN_ROLES)),
):
    registry = PackageRegistry(db)
    package = await registry.update(package_id, body)
    return ApiResponse(
        message="Package updated successfully",
        data=PackageResponse.model_validate(package),
    )


@router.delete("/{package_id}", response_model=ApiResponse[None])
async def delete_package(
    package_id: str,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(require_role(PLATFORM_ADMIN)),
):
    """Remove a non-builtin package together with all its installations."""
    registry = PackageRegistry(db)
    package = await registry.unregister(package_id)
    return ApiResponse(message=f'Package "{package.name}" deleted successfully')
