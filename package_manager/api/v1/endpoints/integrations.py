"""Platform integration endpoints: masked reads, partial updates, key brokering."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from package_manager.core.auth import (
    ADMIN_ROLES,
    AuthenticatedUser,
    get_current_user,
    require_internal_caller,
    require_role,
)
from package_manager.core.database import get_db
from package_manager.schemas.common import ApiResponse
from package_manager.schemas.integration import (
    IntegrationKeyResponse,
    IntegrationResponse,
    IntegrationTestResult,
    IntegrationUpdate,
    IntegrationUpdateResponse,
)
from package_manager.services.credential_store import CredentialStore
from package_manager.services.integration_verifier import (
    IntegrationVerifier,
    get_integration_verifier,
)

router = APIRouter(prefix="/integrations", tags=["integrations"])


@router.get("", response_model=ApiResponse[list[IntegrationResponse]])
async def list_integrations(
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
):
    """All platform integrations with secret fields masked."""
    store = CredentialStore(db)
    integrations = await store.list_integrations()
    return ApiResponse(data=[IntegrationResponse.model_validate(i) for i in integrations])


@router.get("/{integration_id}", response_model=ApiResponse[IntegrationResponse])
async def get_integration(
    integration_id: str,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
):
    store = CredentialStore(db)
    integration = await store.get_integration(integration_id)
    return ApiResponse(data=IntegrationResponse.model_validate(integration))


@router.put("/{integration_id}", response_model=ApiResponse[IntegrationUpdateResponse])
async def update_integration(
    integration_id: str,
    body: IntegrationUpdate,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(require_role(*ADMIN_ROLES)),
):
    """Merge the given config keys into the stored config; omitted keys are kept."""
    store = CredentialStore(db)
    summary = await store.update(
        integration_id, updated_by=user.email, config=body.config, enabled=body.enabled
    )
    return ApiResponse(
        message="Integration updated successfully",
        data=IntegrationUpdateResponse.model_validate(summary),
    )


@router.get("/{integration_id}/key", response_model=ApiResponse[IntegrationKeyResponse])
async def get_integration_key(
    integration_id: str,
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(require_internal_caller),
):
    """Unmasked key for co-resident package services. Disabled integrations are 404."""
    store = CredentialStore(db)
    key = await store.get_key_for_consumption(integration_id)
    return ApiResponse(data=IntegrationKeyResponse.model_validate(key))


@router.post("/{integration_id}/test", response_model=ApiResponse[IntegrationTestResult])
async def test_integration(
    integration_id: str,
    verifier: IntegrationVerifier = Depends(get_integration_verifier),
    user: AuthenticatedUser = Depends(require_role(*ADMIN_ROLES)),
):
    """Check the stored key against the provider. Provider failures are data, not errors."""
    result = await verifier.test(integration_id)
    return ApiResponse(
        data=IntegrationTestResult(
            success=result.success, message=result.message, details=result.details
        )
    )
