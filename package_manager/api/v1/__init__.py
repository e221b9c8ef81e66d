"""API v1 router - package lifecycle and integration credential management."""
from fastapi import APIRouter

from .endpoints import installations, integrations, packages

API_PREFIX = "/api/packages"

router = APIRouter()

# Fixed sub-paths first, the registry's /{package_id} catch-all last
router.include_router(installations.router, prefix=API_PREFIX)
router.include_router(integrations.router, prefix=API_PREFIX)
router.include_router(packages.router, prefix=API_PREFIX)
