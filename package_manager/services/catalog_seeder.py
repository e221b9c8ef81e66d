"""
Built-in packages and platform integrations, seeded on startup.

Seeding is an idempotent upsert. Existing packages only get their version,
description, features, permissions and required integrations refreshed, so
operator changes to service URLs and status survive. Existing integrations
never have their config or enabled flag touched, so API keys entered by an
operator survive every redeploy.
"""
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from package_manager.models import (
    IntegrationCategory,
    Package,
    PackageStatus,
    PackageType,
    PlatformIntegration,
)

logger = logging.getLogger(__name__)

# ── Built-in package definitions ────────────────────────────────────────────

BUILTIN_PACKAGES: list[dict[str, Any]] = [
    {
        "package_id": "seo-optimizer",
        "name": "SEO Optimizer",
        "description": (
            "Comprehensive SEO analysis, content generation, and optimization toolkit. "
            "Includes PageSpeed audits, Ahrefs analytics, AI-powered content generation, "
            "and image analysis."
        ),
        "version": "1.0.0",
        "icon": "search",
        "category": "marketing",
        "type": PackageType.BUILTIN.value,
        "service_url": "http://seo:5003",
        "port": 5003,
        "base_path": "/api/seo",
        "health_endpoint": "/health",
        "manifest_endpoint": "/manifest",
        "required_integrations": ["anthropic", "google-pagespeed", "google-vision", "ahrefs"],
        "permissions": [
            {"key": "seo:analysis:run", "label": "Run Analysis", "description": "Execute PageSpeed and SEO audits", "category": "Analysis"},
            {"key": "seo:analysis:read", "label": "View Results", "description": "View analysis history and results", "category": "Analysis"},
            {"key": "seo:content:generate", "label": "Generate Content", "description": "Create SEO-optimized pages", "category": "Content"},
            {"key": "seo:content:read", "label": "View Templates", "description": "Browse content templates", "category": "Content"},
            {"key": "seo:images:analyze", "label": "Analyze Images", "description": "Run image SEO analysis", "category": "Images"},
            {"key": "seo:images:read", "label": "View Images", "description": "List and view project images", "category": "Images"},
            {"key": "seo:project:manage", "label": "Manage Projects", "description": "Load and configure projects", "category": "Project"},
            {"key": "seo:project:read", "label": "View Projects", "description": "View project details", "category": "Project"},
            {"key": "seo:files:read", "label": "Read Files", "description": "Read project files", "category": "Files"},
            {"key": "seo:files:write", "label": "Write Files", "description": "Create, modify, delete files", "category": "Files"},
            {"key": "seo:ahrefs:read", "label": "Ahrefs Data", "description": "Access Ahrefs analytics", "category": "Ahrefs"},
            {"key": "seo:ai:chat", "label": "AI Chat", "description": "Use AI assistant features", "category": "AI"},
            {"key": "seo:settings:read", "label": "View Settings", "description": "View applet settings", "category": "Settings"},
            {"key": "seo:settings:write", "label": "Manage Settings", "description": "Modify applet settings", "category": "Settings"},
        ],
        "features": [
            "PageSpeed Insights analysis",
            "AI-powered SEO recommendations",
            "Content generation with templates",
            "Image analysis & optimization",
            "Ahrefs domain analytics",
            "Keyword research",
            "Backlink analysis",
            "Competitor analysis",
            "Real-time progress via SSE",
            "Granular permission system",
        ],
        "screenshots": [],
        "author": "HydroBOS",
        "documentation": "/docs/packages/seo-optimizer",
        "status": PackageStatus.AVAILABLE.value,
    },
]

# Fields refreshed on every startup for packages that already exist
PACKAGE_REFRESH_FIELDS = ("version", "description", "features", "permissions", "required_integrations")

# ── Platform integration definitions ────────────────────────────────────────

PLATFORM_INTEGRATIONS: list[dict[str, Any]] = [
    {
        "integration_id": "anthropic",
        "name": "Anthropic Claude",
        "provider": "Anthropic",
        "description": (
            "AI language models for content generation, analysis, chat, and SEO "
            "recommendations. Powers intelligent features across all packages."
        ),
        "icon": "brain",
        "category": IntegrationCategory.AI.value,
        "used_by_packages": ["seo-optimizer"],
    },
    {
        "integration_id": "google-pagespeed",
        "name": "Google PageSpeed Insights",
        "provider": "Google",
        "description": (
            "Analyze web page performance, accessibility, best practices, and SEO "
            "scores using Google Lighthouse."
        ),
        "icon": "gauge",
        "category": IntegrationCategory.ANALYTICS.value,
        "used_by_packages": ["seo-optimizer"],
    },
    {
        "integration_id": "google-vision",
        "name": "Google Cloud Vision",
        "provider": "Google",
        "description": (
            "Image analysis using machine learning: label detection, object recognition, "
            "text extraction, and content categorization."
        ),
        "icon": "eye",
        "category": IntegrationCategory.AI.value,
        "used_by_packages": ["seo-optimizer"],
    },
    {
        "integration_id": "ahrefs",
        "name": "Ahrefs",
        "provider": "Ahrefs",
        "description": (
            "SEO toolset for backlink analysis, keyword research, competitor analysis, "
            "domain overview, and organic traffic insights."
        ),
        "icon": "link",
        "category": IntegrationCategory.ANALYTICS.value,
        "used_by_packages": ["seo-optimizer"],
    },
]

INTEGRATION_REFRESH_FIELDS = ("description", "name", "icon", "category")


class CatalogSeeder:
    """Idempotent upsert of the built-in catalog."""

    def __init__(
        self,
        db: AsyncSession,
        packages: list[dict[str, Any]] = BUILTIN_PACKAGES,
        integrations: list[dict[str, Any]] = PLATFORM_INTEGRATIONS,
    ):
        self.db = db
        self.packages = packages
        self.integrations = integrations

    async def seed_builtin_packages(self) -> None:
        for definition in self.packages:
            result = await self.db.execute(
                select(Package).where(Package.package_id == definition["package_id"])
            )
            existing = result.scalar_one_or_none()

            if not existing:
                self.db.add(Package(**{k: _copy(v) for k, v in definition.items()}))
                logger.info(f"Seeded package: {definition['name']}")
                continue

            # Rolling update: refresh catalog metadata, keep operator customizations
            for field in PACKAGE_REFRESH_FIELDS:
                setattr(existing, field, _copy(definition[field]))

        await self.db.commit()

    async def seed_platform_integrations(self) -> None:
        for definition in self.integrations:
            result = await self.db.execute(
                select(PlatformIntegration).where(
                    PlatformIntegration.integration_id == definition["integration_id"]
                )
            )
            existing = result.scalar_one_or_none()

            if not existing:
                self.db.add(
                    PlatformIntegration(
                        **{k: _copy(v) for k, v in definition.items()},
                        config={"apiKey": ""},
                        enabled=False,
                        updated_by="system",
                    )
                )
                logger.info(f"Seeded integration: {definition['name']}")
                continue

            # Never touch config or enabled: they hold operator-provided secrets
            for field in INTEGRATION_REFRESH_FIELDS:
                setattr(existing, field, definition[field])

            used_by = list(existing.used_by_packages or [])
            additions = [p for p in definition["used_by_packages"] if p not in used_by]
            if additions:
                existing.used_by_packages = used_by + additions

        await self.db.commit()

    async def seed(self) -> None:
        await self.seed_builtin_packages()
        await self.seed_platform_integrations()


def _copy(value: Any) -> Any:
    # JSON columns are replaced, never mutated in place
    if isinstance(value, list):
        return [dict(v) if isinstance(v, dict) else v for v in value]
    return value
