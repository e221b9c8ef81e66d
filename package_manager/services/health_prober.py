"""Liveness probes against installed packages' health endpoints."""
import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Optional

import httpx

from package_manager.core.config import settings
from package_manager.models import HealthStatus

logger = logging.getLogger(__name__)


@dataclass
class ProbeResult:
    """Outcome of a single probe. Failures are data, never exceptions."""

    status: HealthStatus
    checked_at: datetime
    status_code: Optional[int] = None
    service_response: Optional[Any] = None
    error: Optional[str] = None
    response_time_ms: Optional[float] = None

    @property
    def healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY

    @property
    def reachable(self) -> bool:
        return self.status_code is not None


class HealthProber:
    """
    Issues a bounded-time GET against a health URL and classifies the result.

    2xx is healthy. Any other status, a timeout, a connection failure or any
    other transport error is unhealthy. The response body is captured for
    diagnostics when it is JSON and ignored otherwise.
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    async def probe(self, url: str, timeout: Optional[float] = None) -> ProbeResult:
        timeout = timeout if timeout is not None else settings.health_check_timeout
        started = time.monotonic()

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
                response = await client.get(url)
        except httpx.TimeoutException:
            logger.warning(f"Health probe timed out after {timeout}s: {url}")
            return ProbeResult(
                status=HealthStatus.UNHEALTHY,
                checked_at=datetime.now(UTC),
                error=f"Health check timed out after {timeout}s",
                response_time_ms=_elapsed_ms(started),
            )
        except httpx.HTTPError as e:
            logger.warning(f"Health probe failed for {url}: {e}")
            return ProbeResult(
                status=HealthStatus.UNHEALTHY,
                checked_at=datetime.now(UTC),
                error=str(e) or e.__class__.__name__,
                response_time_ms=_elapsed_ms(started),
            )

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_success:
            logger.info(f"Health probe OK: {url} ({response.status_code})")
            return ProbeResult(
                status=HealthStatus.HEALTHY,
                checked_at=datetime.now(UTC),
                status_code=response.status_code,
                service_response=body,
                response_time_ms=_elapsed_ms(started),
            )

        logger.warning(f"Health probe unhealthy: {url} returned {response.status_code}")
        return ProbeResult(
            status=HealthStatus.UNHEALTHY,
            checked_at=datetime.now(UTC),
            status_code=response.status_code,
            service_response=body,
            error=f"Health check failed with HTTP {response.status_code}",
            response_time_ms=_elapsed_ms(started),
        )


def _elapsed_ms(started: float) -> float:
    return round((time.monotonic() - started) * 1000, 1)


def get_health_prober() -> HealthProber:
    """FastAPI dependency; tests override it with a prober on a mock transport."""
    return HealthProber()
