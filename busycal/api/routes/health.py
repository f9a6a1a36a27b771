"""Health check endpoints."""

from fastapi import APIRouter

from busycal.core.deps import SettingsDep
from busycal.schemas.common import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(cfg: SettingsDep) -> HealthResponse:
    """
    Health check endpoint.

    Reports whether the link secret is configured; without it every link
    request fails.
    """
    secret_ok = bool(cfg.encryption_key)
    return HealthResponse(
        status="healthy" if secret_ok else "unhealthy",
        version=cfg.version,
        environment=cfg.environment,
        checks={"encryption_key": "configured" if secret_ok else "missing"},
    )


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """
    Liveness probe for Kubernetes/container orchestration.

    Simple check that the service is running.
    """
    return {"status": "alive"}
