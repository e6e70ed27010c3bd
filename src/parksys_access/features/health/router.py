"""API routes for the health module."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, status

from parksys_access.core.http.dependencies import SettingsDep, StoreDep

from .schemas import HealthCheckResponse, HealthComponentStatus

router = APIRouter()


@router.get(
    "",
    response_model=HealthCheckResponse,
    status_code=status.HTTP_200_OK,
    summary="Service health status",
    response_model_exclude_none=True,
)
async def read_health(settings: SettingsDep, store: StoreDep) -> HealthCheckResponse:
    """Return liveness plus the storage backend in use."""

    overridden = len(store.snapshot.overrides)
    return HealthCheckResponse(
        status="ok",
        timestamp=datetime.now(tz=UTC),
        components=[
            HealthComponentStatus(name="api", status="available", detail=f"v{settings.app_version}"),
            HealthComponentStatus(
                name="permission-store",
                status="available",
                detail=f"{settings.storage_backend} backend, {overridden} overridden roles",
            ),
        ],
    )
