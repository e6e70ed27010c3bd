"""Health, catalog and self-permission endpoints."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def test_health_endpoint_returns_ok(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.headers.get("X-Request-ID")
    payload = response.json()
    assert payload["status"] == "ok"
    assert [component["name"] for component in payload["components"]] == [
        "api",
        "permission-store",
    ]


async def test_request_id_is_echoed(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/v1/health", headers={"X-Request-ID": "req-42"})

    assert response.headers["X-Request-ID"] == "req-42"


async def test_list_roles(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/v1/roles")

    assert response.status_code == 200
    roles = response.json()
    assert [role["id"] for role in roles][:2] == ["super-admin", "director-general"]
    assert [role["id"] for role in roles if role["is_protected"]] == ["super-admin"]


async def test_list_modules(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/v1/modules")

    keys = [module["key"] for module in response.json()]
    assert keys[0] == "Configuración"
    assert "Seguridad" in keys
    assert len(keys) == 8


async def test_my_permissions(async_client: AsyncClient, as_role) -> None:
    response = await async_client.get(
        "/api/v1/me/permissions", headers=as_role("coordinador-actividades")
    )

    payload = response.json()
    assert payload["known_role"] is True
    assert payload["grant_count"] == 4
    assert payload["permissions"]["Actividades"] == ["read", "write"]
    assert payload["permissions"]["Finanzas"] == []


async def test_my_permissions_unknown_role(async_client: AsyncClient, as_role) -> None:
    response = await async_client.get("/api/v1/me/permissions", headers=as_role("ghost-role"))

    assert response.json() == {
        "role": "ghost-role",
        "known_role": False,
        "grant_count": 0,
        "permissions": {},
    }
