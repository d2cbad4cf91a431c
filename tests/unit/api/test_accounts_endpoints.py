from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from listpilot.schemas.account import ConnectionStatus
from listpilot.services.provider.client import BrevoClient


async def create_account(client: AsyncClient, name: str, api_key: str = "xkeysib-1") -> dict:
    response = await client.post("/api/v1/accounts/", json={"name": name, "api_key": api_key})
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_first_account_becomes_active(async_client: AsyncClient):
    first = await create_account(async_client, "Main")
    second = await create_account(async_client, "Side", "xkeysib-2")

    assert first["id"].startswith("acc-")
    assert first["is_active"] is True
    assert second["is_active"] is False

    response = await async_client.get("/api/v1/accounts/active")
    assert response.status_code == 200
    assert response.json()["id"] == first["id"]


@pytest.mark.asyncio
async def test_list_accounts_oldest_first(async_client: AsyncClient):
    await create_account(async_client, "Main")
    await create_account(async_client, "Side")

    response = await async_client.get("/api/v1/accounts/")
    assert response.status_code == 200
    assert [a["name"] for a in response.json()] == ["Main", "Side"]


@pytest.mark.asyncio
async def test_create_account_requires_name_and_key(async_client: AsyncClient):
    response = await async_client.post("/api/v1/accounts/", json={"name": "  ", "api_key": "xkeysib-1"})
    assert response.status_code == 422

    response = await async_client.post("/api/v1/accounts/", json={"name": "Main"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_account(async_client: AsyncClient):
    account = await create_account(async_client, "Main")

    response = await async_client.put(
        f"/api/v1/accounts/{account['id']}",
        json={"name": "Renamed", "api_key": "xkeysib-new"},
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Renamed"
    assert response.json()["api_key"] == "xkeysib-new"


@pytest.mark.asyncio
async def test_activate_account(async_client: AsyncClient):
    first = await create_account(async_client, "Main")
    second = await create_account(async_client, "Side")

    response = await async_client.post(f"/api/v1/accounts/{second['id']}/activate")
    assert response.status_code == 200
    assert response.json()["is_active"] is True

    response = await async_client.get(f"/api/v1/accounts/{first['id']}")
    assert response.json()["is_active"] is False


@pytest.mark.asyncio
async def test_deleting_active_account_promotes_oldest(async_client: AsyncClient):
    first = await create_account(async_client, "Main")
    second = await create_account(async_client, "Side")
    third = await create_account(async_client, "Spare")

    response = await async_client.delete(f"/api/v1/accounts/{first['id']}")
    assert response.status_code == 200

    response = await async_client.get("/api/v1/accounts/active")
    assert response.json()["id"] == second["id"]

    response = await async_client.get(f"/api/v1/accounts/{third['id']}")
    assert response.json()["is_active"] is False


@pytest.mark.asyncio
async def test_no_active_account(async_client: AsyncClient):
    response = await async_client.get("/api/v1/accounts/active")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_unknown_account_uses_error_format(async_client: AsyncClient):
    response = await async_client.get("/api/v1/accounts/acc-missing")
    assert response.status_code == 404
    body = response.json()
    assert body["status"] == "error"
    assert body["code"] == "NOT_FOUND"
    assert body["details"] == {"account_id": "acc-missing"}

    response = await async_client.delete("/api/v1/accounts/acc-missing")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_check_status_of_stored_account(async_client: AsyncClient):
    account = await create_account(async_client, "Main")
    check = AsyncMock(return_value=(ConnectionStatus.CONNECTED, {"email": "me@x.com"}))

    with patch.object(BrevoClient, "check_status", check):
        response = await async_client.get(f"/api/v1/accounts/{account['id']}/status")

    assert response.status_code == 200
    assert response.json() == {"status": "connected", "response": {"email": "me@x.com"}}


@pytest.mark.asyncio
async def test_check_status_of_new_key(async_client: AsyncClient):
    check = AsyncMock(return_value=(ConnectionStatus.FAILED, {"message": "Key not found"}))

    with patch.object(BrevoClient, "check_status", check):
        response = await async_client.post("/api/v1/accounts/check-status", json={"api_key": "xkeysib-bad"})

    assert response.status_code == 200
    assert response.json()["status"] == "failed"
