import pytest

from listpilot.db.repositories.accounts import AccountRepository
from listpilot.services.jobs.engine import lookup_account_api_key


@pytest.mark.asyncio
async def test_create_and_lookup(account_repo: AccountRepository):
    account = await account_repo.create_account(name="Main", api_key="xkeysib-1")

    assert account.id.startswith("acc-")
    assert account.is_active is True
    assert await lookup_account_api_key(account.id) == "xkeysib-1"
    assert await lookup_account_api_key("acc-missing") is None


@pytest.mark.asyncio
async def test_update_ignores_unset_fields(account_repo: AccountRepository):
    account = await account_repo.create_account(name="Main", api_key="xkeysib-1")

    updated = await account_repo.update_account(account_id=account.id, name="Renamed")

    assert updated.name == "Renamed"
    assert updated.api_key == "xkeysib-1"
    assert await account_repo.update_account(account_id="acc-missing", name="x") is None


@pytest.mark.asyncio
async def test_single_active_account(account_repo: AccountRepository):
    first = await account_repo.create_account(name="Main", api_key="xkeysib-1")
    second = await account_repo.create_account(name="Side", api_key="xkeysib-2")

    await account_repo.set_active(second.id)

    active = await account_repo.get_active()
    assert active.id == second.id
    assert await account_repo.count(filters={"is_active": True}) == 1
    assert await account_repo.set_active("acc-missing") is None

    await account_repo.delete_account(second.id)
    active = await account_repo.get_active()
    assert active.id == first.id


@pytest.mark.asyncio
async def test_delete_last_account(account_repo: AccountRepository):
    account = await account_repo.create_account(name="Main", api_key="xkeysib-1")

    assert await account_repo.delete_account(account.id) is True
    assert await account_repo.delete_account(account.id) is False
    assert await account_repo.get_active() is None
    assert await account_repo.list_accounts() == []
