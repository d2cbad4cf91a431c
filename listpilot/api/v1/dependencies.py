"""
Dependencies for API endpoints.
"""
from typing import AsyncGenerator

from fastapi import Depends, Path

from listpilot.core.exceptions import NotFoundError
from listpilot.db.repositories.accounts import AccountRepository
from listpilot.db.session import get_repository_factory
from listpilot.models.account import Account
from listpilot.services.jobs.engine import JobEngine, get_job_engine
from listpilot.services.provider.client import BrevoClient


get_account_repository = get_repository_factory(AccountRepository)


async def get_engine() -> JobEngine:
    """Get the job engine."""
    return get_job_engine()


async def get_account(
    account_id: str = Path(..., description="Account ID"),
    account_repo: AccountRepository = Depends(get_account_repository),
) -> Account:
    """
    Load the account named in the path.

    Raises:
        NotFoundError: If the account does not exist
    """
    account = await account_repo.get_by_id(account_id)
    if not account:
        raise NotFoundError(message="Account not found", details={"account_id": account_id})
    return account


async def get_brevo_client(
    account: Account = Depends(get_account),
) -> AsyncGenerator[BrevoClient, None]:
    """Brevo client bound to the account's API key, closed after the request."""
    async with BrevoClient(account.api_key) as client:
        yield client
