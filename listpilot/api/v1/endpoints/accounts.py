# listpilot/api/v1/endpoints/accounts.py
"""
API endpoints for account management.
"""
import logging
from typing import Dict, List

from fastapi import APIRouter, Depends, status

from listpilot.api.v1.dependencies import get_account, get_account_repository, get_engine
from listpilot.core.exceptions import NotFoundError
from listpilot.db.repositories.accounts import AccountRepository
from listpilot.models.account import Account
from listpilot.schemas.account import (
    AccountCreate,
    AccountResponse,
    AccountUpdate,
    StatusCheckRequest,
    StatusCheckResponse,
)
from listpilot.schemas.job import Job
from listpilot.services.event_bus.bus import get_event_bus
from listpilot.services.event_bus.events import EventType
from listpilot.services.jobs.engine import JobEngine
from listpilot.services.provider.client import BrevoClient

router = APIRouter()
logger = logging.getLogger("listpilot.accounts")


@router.get("/", response_model=List[AccountResponse])
async def list_accounts(
    account_repo: AccountRepository = Depends(get_account_repository),
):
    """List all registered accounts, oldest first."""
    return await account_repo.list_accounts()


@router.post("/", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    account_in: AccountCreate,
    account_repo: AccountRepository = Depends(get_account_repository),
):
    """
    Register a Brevo account.

    The first registered account becomes the active one.
    """
    account = await account_repo.create_account(name=account_in.name, api_key=account_in.api_key)
    await get_event_bus().publish(EventType.ACCOUNT_CREATED, {"account_id": account.id})
    return account


@router.get("/active", response_model=AccountResponse)
async def get_active_account(
    account_repo: AccountRepository = Depends(get_account_repository),
):
    """Get the active account."""
    account = await account_repo.get_active()
    if not account:
        raise NotFoundError(message="No active account")
    return account


@router.post("/check-status", response_model=StatusCheckResponse)
async def check_api_key(request: StatusCheckRequest):
    """
    Check an API key that is not stored yet, e.g. before registering it.
    """
    async with BrevoClient(request.api_key) as client:
        connection, response = await client.check_status()
    return StatusCheckResponse(status=connection, response=response)


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account_by_id(account: Account = Depends(get_account)):
    """Get one account."""
    return account


@router.put("/{account_id}", response_model=AccountResponse)
async def update_account(
    account_in: AccountUpdate,
    account: Account = Depends(get_account),
    account_repo: AccountRepository = Depends(get_account_repository),
):
    """Update an account's name and API key."""
    updated = await account_repo.update_account(
        account_id=account.id,
        name=account_in.name,
        api_key=account_in.api_key,
    )
    await get_event_bus().publish(EventType.ACCOUNT_UPDATED, {"account_id": account.id})
    return updated


@router.delete("/{account_id}", status_code=status.HTTP_200_OK)
async def delete_account(
    account_id: str,
    account_repo: AccountRepository = Depends(get_account_repository),
) -> Dict[str, str]:
    """
    Delete an account.

    A job already running for the account keeps the API key it started with.
    """
    deleted = await account_repo.delete_account(account_id)
    if not deleted:
        raise NotFoundError(message="Account not found", details={"account_id": account_id})

    await get_event_bus().publish(EventType.ACCOUNT_DELETED, {"account_id": account_id})
    return {"message": "Account deleted successfully"}


@router.post("/{account_id}/activate", response_model=AccountResponse)
async def activate_account(
    account: Account = Depends(get_account),
    account_repo: AccountRepository = Depends(get_account_repository),
):
    """Make this the active account."""
    return await account_repo.set_active(account.id)


@router.get("/{account_id}/status", response_model=StatusCheckResponse)
async def check_account_status(account: Account = Depends(get_account)):
    """Check that the account's API key is accepted by Brevo."""
    async with BrevoClient(account.api_key) as client:
        connection, response = await client.check_status()

    logger.info(f"Account {account.id} status: {connection.value}")
    return StatusCheckResponse(status=connection, response=response)


@router.get("/{account_id}/job", response_model=Job)
async def get_account_job(
    account: Account = Depends(get_account),
    engine: JobEngine = Depends(get_engine),
):
    """Get the account's current or last import job."""
    job = engine.get_job_for_account(account.id)
    if not job:
        raise NotFoundError(message="No import job for this account", details={"account_id": account.id})
    return job
