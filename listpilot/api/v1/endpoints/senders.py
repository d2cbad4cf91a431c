# listpilot/api/v1/endpoints/senders.py
from typing import List
from fastapi import APIRouter, Depends, Response, status

from listpilot.api.v1.dependencies import get_brevo_client
from listpilot.schemas.provider import Sender, SenderUpdate
from listpilot.services.provider.client import BrevoClient


router = APIRouter()


@router.get("/{account_id}/senders", response_model=List[Sender])
async def get_senders(brevo: BrevoClient = Depends(get_brevo_client)):
    """Get the account's sender identities."""
    return await brevo.get_senders()


@router.put("/{account_id}/senders/{sender_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_sender(
    sender_id: str,
    sender_in: SenderUpdate,
    brevo: BrevoClient = Depends(get_brevo_client),
):
    """Rename a sender."""
    await brevo.update_sender(sender_id, sender_in.name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
