# listpilot/api/v1/endpoints/lists.py
"""
Brevo contact lists: browsing, single imports and deletions.
"""
from typing import List
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
import logging

from listpilot.api.v1.dependencies import get_brevo_client
from listpilot.core.exceptions import ProviderError
from listpilot.schemas.job import Contact
from listpilot.schemas.provider import (
    DeleteContactsRequest,
    DeleteContactsResponse,
    DeletionDetails,
    ListContactsPage,
    MailingList,
    SingleContactImport,
)
from listpilot.services.provider.client import BrevoClient


router = APIRouter()
logger = logging.getLogger("listpilot.lists")


@router.get("/{account_id}/lists", response_model=List[MailingList])
async def get_lists(brevo: BrevoClient = Depends(get_brevo_client)):
    """Get the account's contact lists."""
    return await brevo.get_lists()


@router.get("/{account_id}/lists/{list_id}/contacts", response_model=ListContactsPage)
async def get_list_contacts(
    list_id: str,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=500),
    brevo: BrevoClient = Depends(get_brevo_client),
):
    """Get one page of a list's subscribers."""
    return await brevo.get_list_contacts(list_id, page=page, per_page=per_page)


@router.post("/{account_id}/contacts", status_code=status.HTTP_201_CREATED)
async def import_contact(
    contact_in: SingleContactImport,
    brevo: BrevoClient = Depends(get_brevo_client),
):
    """
    Import one contact into one list, outside of any bulk job.
    """
    contact = Contact(
        email=contact_in.email,
        first_name=contact_in.first_name.strip(),
        last_name=contact_in.last_name.strip(),
    )
    submission = await brevo.create_contact(str(contact_in.list_id), contact)
    if not submission.success:
        logger.warning(f"Single import of {contact.email} into list {contact_in.list_id} failed")
        raise ProviderError(
            message=f"Failed to import {contact.email}",
            status_code=submission.status_code or status.HTTP_502_BAD_GATEWAY,
            details={"response": submission.body},
        )

    return {"email": contact.email, "response": submission.body}


@router.post("/{account_id}/contacts/delete", response_model=DeleteContactsResponse)
async def delete_contacts(
    request: DeleteContactsRequest,
    brevo: BrevoClient = Depends(get_brevo_client),
):
    """
    Delete contacts by email.

    Answers 200 when every deletion succeeded, 207 on partial success and
    500 when none did.
    """
    results = await brevo.delete_contacts(request.emails)
    succeeded, failed = len(results["success"]), len(results["failed"])

    if failed == 0:
        status_code = status.HTTP_200_OK
        message = f"Successfully deleted {succeeded} contacts."
    elif succeeded > 0:
        status_code = status.HTTP_207_MULTI_STATUS
        message = f"Partially completed: {succeeded} deleted, {failed} failed."
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        message = f"Failed to delete all {failed} contacts."

    response = DeleteContactsResponse(message=message, details=DeletionDetails(**results))
    return JSONResponse(status_code=status_code, content=response.model_dump())
