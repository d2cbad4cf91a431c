# listpilot/api/v1/endpoints/templates.py
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
import logging

from listpilot.api.v1.dependencies import get_brevo_client
from listpilot.schemas.provider import TemplatesPage, TemplateUpdate
from listpilot.services.provider.client import BrevoClient


router = APIRouter()
logger = logging.getLogger("listpilot.templates")


@router.get("/{account_id}/templates", response_model=TemplatesPage)
async def get_templates(
    template_status: Optional[bool] = Query(True, description="Only active templates when true"),
    limit: int = Query(50, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    sort: str = Query("desc", pattern="^(asc|desc)$"),
    brevo: BrevoClient = Depends(get_brevo_client),
):
    """Get the account's SMTP templates."""
    return await brevo.get_templates(
        template_status=template_status,
        limit=limit,
        offset=offset,
        sort=sort,
    )


@router.put("/{account_id}/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_template(
    template_id: str,
    template_in: TemplateUpdate,
    brevo: BrevoClient = Depends(get_brevo_client),
):
    """
    Update a template's subject, HTML content or sender.

    A sender must carry an email or an id. An update with nothing to change
    is accepted without calling Brevo.
    """
    if await brevo.update_template(template_id, template_in):
        logger.info(f"Template {template_id} updated")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
