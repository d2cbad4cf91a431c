"""
Pydantic schemas for the Brevo proxy endpoints.
"""
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator


class MailingList(BaseModel):
    """A Brevo contact list, reshaped to what the console needs."""
    id: int
    name: str


class ListContactsPage(BaseModel):
    """One page of a list's subscribers."""
    contacts: List[Dict[str, Any]] = Field(default_factory=list)
    total: int = 0


class SingleContactImport(BaseModel):
    """Import one contact into one list."""
    list_id: Union[str, int]
    email: str = Field(..., min_length=1)
    first_name: str = ""
    last_name: str = ""

    @field_validator("email")
    @classmethod
    def strip_email(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("email must not be blank")
        return v


class DeleteContactsRequest(BaseModel):
    """Emails of the contacts to delete."""
    emails: List[str] = Field(..., min_length=1)


class FailedDeletion(BaseModel):
    email: str
    reason: str


class DeletionDetails(BaseModel):
    success: List[str] = Field(default_factory=list)
    failed: List[FailedDeletion] = Field(default_factory=list)


class DeleteContactsResponse(BaseModel):
    message: str
    details: DeletionDetails


class Sender(BaseModel):
    """A Brevo sender identity."""
    id: int
    name: str
    email: str
    active: Optional[bool] = None


class SenderUpdate(BaseModel):
    name: str = Field(..., min_length=1)


class TemplatesPage(BaseModel):
    """SMTP templates as returned by Brevo."""
    templates: List[Dict[str, Any]] = Field(default_factory=list)
    count: int = 0


class TemplateSender(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    id: Optional[int] = None


class TemplateUpdate(BaseModel):
    """Fields of an SMTP template that the console can edit."""
    subject: Optional[str] = None
    html_content: Optional[str] = None
    sender: Optional[TemplateSender] = None
