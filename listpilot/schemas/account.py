# listpilot/schemas/account.py
from typing import Any, Optional
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class ConnectionStatus(str, Enum):
    """Result of probing an account's API key."""
    CONNECTED = "connected"
    FAILED = "failed"


class AccountBase(BaseModel):
    """Base schema for account data."""
    name: str = Field(..., min_length=1, description="Display name")


class AccountCreate(AccountBase):
    """Schema for registering an account."""
    api_key: str = Field(..., min_length=1, description="Brevo API key")

    @field_validator("name", "api_key")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class AccountUpdate(AccountCreate):
    """Schema for updating an account; both fields are required, as on create."""
    pass


class AccountResponse(AccountBase):
    """Account as returned by the API."""
    id: str = Field(..., description="Account ID")
    api_key: str = Field(..., description="Brevo API key")
    is_active: bool = Field(False, description="Whether this is the active account")
    created_at: datetime
    updated_at: datetime

    class Config:
        """Pydantic config."""
        from_attributes = True


class StatusCheckRequest(BaseModel):
    """Ad-hoc connectivity check for a key that is not stored yet."""
    api_key: str = Field(..., min_length=1)


class StatusCheckResponse(BaseModel):
    """Connectivity check result."""
    status: ConnectionStatus
    response: Optional[Any] = Field(None, description="Provider account payload or error details")
