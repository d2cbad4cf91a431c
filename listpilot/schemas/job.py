"""
Pydantic schemas for bulk-import jobs.

`Job` is the published read model: the engine replaces the stored instance
with an updated copy on every change, so an instance handed to a reader never
mutates underneath it.
"""
from typing import List, Optional, Union
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from listpilot.core.config import settings


class JobStatus(str, Enum):
    """Import job status enum."""
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ResultStatus(str, Enum):
    """Outcome of submitting one contact."""
    SUCCESS = "success"
    FAILED = "failed"


class Contact(BaseModel):
    """A contact parsed from raw import text."""
    email: str
    first_name: str = ""
    last_name: str = ""


class ImportResult(BaseModel):
    """Per-contact outcome, stored most-recent-first on the job."""
    index: int = Field(..., ge=1, description="1-based position in the original batch")
    email: str
    status: ResultStatus
    data: str = Field(..., description="Serialized provider response or error payload")


class Job(BaseModel):
    """One in-flight or finished import run."""
    id: str = Field(..., description="Job ID")
    account_id: str = Field(..., description="Account whose API key is used")
    list_id: str = Field(..., description="Target Brevo list ID")
    list_name: str = Field(..., description="Display name of the target list")
    status: JobStatus = Field(JobStatus.RUNNING, description="Job status")
    progress: float = Field(0, ge=0, le=100, description="Percentage of contacts processed")
    results: List[ImportResult] = Field(default_factory=list, description="Results, newest first")
    total_contacts: int = Field(..., ge=1, description="Number of valid parsed contacts")
    elapsed_time: int = Field(0, ge=0, description="Seconds spent running")
    delay: float = Field(0, ge=0, description="Seconds between submissions")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.status == ResultStatus.SUCCESS)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.results if r.status == ResultStatus.FAILED)


class JobCreate(BaseModel):
    """Request body for starting a bulk import."""
    account_id: str = Field(..., description="Account to import with")
    list_id: Union[str, int] = Field(..., description="Target Brevo list ID")
    list_name: str = Field("", description="Display name of the target list")
    import_data: str = Field(..., description="One contact per line: email[,firstName[,lastName]]")
    delay: float = Field(0, ge=0, description="Seconds to wait between submissions")

    @field_validator("list_id")
    @classmethod
    def list_id_as_string(cls, v: Union[str, int]) -> str:
        """Brevo list IDs are numeric; keep them as strings internally."""
        v = str(v).strip()
        if not v:
            raise ValueError("list_id must not be empty")
        return v

    @field_validator("delay")
    @classmethod
    def validate_delay(cls, v: float) -> float:
        if v > settings.JOB_MAX_DELAY_SECONDS:
            raise ValueError(f"delay cannot exceed {settings.JOB_MAX_DELAY_SECONDS} seconds")
        return v


class JobCommandResponse(BaseModel):
    """Response for pause/resume/cancel commands."""
    job_id: str
    accepted: bool = Field(..., description="False when the job's loop is no longer active")
    status: Optional[JobStatus] = Field(None, description="Published status after the command")
