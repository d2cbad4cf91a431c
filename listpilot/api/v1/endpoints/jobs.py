# listpilot/api/v1/endpoints/jobs.py
from typing import Any, Dict, List
from fastapi import APIRouter, Depends, Query, status
import logging

from listpilot.api.v1.dependencies import get_engine
from listpilot.core.exceptions import NotFoundError
from listpilot.schemas.job import Job, JobCommandResponse, JobCreate
from listpilot.services.jobs.engine import JobEngine


router = APIRouter()
logger = logging.getLogger("listpilot.jobs.endpoint")


@router.post("/", response_model=Job, status_code=status.HTTP_201_CREATED)
async def start_job(
    job_in: JobCreate,
    engine: JobEngine = Depends(get_engine),
):
    """
    Start a bulk import.

    Any previous job of the same account is discarded first. The response is
    the job as first published; poll it for progress.
    """
    job = await engine.start_job(
        account_id=job_in.account_id,
        list_id=job_in.list_id,
        list_name=job_in.list_name,
        import_data=job_in.import_data,
        delay=job_in.delay,
    )
    logger.info(f"Started import job {job.id} for account {job.account_id}")
    return job


@router.get("/", response_model=Dict[str, Job])
async def list_jobs(engine: JobEngine = Depends(get_engine)):
    """All current jobs keyed by job ID, at most one per account."""
    return engine.jobs


@router.get("/events")
async def list_job_events(
    limit: int = Query(20, ge=1, le=200),
    engine: JobEngine = Depends(get_engine),
) -> List[Dict[str, Any]]:
    """Recent job notices (started, paused, completed...), oldest first."""
    return engine.recent_notices(limit=limit)


@router.get("/{job_id}", response_model=Job)
async def get_job(job_id: str, engine: JobEngine = Depends(get_engine)):
    """Get a job with its results."""
    job = engine.get_job(job_id)
    if not job:
        raise NotFoundError(message="Job not found", details={"job_id": job_id})
    return job


def _command_response(engine: JobEngine, job_id: str, accepted: bool) -> JobCommandResponse:
    job = engine.get_job(job_id)
    return JobCommandResponse(job_id=job_id, accepted=accepted, status=job.status if job else None)


@router.post("/{job_id}/pause", response_model=JobCommandResponse)
async def pause_job(job_id: str, engine: JobEngine = Depends(get_engine)):
    """Pause a running job before its next contact."""
    accepted = await engine.pause_job(job_id)
    return _command_response(engine, job_id, accepted)


@router.post("/{job_id}/resume", response_model=JobCommandResponse)
async def resume_job(job_id: str, engine: JobEngine = Depends(get_engine)):
    """Resume a paused job."""
    accepted = await engine.resume_job(job_id)
    return _command_response(engine, job_id, accepted)


@router.post("/{job_id}/cancel", response_model=JobCommandResponse)
async def cancel_job(job_id: str, engine: JobEngine = Depends(get_engine)):
    """
    Request cancellation.

    The job turns cancelled once its loop reaches the next checkpoint; a
    submission already in flight is allowed to finish.
    """
    accepted = await engine.cancel_job(job_id)
    return _command_response(engine, job_id, accepted)
