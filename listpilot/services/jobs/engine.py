# listpilot/services/jobs/engine.py
"""
Bulk-import job engine.

Owns every import job in the process: the published job records and, for
jobs whose submission loop is still alive, their pause/cancel controls.
Contacts are submitted strictly one at a time per job; pause and cancel are
cooperative and take effect at the loop's checkpoints.
"""
import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

from listpilot.core.config import settings
from listpilot.core.exceptions import NotFoundError, ValidationError
from listpilot.db.repositories.accounts import AccountRepository
from listpilot.db.session import get_repository_context
from listpilot.schemas.job import (
    Contact,
    ImportResult,
    Job,
    JobStatus,
    ResultStatus,
)
from listpilot.services.event_bus.bus import EventBus, get_event_bus
from listpilot.services.event_bus.events import EventType, JobNotice, NOTICE_EVENTS
from listpilot.services.jobs.control import JobControl
from listpilot.services.jobs.parser import parse_contacts
from listpilot.services.provider.client import BrevoClient, ContactSubmission
from listpilot.utils.ids import IDPrefix, generate_prefixed_id

logger = logging.getLogger("listpilot.jobs")

TERMINAL_STATUSES = (JobStatus.COMPLETED, JobStatus.CANCELLED)


class ContactClient(Protocol):
    """What the submission loop needs from a provider client."""

    async def create_contact(self, list_id: str, contact: Contact) -> ContactSubmission: ...

    async def aclose(self) -> None: ...


AccountLookup = Callable[[str], Awaitable[Optional[str]]]
ClientFactory = Callable[[str], ContactClient]


async def lookup_account_api_key(account_id: str) -> Optional[str]:
    """Resolve an account ID to its Brevo API key, or None if unknown."""
    async with get_repository_context(AccountRepository) as account_repo:
        account = await account_repo.get_by_id(account_id)
        return account.api_key if account else None


def serialize_payload(payload: Any) -> str:
    """Render a provider response or error for a result entry."""
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, indent=2, default=str)


class JobEngine:
    """
    Service running bulk contact imports.

    At most one job exists per account: starting a new one discards the
    account's previous job, whatever its status.
    """

    def __init__(
        self,
        event_bus: EventBus,
        account_lookup: AccountLookup = lookup_account_api_key,
        client_factory: ClientFactory = BrevoClient,
        *,
        pause_poll_interval: Optional[float] = None,
        tick_interval: Optional[float] = None,
        discard_grace: Optional[float] = None
    ):
        """
        Initialize the job engine.

        Args:
            event_bus: Event bus that receives job state and notices
            account_lookup: Coroutine mapping an account ID to its API key
            client_factory: Builds a provider client for an API key
            pause_poll_interval: Upper bound between pause re-checks
            tick_interval: Period of the elapsed-time ticker
            discard_grace: Yield after discarding an account's previous job
        """
        self.event_bus = event_bus
        self.account_lookup = account_lookup
        self.client_factory = client_factory
        self.pause_poll_interval = (
            settings.JOB_PAUSE_POLL_INTERVAL if pause_poll_interval is None else pause_poll_interval
        )
        self.tick_interval = settings.JOB_TICK_INTERVAL if tick_interval is None else tick_interval
        self.discard_grace = (
            settings.JOB_DISCARD_GRACE_SECONDS if discard_grace is None else discard_grace
        )

        self._jobs: Dict[str, Job] = {}
        self._controls: Dict[str, JobControl] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._lock = asyncio.Lock()
        self._start_locks: Dict[str, asyncio.Lock] = {}
        self._ticking = False

    # Read model

    @property
    def jobs(self) -> Dict[str, Job]:
        """Snapshot of all published jobs keyed by job ID."""
        return dict(self._jobs)

    def get_job(self, job_id: str) -> Optional[Job]:
        return self._jobs.get(job_id)

    def get_job_for_account(self, account_id: str) -> Optional[Job]:
        for job in self._jobs.values():
            if job.account_id == account_id:
                return job
        return None

    def has_control(self, job_id: str) -> bool:
        """Whether the job's submission loop is still active."""
        return job_id in self._controls

    def recent_notices(self, limit: int = 20) -> List[Dict[str, Any]]:
        """Most recent job notices, oldest first."""
        return self.event_bus.get_event_history(limit=limit, event_types=NOTICE_EVENTS)

    # Commands

    async def start_job(
        self,
        *,
        account_id: str,
        list_id: str,
        list_name: str,
        import_data: str,
        delay: float = 0
    ) -> Job:
        """
        Start importing a batch of contacts into a list.

        Args:
            account_id: Account whose API key is used for every submission
            list_id: Target Brevo list ID
            list_name: Display name of the list
            import_data: Raw text, one `email[,firstName[,lastName]]` per line
            delay: Seconds to wait between consecutive submissions

        Returns:
            Job: The newly published job

        Raises:
            NotFoundError: If the account does not exist
            ValidationError: If the text holds no valid contacts
        """
        api_key = await self.account_lookup(account_id)
        if not api_key:
            raise NotFoundError(message="Account not found", details={"account_id": account_id})

        contacts = parse_contacts(import_data)
        if not contacts:
            raise ValidationError(message="No valid contacts", code="NO_VALID_CONTACTS")

        # Overlapping starts for one account must not both survive the discard
        async with self._start_locks.setdefault(account_id, asyncio.Lock()):
            await self._discard_account_jobs(account_id)

            job_id = generate_prefixed_id(IDPrefix.JOB)
            control = JobControl(job_id)
            self._controls[job_id] = control

            job = Job(
                id=job_id,
                account_id=account_id,
                list_id=str(list_id),
                list_name=list_name,
                status=JobStatus.RUNNING,
                total_contacts=len(contacts),
                delay=delay,
            )
            await self._publish(job)
            await self._notify(
                EventType.JOB_STARTED, job, "Starting Job",
                f'Importing {len(contacts)} contacts to "{list_name}".'
            )

            task = asyncio.create_task(
                self._run(job_id, control, api_key, contacts),
                name=f"import-{job_id}",
            )
            self._tasks[job_id] = task
            task.add_done_callback(lambda t, jid=job_id: self._on_task_done(jid, t))

        return job

    async def pause_job(self, job_id: str) -> bool:
        """
        Ask a running job to pause.

        Returns:
            bool: False if the job's loop is no longer active
        """
        control = self._controls.get(job_id)
        if control is None:
            return False

        if not control.is_paused:
            job = await self._command_status(job_id, control, JobStatus.PAUSED, control.pause)
            if job is None:
                return False
            await self._notify(EventType.JOB_PAUSED, job, "Job Paused", f'Job for "{job.list_name}" paused.')
        return True

    async def resume_job(self, job_id: str) -> bool:
        """
        Resume a paused job.

        Returns:
            bool: False if the job's loop is no longer active
        """
        control = self._controls.get(job_id)
        if control is None:
            return False

        if control.is_paused:
            job = await self._command_status(job_id, control, JobStatus.RUNNING, control.resume)
            if job is None:
                return False
            await self._notify(EventType.JOB_RESUMED, job, "Job Resumed", f'Job for "{job.list_name}" resumed.')
        return True

    async def cancel_job(self, job_id: str) -> bool:
        """
        Request cancellation.

        Only the flag is set here; the submission loop publishes the
        cancelled status when it reaches its next checkpoint.

        Returns:
            bool: False if the job's loop is no longer active
        """
        control = self._controls.get(job_id)
        if control is None:
            return False

        if not control.is_cancelled:
            control.cancel()
            job = self._jobs.get(job_id)
            if job:
                await self._notify(
                    EventType.JOB_CANCEL_REQUESTED, job, "Job Cancellation Requested",
                    f'Stopping job for "{job.list_name}".', variant="destructive"
                )
        return True

    # Elapsed-time ticker

    async def tick(self) -> int:
        """
        Add one second to every running job.

        Each updated job is announced to subscribers but kept out of the
        event history, which would otherwise fill with ticks.

        Returns:
            int: Number of jobs that were updated
        """
        async with self._lock:
            updated = [
                job.model_copy(update={"elapsed_time": job.elapsed_time + 1})
                for job in self._jobs.values() if job.status == JobStatus.RUNNING
            ]
            for job in updated:
                self._jobs[job.id] = job

        for job in updated:
            await self._announce(job, record=False)
        return len(updated)

    async def run_ticker(self) -> None:
        """Tick until stop_ticker() is called or the task is cancelled."""
        if self._ticking:
            return

        self._ticking = True
        logger.info("Starting job elapsed-time ticker")

        while self._ticking:
            await asyncio.sleep(self.tick_interval)
            try:
                await self.tick()
            except Exception as e:
                logger.error(f"Error in job ticker: {e}", exc_info=True)

    def stop_ticker(self) -> None:
        self._ticking = False
        logger.info("Job elapsed-time ticker stopped")

    async def shutdown(self) -> None:
        """Stop the ticker and cancel every live submission loop."""
        self.stop_ticker()
        tasks = [task for task in self._tasks.values() if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info(f"Job engine shut down, {len(tasks)} running imports interrupted")

    # Submission loop

    async def _run(
        self,
        job_id: str,
        control: JobControl,
        api_key: str,
        contacts: List[Contact]
    ) -> None:
        """Background task driving one job from start to a terminal status."""
        client = None
        try:
            client = self.client_factory(api_key)
            await self._submit_all(job_id, control, client, contacts)
        except Exception as e:
            logger.error(f"Import job {job_id} crashed: {e}", exc_info=True)
            if self._owns(job_id, control):
                await self._finish_cancelled(job_id, control, reason="stopped after an internal error")
        finally:
            if client is not None:
                await client.aclose()

    async def _submit_all(
        self,
        job_id: str,
        control: JobControl,
        client: ContactClient,
        contacts: List[Contact]
    ) -> None:
        job = self._jobs.get(job_id)
        if job is None or not self._owns(job_id, control):
            logger.warning(f"Job {job_id} was removed before its loop started")
            return
        list_id, delay, total = job.list_id, job.delay, len(contacts)

        for i, contact in enumerate(contacts):
            # Checkpoint A
            if not await self._checkpoint(job_id, control):
                return

            while control.is_paused:
                if not self._owns(job_id, control):
                    logger.warning(f"Job {job_id} controls not found while paused, likely removed")
                    return
                if control.is_cancelled:
                    await self._finish_cancelled(job_id, control, reason="stopped while paused")
                    return
                await control.wait_for_change(self.pause_poll_interval)

            # Checkpoint B
            if not await self._checkpoint(job_id, control):
                return

            if i > 0 and delay > 0:
                await asyncio.sleep(delay)

            # Checkpoint C
            if not await self._checkpoint(job_id, control):
                return

            submission = await self._submit(client, list_id, contact)
            await self._record_result(job_id, i, total, contact, submission)

        if self._owns(job_id, control):
            await self._finish_completed(job_id, control)

    async def _checkpoint(self, job_id: str, control: JobControl) -> bool:
        """
        Decide whether the loop may continue.

        A loop that lost ownership stops silently; a cancelled one publishes
        the cancelled status first.
        """
        if not self._owns(job_id, control):
            logger.warning(f"Job {job_id} controls not found, likely removed")
            return False
        if control.is_cancelled:
            await self._finish_cancelled(job_id, control)
            return False
        return True

    def _owns(self, job_id: str, control: JobControl) -> bool:
        return not control.revoked and self._controls.get(job_id) is control

    async def _submit(self, client: ContactClient, list_id: str, contact: Contact) -> ContactSubmission:
        try:
            return await client.create_contact(list_id, contact)
        except Exception as e:
            logger.error(f"Failed importing {contact.email}: {type(e).__name__}: {e}")
            return ContactSubmission(False, None, {"message": str(e) or type(e).__name__})

    async def _record_result(
        self,
        job_id: str,
        i: int,
        total: int,
        contact: Contact,
        submission: ContactSubmission
    ) -> None:
        result = ImportResult(
            index=i + 1,
            email=contact.email,
            status=ResultStatus.SUCCESS if submission.success else ResultStatus.FAILED,
            data=serialize_payload(submission.body),
        )

        async with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                logger.debug(f"Job {job_id} was removed, dropping result for {contact.email}")
                return
            job = job.model_copy(update={
                "results": [result, *job.results],
                "progress": (i + 1) / total * 100,
            })
            self._jobs[job_id] = job

        await self._announce(job, latest_result=result)

    async def _finish_cancelled(
        self,
        job_id: str,
        control: JobControl,
        reason: str = "stopped"
    ) -> None:
        job = await self._finish_status(job_id, control, JobStatus.CANCELLED)
        if job:
            await self._notify(
                EventType.JOB_CANCELLED, job, "Job Cancelled",
                f'Import to "{job.list_name}" {reason}.', variant="destructive"
            )

    async def _finish_completed(self, job_id: str, control: JobControl) -> None:
        job = await self._finish_status(job_id, control, JobStatus.COMPLETED)
        if job:
            await self._notify(
                EventType.JOB_COMPLETED, job, "Job Completed",
                f'Finished importing to "{job.list_name}": '
                f"{job.success_count} succeeded, {job.failure_count} failed."
            )

    def _release(self, job_id: str, control: JobControl) -> None:
        """Drop the loop's control flags, unless they were already replaced."""
        if self._controls.get(job_id) is control:
            del self._controls[job_id]

    # State publication

    async def _publish(self, job: Job) -> None:
        async with self._lock:
            self._jobs[job.id] = job
        await self._announce(job)

    async def _command_status(
        self,
        job_id: str,
        control: JobControl,
        status: JobStatus,
        apply: Callable[[], None]
    ) -> Optional[Job]:
        """
        Flip a control flag and publish the matching status in one step.

        Refused (None) once the loop has released its controls, so a pause
        or resume can never overwrite a terminal status.
        """
        async with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.status in TERMINAL_STATUSES or self._controls.get(job_id) is not control:
                return None
            apply()
            if job.status != status:
                job = job.model_copy(update={"status": status})
                self._jobs[job_id] = job

        await self._announce(job)
        return job

    async def _finish_status(self, job_id: str, control: JobControl, status: JobStatus) -> Optional[Job]:
        """
        Publish a terminal status and drop the loop's controls together.

        Completing forces progress to 100. Returns the job as published, or
        None if it no longer exists.
        """
        async with self._lock:
            self._release(job_id, control)
            job = self._jobs.get(job_id)
            if job is None:
                return None
            if job.status != status:
                update = {"status": status}
                if status == JobStatus.COMPLETED:
                    update["progress"] = 100.0
                job = job.model_copy(update=update)
                self._jobs[job_id] = job

        await self._announce(job)
        return job

    async def _discard_account_jobs(self, account_id: str) -> None:
        """Remove every job of the account along with its control flags."""
        stale = [job for job in self._jobs.values() if job.account_id == account_id]
        if not stale:
            return

        for job in stale:
            logger.info(f"Removing previous job {job.id} for account {account_id}")
            control = self._controls.pop(job.id, None)
            if control is not None:
                control.revoke()
            async with self._lock:
                self._jobs.pop(job.id, None)
            await self.event_bus.publish(
                EventType.JOB_REMOVED, {"job_id": job.id, "account_id": account_id}
            )

        # Let the removal be observed before the replacement is published
        await asyncio.sleep(self.discard_grace)

    async def _announce(
        self,
        job: Job,
        latest_result: Optional[ImportResult] = None,
        record: bool = True
    ) -> None:
        payload = {
            "job_id": job.id,
            "job": job.model_dump(mode="json", exclude={"results"}),
            "result_count": len(job.results),
        }
        if latest_result is not None:
            payload["latest_result"] = latest_result.model_dump(mode="json")
        await self.event_bus.publish(EventType.JOB_UPDATED, payload, record=record)

    async def _notify(
        self,
        event_type: EventType,
        job: Job,
        title: str,
        description: str,
        variant: str = "default"
    ) -> None:
        logger.info(f"{title}: {description} (job {job.id})")
        notice = JobNotice(event_type, job.id, title, description, variant)
        await self.event_bus.publish(notice.event_type, notice.payload())

    def _on_task_done(self, job_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(job_id) is task:
            del self._tasks[job_id]
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Import task for job {job_id} ended with an error: {task.exception()}")


# Singleton instance
_job_engine: Optional[JobEngine] = None

def get_job_engine() -> JobEngine:
    """Get the singleton job engine instance."""
    global _job_engine
    if _job_engine is None:
        _job_engine = JobEngine(event_bus=get_event_bus())
    return _job_engine
