# listpilot/services/jobs/control.py
import asyncio


class JobControl:
    """
    Pause/cancel flags for one live submission loop.

    The loop keeps a reference to the instance it was started with and treats
    it as its ownership token: once the engine's registry no longer maps the
    job id to this exact object, or the control has been revoked, the loop has
    been orphaned and must stop without publishing anything.

    `is_cancelled` is set once and never cleared. Every flag change sets
    `_wakeup`, so a loop waiting out a pause reacts without polling delay.
    """

    def __init__(self, job_id: str):
        self.job_id = job_id
        self.is_paused = False
        self.is_cancelled = False
        self.revoked = False
        self._wakeup = asyncio.Event()

    def revoke(self) -> None:
        """Take the job away from its loop (the job was discarded)."""
        self.revoked = True
        self._wakeup.set()

    def pause(self) -> None:
        self.is_paused = True
        self._wakeup.set()

    def resume(self) -> None:
        self.is_paused = False
        self._wakeup.set()

    def cancel(self) -> None:
        self.is_cancelled = True
        self._wakeup.set()

    async def wait_for_change(self, timeout: float) -> None:
        """
        Sleep until a flag changes or `timeout` seconds pass.

        Callers re-check the flags afterwards; a timeout is not an error.
        """
        self._wakeup.clear()
        try:
            await asyncio.wait_for(self._wakeup.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            pass

    def __repr__(self) -> str:
        return f"JobControl({self.job_id!r}, paused={self.is_paused}, cancelled={self.is_cancelled})"
