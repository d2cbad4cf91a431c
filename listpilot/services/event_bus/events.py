"""
Event type definitions for the event bus.
"""
from enum import Enum
from typing import Dict, Any, Optional
from datetime import datetime, timezone


class EventType(str, Enum):
    """Event types for the event bus."""

    # System events
    SYSTEM_STARTUP = "system:startup"
    SYSTEM_SHUTDOWN = "system:shutdown"

    # Import job state (published after every change)
    JOB_UPDATED = "job:updated"
    JOB_REMOVED = "job:removed"

    # Import job notices
    JOB_STARTED = "job:started"
    JOB_PAUSED = "job:paused"
    JOB_RESUMED = "job:resumed"
    JOB_CANCEL_REQUESTED = "job:cancel_requested"
    JOB_CANCELLED = "job:cancelled"
    JOB_COMPLETED = "job:completed"

    # Account events
    ACCOUNT_CREATED = "account:created"
    ACCOUNT_UPDATED = "account:updated"
    ACCOUNT_DELETED = "account:deleted"


# Event types surfaced to the console as user-facing notices
NOTICE_EVENTS = frozenset({
    EventType.JOB_STARTED,
    EventType.JOB_PAUSED,
    EventType.JOB_RESUMED,
    EventType.JOB_CANCEL_REQUESTED,
    EventType.JOB_CANCELLED,
    EventType.JOB_COMPLETED,
})


class Event:
    """
    Base event class.

    Contains common event data and helper methods.
    """

    def __init__(
        self,
        event_type: EventType,
        data: Dict[str, Any],
        timestamp: Optional[datetime] = None
    ):
        self.event_type = event_type
        self.data = data
        self.timestamp = timestamp or datetime.now(timezone.utc)

    def payload(self) -> Dict[str, Any]:
        """Event data with its timestamp, ready for EventBus.publish."""
        return {**self.data, "timestamp": self.timestamp.isoformat()}


class JobNotice(Event):
    """
    User-facing notice about an import job transition.

    Carries a short title and description, the way the console shows a toast.
    """

    def __init__(
        self,
        event_type: EventType,
        job_id: str,
        title: str,
        description: str = "",
        variant: str = "default",
        timestamp: Optional[datetime] = None
    ):
        data = {
            "job_id": job_id,
            "title": title,
            "description": description,
            "variant": variant,
        }
        super().__init__(event_type, data, timestamp)
