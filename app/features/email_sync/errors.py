"""
Exceptions raised by the email sync services.

Only missing referenced records are errors here. Ambiguous matches, stale
events and ignored stage changes are returned as data.
"""


class EmailSyncError(Exception):
    """Base exception for email sync operations."""

    def __init__(self, message: str, *, resource: str | None = None, resource_id: str | None = None):
        super().__init__(message)
        self.resource = resource
        self.resource_id = resource_id


class ThreadNotFoundError(EmailSyncError):
    def __init__(self, thread_id: str):
        super().__init__(
            f"Thread {thread_id} not found. Upsert thread first.",
            resource="thread",
            resource_id=thread_id,
        )


class JobNotFoundError(EmailSyncError):
    def __init__(self, job_id: str):
        super().__init__(f"Job {job_id} not found", resource="job", resource_id=job_id)


class EventNotFoundError(EmailSyncError):
    def __init__(self, event_id: str):
        super().__init__(f"Event {event_id} not found", resource="event", resource_id=event_id)
