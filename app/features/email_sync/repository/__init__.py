"""
Repositories for email threads, job events and the job columns they touch.
"""

from .base import EventRepository, JobRepository, ThreadRepository
from .event_repository import PostgresEventRepository
from .job_repository import PostgresJobRepository
from .thread_repository import PostgresThreadRepository

__all__ = [
    "EventRepository",
    "JobRepository",
    "ThreadRepository",
    "PostgresEventRepository",
    "PostgresJobRepository",
    "PostgresThreadRepository",
]
