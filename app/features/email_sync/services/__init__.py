from .event_service import EventService, event_service
from .match_service import MatchService, match_service
from .thread_service import ThreadService, thread_service

__all__ = [
    "EventService",
    "MatchService",
    "ThreadService",
    "event_service",
    "match_service",
    "thread_service",
]
