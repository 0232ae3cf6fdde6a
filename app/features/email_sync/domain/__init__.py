"""
Domain subpackage for the email sync feature.
"""

from .models import (
    CreateEventResult,
    EmailThread,
    EventType,
    JobEvent,
    JobRef,
    JobStatus,
    JobSummary,
    MatchCandidate,
    MatchMethod,
    MatchResult,
    NewEvent,
    StageDecision,
    StageReplayResult,
    WorkflowStage,
    clamp_confidence,
)

__all__ = [
    "CreateEventResult",
    "EmailThread",
    "EventType",
    "JobEvent",
    "JobRef",
    "JobStatus",
    "JobSummary",
    "MatchCandidate",
    "MatchMethod",
    "MatchResult",
    "NewEvent",
    "StageDecision",
    "StageReplayResult",
    "WorkflowStage",
    "clamp_confidence",
]
