"""
Workflow stage reducer.

Derives a job's workflow stage from its event history.

Rules:
- Stages only move forward (higher rank).
- REVISION_REQUEST is the only event that moves a job backwards; it always
  lands on AWAITING_PROOF_FROM_VENDOR.
- Late-arriving events that would move a job backwards are ignored and the
  reason is reported, never raised.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from .models import EventType, JobStatus, StageDecision, WorkflowStage

STAGE_RANK: dict[WorkflowStage, int] = {stage: rank for rank, stage in enumerate(WorkflowStage)}

REGRESSION_EVENT = EventType.REVISION_REQUEST
REGRESSION_TARGET = WorkflowStage.AWAITING_PROOF_FROM_VENDOR

# Every event type must appear here; None means "recorded, never moves the stage".
EVENT_TO_STAGE: dict[EventType, WorkflowStage | None] = {
    EventType.JOB_CREATED: WorkflowStage.NEW_JOB,
    EventType.PO_SENT_TO_VENDOR: WorkflowStage.AWAITING_PROOF_FROM_VENDOR,
    EventType.PROOF_RECEIVED_FROM_VENDOR: WorkflowStage.PROOF_RECEIVED,
    EventType.PROOF_SENT_TO_CUSTOMER: WorkflowStage.PROOF_SENT_TO_CUSTOMER,
    EventType.REVISION_REQUEST: REGRESSION_TARGET,
    EventType.PROOF_APPROVED: WorkflowStage.APPROVED_PENDING_VENDOR,
    EventType.APPROVAL_CONFIRMED: WorkflowStage.APPROVED_PENDING_VENDOR,
    EventType.PRODUCTION_STARTED: WorkflowStage.IN_PRODUCTION,
    EventType.SHIPPED: WorkflowStage.IN_PRODUCTION,
    EventType.JOB_COMPLETED: WorkflowStage.COMPLETED,
    EventType.INVOICE_SENT: WorkflowStage.INVOICED,
    EventType.CUSTOMER_PAYMENT_RECEIVED: WorkflowStage.PAID,
    EventType.VENDOR_PAYMENT_SENT: None,
    EventType.BRADFORD_PAYMENT_SENT: None,
    EventType.JD_INVOICE_SENT: None,
    EventType.JD_PAYMENT_RECEIVED: None,
    EventType.PO_CREATED: None,
    EventType.PROOF_UPLOADED: None,
    EventType.INVOICE_GENERATED: None,
    EventType.JOB_LOCKED: None,
    EventType.WORKFLOW_OVERRIDE: None,
    EventType.QUESTION: None,
    EventType.GENERAL_UPDATE: None,
    EventType.OTHER: None,
}

_missing_events = set(EventType) - set(EVENT_TO_STAGE)
if _missing_events:
    raise RuntimeError(f"EVENT_TO_STAGE is missing event types: {sorted(_missing_events)}")

if len(STAGE_RANK) != len(WorkflowStage):
    raise RuntimeError("STAGE_RANK must rank every workflow stage")

# Events below this confidence are recorded but never move the stage
CONFIDENCE_THRESHOLD = 0.7


class StagedEvent(Protocol):
    type: EventType
    created_at: datetime


def stage_rank(stage: WorkflowStage) -> int:
    return STAGE_RANK[WorkflowStage(stage)]


def should_auto_update(confidence: float) -> bool:
    """True when an event is confident enough to drive a stage change."""
    return confidence >= CONFIDENCE_THRESHOLD


def compute_stage(
    events: Iterable[StagedEvent],
    current_stage: WorkflowStage = WorkflowStage.NEW_JOB,
) -> StageDecision:
    """
    Replay a full event history and decide whether the job stage should change.

    Events are sorted oldest-first and replayed from NEW_JOB. If the replayed
    stage is behind current_stage and no revision request appears anywhere in
    the history, the update is suppressed.
    """
    current_stage = WorkflowStage(current_stage)
    ordered = sorted(events, key=lambda event: event.created_at)

    if not ordered:
        return StageDecision(
            current_stage=current_stage,
            new_stage=current_stage,
            should_update=False,
            reason="No events to process",
            is_regression=False,
        )

    computed = WorkflowStage.NEW_JOB
    saw_revision = False

    for event in ordered:
        event_type = EventType(event.type)
        target = EVENT_TO_STAGE[event_type]
        if target is None:
            continue

        if event_type is REGRESSION_EVENT:
            computed = REGRESSION_TARGET
            saw_revision = True
            continue

        if STAGE_RANK[target] > STAGE_RANK[computed]:
            computed = target

    is_regression = STAGE_RANK[computed] < STAGE_RANK[current_stage]

    if is_regression and not saw_revision:
        return StageDecision(
            current_stage=current_stage,
            new_stage=computed,
            should_update=False,
            reason=(
                f"Computed status {computed} is earlier than current {current_stage} - skipping update"
            ),
            is_regression=True,
        )

    if computed == current_stage:
        return StageDecision(
            current_stage=current_stage,
            new_stage=computed,
            should_update=False,
            reason=f"Already at status {current_stage}",
            is_regression=False,
        )

    return StageDecision(
        current_stage=current_stage,
        new_stage=computed,
        should_update=True,
        reason=f"Transitioning from {current_stage} to {computed}",
        is_regression=is_regression,
    )


def process_single_event(event_type: EventType, current_stage: WorkflowStage) -> StageDecision:
    """Decide the stage change caused by one newly recorded event."""
    event_type = EventType(event_type)
    current_stage = WorkflowStage(current_stage)
    target = EVENT_TO_STAGE[event_type]

    if target is None:
        return StageDecision(
            current_stage=current_stage,
            new_stage=current_stage,
            should_update=False,
            reason=f"Event type {event_type} does not map to a status transition",
            is_regression=False,
        )

    if event_type is REGRESSION_EVENT:
        return StageDecision(
            current_stage=current_stage,
            new_stage=target,
            should_update=True,
            reason=f"Revision requested - regressing from {current_stage} to {target}",
            is_regression=True,
        )

    current_rank = STAGE_RANK[current_stage]
    target_rank = STAGE_RANK[target]

    if target_rank > current_rank:
        return StageDecision(
            current_stage=current_stage,
            new_stage=target,
            should_update=True,
            reason=f"Progressing from {current_stage} to {target}",
            is_regression=False,
        )

    if target_rank < current_rank:
        return StageDecision(
            current_stage=current_stage,
            new_stage=current_stage,
            should_update=False,
            reason=(
                f"Event {event_type} would regress status from {current_stage} to {target} - ignoring"
            ),
            is_regression=True,
        )

    return StageDecision(
        current_stage=current_stage,
        new_stage=current_stage,
        should_update=False,
        reason=f"Already at status {current_stage}",
        is_regression=False,
    )


def sync_stage_from_status(new_status: JobStatus, current_stage: WorkflowStage) -> WorkflowStage:
    """
    Stage to store when a job's business status changes.

    Only terminal statuses force the stage: PAID keeps INVOICED/PAID and
    otherwise lands on PAID; CANCELLED always lands on CANCELLED.
    """
    new_status = JobStatus(new_status)
    current_stage = WorkflowStage(current_stage)

    if new_status is JobStatus.PAID:
        if current_stage not in (WorkflowStage.PAID, WorkflowStage.INVOICED):
            return WorkflowStage.PAID

    if new_status is JobStatus.CANCELLED:
        return WorkflowStage.CANCELLED

    return current_stage
