"""
Application status workflow.

Statuses form a closed set and every change goes through one transition table:
`next_status(current, event)` returns the new status or raises InvalidTransitionError.

pending -> approved_by_admin -> collecting_offers -> reviewing_offers -> collecting_documents
        -> approved -> issued, with needs_revision looping back to collecting_documents and
rejected reachable from every open status except approved.

Approval of a pending application, dispatch, receiving offers and selecting an offer each have
their own workflow action. A plain status update may only take the MANUAL_TRANSITIONS edges.
"""
from __future__ import annotations

from enum import Enum

from services.exceptions import InvalidTransitionError


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    APPROVED_BY_ADMIN = "approved_by_admin"
    COLLECTING_OFFERS = "collecting_offers"
    REVIEWING_OFFERS = "reviewing_offers"
    COLLECTING_DOCUMENTS = "collecting_documents"
    APPROVED = "approved"
    NEEDS_REVISION = "needs_revision"
    ISSUED = "issued"
    REJECTED = "rejected"


class WorkflowEvent(str, Enum):
    APPROVE = "approve"
    DISPATCH = "dispatch"
    RECEIVE_OFFER = "receive_offer"
    SELECT_OFFER = "select_offer"
    REQUEST_REVISION = "request_revision"
    RESUBMIT = "resubmit"
    ISSUE = "issue"
    REJECT = "reject"


S = ApplicationStatus
E = WorkflowEvent

TRANSITIONS: dict[tuple[ApplicationStatus, WorkflowEvent], ApplicationStatus] = {
    (S.PENDING, E.APPROVE): S.APPROVED_BY_ADMIN,
    (S.APPROVED_BY_ADMIN, E.DISPATCH): S.COLLECTING_OFFERS,
    (S.COLLECTING_OFFERS, E.RECEIVE_OFFER): S.REVIEWING_OFFERS,
    (S.REVIEWING_OFFERS, E.RECEIVE_OFFER): S.REVIEWING_OFFERS,
    (S.COLLECTING_OFFERS, E.SELECT_OFFER): S.COLLECTING_DOCUMENTS,
    (S.REVIEWING_OFFERS, E.SELECT_OFFER): S.COLLECTING_DOCUMENTS,
    # Client switches to another offer while documents are still being collected.
    (S.COLLECTING_DOCUMENTS, E.SELECT_OFFER): S.COLLECTING_DOCUMENTS,
    (S.COLLECTING_DOCUMENTS, E.APPROVE): S.APPROVED,
    (S.COLLECTING_DOCUMENTS, E.REQUEST_REVISION): S.NEEDS_REVISION,
    (S.NEEDS_REVISION, E.RESUBMIT): S.COLLECTING_DOCUMENTS,
    (S.APPROVED, E.ISSUE): S.ISSUED,
    (S.PENDING, E.REJECT): S.REJECTED,
    (S.APPROVED_BY_ADMIN, E.REJECT): S.REJECTED,
    (S.COLLECTING_OFFERS, E.REJECT): S.REJECTED,
    (S.REVIEWING_OFFERS, E.REJECT): S.REJECTED,
    (S.COLLECTING_DOCUMENTS, E.REJECT): S.REJECTED,
    (S.NEEDS_REVISION, E.REJECT): S.REJECTED,
}

MANUAL_TRANSITIONS = frozenset(
    {
        (S.COLLECTING_DOCUMENTS, E.APPROVE),
        (S.COLLECTING_DOCUMENTS, E.REQUEST_REVISION),
        (S.NEEDS_REVISION, E.RESUBMIT),
        (S.APPROVED, E.ISSUE),
    }
    | {key for key in TRANSITIONS if key[1] is E.REJECT}
)

TERMINAL_STATUSES = frozenset({S.ISSUED, S.REJECTED})


def next_status(current: ApplicationStatus | str, event: WorkflowEvent | str) -> ApplicationStatus:
    current = ApplicationStatus(current)
    event = WorkflowEvent(event)
    target = TRANSITIONS.get((current, event))
    if target is None:
        raise InvalidTransitionError(current.value, event.value)
    return target


def can_transition(current: ApplicationStatus | str, event: WorkflowEvent | str) -> bool:
    return (ApplicationStatus(current), WorkflowEvent(event)) in TRANSITIONS


def event_for(current: ApplicationStatus | str, target: ApplicationStatus | str) -> WorkflowEvent:
    """
    Find the manual event that moves `current` to `target`.
    Raises InvalidTransitionError when no edge exists or the edge belongs to a dedicated action.
    """
    current = ApplicationStatus(current)
    target = ApplicationStatus(target)
    for key in MANUAL_TRANSITIONS:
        source, event = key
        if source is current and TRANSITIONS[key] is target:
            return event
    raise InvalidTransitionError(current.value, f"-> {target.value}")


def allowed_events(current: ApplicationStatus | str) -> list[WorkflowEvent]:
    current = ApplicationStatus(current)
    return [event for (source, event) in TRANSITIONS if source is current]
