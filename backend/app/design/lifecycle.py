"""Design status transitions.

The table below is the whole state machine. It is pure: it only answers
"what status comes next, or why not". Applying the answer atomically against
the stored row is the persistence layer's job (see ``app.crud``).

    DRAFT/REJECTED  --EDIT-->     DRAFT       (clears rejection reason)
    DRAFT/REJECTED  --SUBMIT-->   SUBMITTED   (submission gate must pass)
    SUBMITTED       --APPROVE-->  APPROVED    (terminal)
    SUBMITTED       --REJECT-->   REJECTED    (reason required)
"""

from dataclasses import dataclass
from enum import Enum

from app.design.errors import ErrorCode, ErrorIssue, SelectionValidationError, StateError


class DesignStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class DesignEvent(str, Enum):
    EDIT = "EDIT"
    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"


INITIAL_STATUS = DesignStatus.DRAFT

OWNER_EVENTS = frozenset({DesignEvent.EDIT, DesignEvent.SUBMIT})
ADMIN_EVENTS = frozenset({DesignEvent.APPROVE, DesignEvent.REJECT})

_TRANSITIONS: dict[tuple[DesignStatus, DesignEvent], DesignStatus] = {
    (DesignStatus.DRAFT, DesignEvent.EDIT): DesignStatus.DRAFT,
    (DesignStatus.REJECTED, DesignEvent.EDIT): DesignStatus.DRAFT,
    (DesignStatus.DRAFT, DesignEvent.SUBMIT): DesignStatus.SUBMITTED,
    (DesignStatus.REJECTED, DesignEvent.SUBMIT): DesignStatus.SUBMITTED,
    (DesignStatus.SUBMITTED, DesignEvent.APPROVE): DesignStatus.APPROVED,
    (DesignStatus.SUBMITTED, DesignEvent.REJECT): DesignStatus.REJECTED,
}


@dataclass(frozen=True)
class Transition:
    """Outcome of a legal event: the next status and the rejection reason to store."""

    event: DesignEvent
    source: DesignStatus
    target: DesignStatus
    rejection_reason: str | None = None


def _refusal(current: DesignStatus, event: DesignEvent) -> StateError:
    if current is DesignStatus.APPROVED and event in OWNER_EVENTS:
        return StateError(
            ErrorCode.APPROVED_IS_IMMUTABLE, "approved designs cannot be edited or re-submitted"
        )
    if event in ADMIN_EVENTS:
        verb = "approved" if event is DesignEvent.APPROVE else "rejected"
        return StateError(ErrorCode.NOT_SUBMITTED, f"only submitted designs can be {verb}")
    if current is DesignStatus.SUBMITTED and event is DesignEvent.SUBMIT:
        return StateError(ErrorCode.ALREADY_SUBMITTED, "design is already submitted")
    return StateError(
        ErrorCode.ALREADY_SUBMITTED,
        "submitted designs cannot be edited until an admin reviews them",
    )


def next_status(current: DesignStatus | str, event: DesignEvent) -> DesignStatus:
    current = DesignStatus(current)
    target = _TRANSITIONS.get((current, event))
    if target is None:
        raise _refusal(current, event)
    return target


def normalize_rejection_reason(reason: str | None) -> str:
    cleaned = (reason or "").strip()
    if not cleaned:
        raise SelectionValidationError(
            [
                ErrorIssue(
                    code=ErrorCode.REJECTION_REASON_REQUIRED,
                    message="rejection reason is required",
                )
            ]
        )
    return cleaned


def plan_transition(
    current: DesignStatus | str, event: DesignEvent, *, reason: str | None = None
) -> Transition:
    """Resolve ``event`` against ``current`` and compute the side effects.

    The state guard runs before the reason check, so rejecting a design that
    is not SUBMITTED reports NOT_SUBMITTED even when the reason is blank.
    """
    source = DesignStatus(current)
    target = next_status(source, event)
    rejection_reason = None
    if event is DesignEvent.REJECT:
        rejection_reason = normalize_rejection_reason(reason)
    return Transition(event=event, source=source, target=target, rejection_reason=rejection_reason)
