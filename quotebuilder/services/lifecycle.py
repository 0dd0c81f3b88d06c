"""
Quote lifecycle state machine.

Decides whether an event is legal for a quote in a given status, and which
fields the transition writes. It never touches the database: the quote
service applies the returned changes with an update conditioned on the
status that was checked here.

    DRAFT --request-approval--> PENDING_APPROVAL --approve--> SENT --accept--> ACCEPTED
      |                                |
      +------------send--------------->+--reject--> REJECTED --revise--> DRAFT
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from quotebuilder.core.exceptions import AuthorizationError, IllegalTransitionError


class QuoteStatus(str, Enum):
    """Quote status enumeration."""
    DRAFT = "DRAFT"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class QuoteEvent(str, Enum):
    """Events that move a quote through its lifecycle."""
    REQUEST_APPROVAL = "request-approval"
    APPROVE = "approve"
    REJECT = "reject"
    SEND = "send"
    ACCEPT = "accept"
    REVISE = "revise"
    UPDATE = "update"


# (from, event) -> to. UPDATE is legal from every status and handled apart.
TRANSITIONS: dict[tuple[QuoteStatus, QuoteEvent], QuoteStatus] = {
    (QuoteStatus.DRAFT, QuoteEvent.REQUEST_APPROVAL): QuoteStatus.PENDING_APPROVAL,
    (QuoteStatus.PENDING_APPROVAL, QuoteEvent.APPROVE): QuoteStatus.SENT,
    (QuoteStatus.PENDING_APPROVAL, QuoteEvent.REJECT): QuoteStatus.REJECTED,
    (QuoteStatus.DRAFT, QuoteEvent.SEND): QuoteStatus.SENT,
    (QuoteStatus.SENT, QuoteEvent.SEND): QuoteStatus.SENT,
    (QuoteStatus.SENT, QuoteEvent.ACCEPT): QuoteStatus.ACCEPTED,
    (QuoteStatus.REJECTED, QuoteEvent.REVISE): QuoteStatus.DRAFT,
}


@dataclass(frozen=True)
class Actor:
    """
    The capabilities of whoever triggers an event.

    Built from the caller's role permissions so the state machine never
    looks at role names.
    """
    user_id: Optional[int] = None
    can_approve: bool = False
    can_bypass_approval: bool = False

    @classmethod
    def from_user(cls, user: Any) -> "Actor":
        """Derive capabilities from the permissions of the user's role on quotes."""
        from quotebuilder.models.role import PermissionAction, PermissionResource

        if user is None:
            return cls()
        return cls(
            user_id=user.id,
            can_approve=user.has_permission(PermissionResource.QUOTES, PermissionAction.APPROVE),
            can_bypass_approval=user.has_permission(PermissionResource.QUOTES, PermissionAction.BYPASS_APPROVAL),
        )


@dataclass(frozen=True)
class Transition:
    """Outcome of a legal event: target status and the fields to write."""
    event: QuoteEvent
    source: QuoteStatus
    target: QuoteStatus
    changes: dict[str, Any] = field(default_factory=dict)
    is_noop: bool = False


def allowed_sources(event: QuoteEvent) -> list[QuoteStatus]:
    """Statuses from which ``event`` may be fired."""
    if event is QuoteEvent.UPDATE:
        return list(QuoteStatus)
    return [source for (source, ev) in TRANSITIONS if ev is event]


def can_transition(status: QuoteStatus, event: QuoteEvent) -> bool:
    return event is QuoteEvent.UPDATE or (QuoteStatus(status), QuoteEvent(event)) in TRANSITIONS


def _illegal(status: QuoteStatus, event: QuoteEvent) -> IllegalTransitionError:
    allowed = " or ".join(s.value for s in allowed_sources(event))
    return IllegalTransitionError(
        f"Cannot {event.value}: quote must be in {allowed} status; current status: {status.value}",
        event=event.value,
        current_status=status.value,
        allowed_statuses=[s.value for s in allowed_sources(event)],
    )


def _cleared_approval() -> dict[str, Any]:
    return {
        "is_approved": False,
        "approved_by_id": None,
        "approved_at": None,
        "approval_notes": None,
    }


def plan_transition(
    status: QuoteStatus,
    event: QuoteEvent,
    actor: Actor,
    *,
    is_approved: bool = False,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
    reopen_sent_on_edit: bool = False,
) -> Transition:
    """
    Validate ``event`` against ``status`` and return the resulting transition.

    Status guards are checked before capability guards.

    Raises:
        IllegalTransitionError: the event is not allowed from ``status``
        AuthorizationError: the actor lacks the capability the event needs
    """
    status = QuoteStatus(status)
    event = QuoteEvent(event)
    now = now or datetime.now(timezone.utc)

    if event is QuoteEvent.UPDATE:
        if status is QuoteStatus.SENT and reopen_sent_on_edit:
            changes = {"status": QuoteStatus.DRAFT, "sent_at": None, **_cleared_approval()}
            return Transition(event, status, QuoteStatus.DRAFT, changes)
        return Transition(event, status, status, {})

    target = TRANSITIONS.get((status, event))
    if target is None:
        raise _illegal(status, event)

    if event is QuoteEvent.REQUEST_APPROVAL:
        changes = {"status": target, "approval_requested_at": now}

    elif event in (QuoteEvent.APPROVE, QuoteEvent.REJECT):
        if not actor.can_approve:
            raise AuthorizationError(
                f"Cannot {event.value}: the 'approve quotes' permission is required",
                event=event.value,
                user_id=actor.user_id,
            )
        changes = {
            "status": target,
            "is_approved": event is QuoteEvent.APPROVE,
            "approved_by_id": actor.user_id,
            "approved_at": now,
            "approval_notes": notes,
        }
        if event is QuoteEvent.APPROVE:
            changes["sent_at"] = now

    elif event is QuoteEvent.SEND:
        if status is QuoteStatus.SENT:
            return Transition(event, status, target, {}, is_noop=True)
        if not (is_approved or actor.can_bypass_approval):
            raise AuthorizationError(
                "Cannot send: quote has not been approved and the caller cannot bypass approval",
                event=event.value,
                user_id=actor.user_id,
            )
        changes = {"status": target, "sent_at": now}

    elif event is QuoteEvent.ACCEPT:
        changes = {"status": target, "accepted_at": now}

    else:  # REVISE
        changes = {"status": target, "sent_at": None, "approval_requested_at": None, **_cleared_approval()}

    return Transition(event, status, target, changes)
