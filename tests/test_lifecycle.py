"""
Quote lifecycle state machine tests.
"""

from datetime import datetime, timezone
import pytest

from quotebuilder.core.exceptions import AuthorizationError, IllegalTransitionError
from quotebuilder.services.lifecycle import (
    TRANSITIONS,
    Actor,
    QuoteEvent,
    QuoteStatus,
    can_transition,
    plan_transition,
)


APPROVER = Actor(user_id=1, can_approve=True, can_bypass_approval=True)
SALES = Actor(user_id=2)
NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

STATUS_EVENTS = [
    (status, event)
    for status in QuoteStatus
    for event in QuoteEvent
    if event is not QuoteEvent.UPDATE
]


@pytest.mark.parametrize("status, event", STATUS_EVENTS)
def test_every_pair_is_either_planned_or_illegal(status, event):
    if (status, event) in TRANSITIONS:
        transition = plan_transition(status, event, APPROVER, is_approved=True, now=NOW)
        assert transition.target == TRANSITIONS[(status, event)]
    else:
        with pytest.raises(IllegalTransitionError) as exc_info:
            plan_transition(status, event, APPROVER, is_approved=True, now=NOW)
        assert exc_info.value.context["current_status"] == status.value
        assert not can_transition(status, event)


def test_request_approval_on_sent_quote_is_illegal():
    with pytest.raises(IllegalTransitionError) as exc_info:
        plan_transition(QuoteStatus.SENT, QuoteEvent.REQUEST_APPROVAL, SALES)

    assert exc_info.value.message == (
        "Cannot request-approval: quote must be in DRAFT status; current status: SENT"
    )


def test_request_approval_stamps_time():
    transition = plan_transition(QuoteStatus.DRAFT, QuoteEvent.REQUEST_APPROVAL, SALES, now=NOW)

    assert transition.changes == {
        "status": QuoteStatus.PENDING_APPROVAL,
        "approval_requested_at": NOW,
    }


def test_approve_records_approver_and_sends():
    transition = plan_transition(
        QuoteStatus.PENDING_APPROVAL, QuoteEvent.APPROVE, APPROVER, notes="Looks good", now=NOW
    )

    assert transition.target is QuoteStatus.SENT
    assert transition.changes["is_approved"] is True
    assert transition.changes["approved_by_id"] == 1
    assert transition.changes["approved_at"] == NOW
    assert transition.changes["approval_notes"] == "Looks good"
    assert transition.changes["sent_at"] == NOW


def test_reject_records_reviewer():
    transition = plan_transition(QuoteStatus.PENDING_APPROVAL, QuoteEvent.REJECT, APPROVER, notes="Too cheap")

    assert transition.target is QuoteStatus.REJECTED
    assert transition.changes["is_approved"] is False
    assert transition.changes["approval_notes"] == "Too cheap"
    assert "sent_at" not in transition.changes


@pytest.mark.parametrize("event", [QuoteEvent.APPROVE, QuoteEvent.REJECT])
def test_approval_requires_capability(event):
    with pytest.raises(AuthorizationError):
        plan_transition(QuoteStatus.PENDING_APPROVAL, event, SALES)


def test_status_is_checked_before_capability():
    with pytest.raises(IllegalTransitionError):
        plan_transition(QuoteStatus.DRAFT, QuoteEvent.APPROVE, SALES)


def test_send_draft_requires_approval_or_bypass():
    with pytest.raises(AuthorizationError):
        plan_transition(QuoteStatus.DRAFT, QuoteEvent.SEND, SALES, is_approved=False)

    approved = plan_transition(QuoteStatus.DRAFT, QuoteEvent.SEND, SALES, is_approved=True, now=NOW)
    bypass = plan_transition(QuoteStatus.DRAFT, QuoteEvent.SEND, APPROVER, is_approved=False, now=NOW)

    assert approved.changes == bypass.changes == {"status": QuoteStatus.SENT, "sent_at": NOW}


def test_sending_a_sent_quote_is_a_noop():
    transition = plan_transition(QuoteStatus.SENT, QuoteEvent.SEND, SALES)

    assert transition.is_noop
    assert transition.changes == {}


def test_revise_clears_previous_decision():
    transition = plan_transition(QuoteStatus.REJECTED, QuoteEvent.REVISE, SALES)

    assert transition.target is QuoteStatus.DRAFT
    assert transition.changes["is_approved"] is False
    assert transition.changes["approved_by_id"] is None
    assert transition.changes["approval_notes"] is None


def test_accept_stamps_time():
    transition = plan_transition(QuoteStatus.SENT, QuoteEvent.ACCEPT, SALES, now=NOW)

    assert transition.changes == {"status": QuoteStatus.ACCEPTED, "accepted_at": NOW}


@pytest.mark.parametrize("status", list(QuoteStatus))
def test_update_is_allowed_from_every_status(status):
    transition = plan_transition(status, QuoteEvent.UPDATE, SALES)

    assert transition.target is status
    assert transition.changes == {}


def test_editing_a_sent_quote_reopens_it():
    transition = plan_transition(QuoteStatus.SENT, QuoteEvent.UPDATE, SALES, reopen_sent_on_edit=True)

    assert transition.source is QuoteStatus.SENT
    assert transition.target is QuoteStatus.DRAFT
    assert transition.changes["is_approved"] is False
    assert transition.changes["sent_at"] is None


def test_actor_from_user_without_role():
    assert Actor.from_user(None) == Actor()
