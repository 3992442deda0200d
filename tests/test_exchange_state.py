import pytest

from errors import Forbidden, InvalidTransition
from models.book_models import BookStatus
from models.exchange_models import ExchangeStatus as S
from services.exchange_state import (
    ExchangeRole,
    TERMINAL_STATUSES,
    apply_transition,
    book_status_after,
    role_of,
    status_message,
)

OWNER = ExchangeRole.OWNER
REQUESTER = ExchangeRole.REQUESTER


@pytest.mark.parametrize("current,role,requested", [
    (S.PENDING, OWNER, S.ACCEPTED),
    (S.PENDING, OWNER, S.REJECTED),
    (S.PENDING, REQUESTER, S.CANCELLED),
    (S.ACCEPTED, OWNER, S.COMPLETED),
])
def test_allowed_transitions(current, role, requested):
    assert apply_transition(current, role, requested) == requested


@pytest.mark.parametrize("current,role,requested", [
    (S.PENDING, REQUESTER, S.ACCEPTED),
    (S.PENDING, REQUESTER, S.REJECTED),
    (S.PENDING, OWNER, S.CANCELLED),
    (S.PENDING, None, S.ACCEPTED),
    (S.PENDING, None, S.CANCELLED),
    (S.ACCEPTED, REQUESTER, S.COMPLETED),
])
def test_wrong_role_is_forbidden(current, role, requested):
    with pytest.raises(Forbidden):
        apply_transition(current, role, requested)


@pytest.mark.parametrize("current,role,requested", [
    (S.PENDING, OWNER, S.PENDING),
    (S.PENDING, OWNER, S.COMPLETED),
    (S.ACCEPTED, OWNER, S.REJECTED),
    (S.ACCEPTED, REQUESTER, S.CANCELLED),
    (S.REJECTED, OWNER, S.ACCEPTED),
    (S.CANCELLED, REQUESTER, S.CANCELLED),
    (S.COMPLETED, OWNER, S.ACCEPTED),
])
def test_invalid_transitions(current, role, requested):
    with pytest.raises(InvalidTransition):
        apply_transition(current, role, requested)


def test_terminal_statuses():
    assert TERMINAL_STATUSES == {S.REJECTED, S.CANCELLED, S.COMPLETED}


def test_plain_strings_are_accepted():
    assert apply_transition("pending", OWNER, "accepted") == S.ACCEPTED


def test_book_status_side_effects():
    assert book_status_after(S.ACCEPTED) == BookStatus.PENDING
    assert book_status_after(S.REJECTED) == BookStatus.AVAILABLE
    assert book_status_after(S.CANCELLED) == BookStatus.AVAILABLE
    # nothing ever moves a book to "exchanged"
    assert book_status_after(S.COMPLETED) is None


def test_status_messages():
    assert status_message(S.ACCEPTED) == "Request accepted"
    assert status_message(S.REJECTED) == "Request rejected"
    assert status_message(S.CANCELLED) == "Request withdrawn"
    assert status_message(S.COMPLETED) is None


def test_caller_message_replaces_status_text():
    assert status_message(S.ACCEPTED, "See you Friday") == "See you Friday"
    assert status_message(S.ACCEPTED, "   ") == "Request accepted"


def test_role_of():
    transaction = {"owner": "a" * 24, "requester": "b" * 24}

    assert role_of(transaction, "a" * 24) == OWNER
    assert role_of(transaction, "b" * 24) == REQUESTER
    assert role_of(transaction, "c" * 24) is None
