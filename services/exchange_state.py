"""Exchange request state machine.

All status rules live here: which role may ask for which status, which
transitions exist, what the book becomes afterwards and which message is
recorded when the caller does not supply one.
"""
from enum import Enum
from typing import Optional

from errors import Forbidden, InvalidTransition
from models.book_models import BookStatus
from models.exchange_models import ExchangeStatus


class ExchangeRole(str, Enum):
    OWNER = "owner"
    REQUESTER = "requester"


# requested status -> role allowed to request it
REQUIRED_ROLE = {
    ExchangeStatus.ACCEPTED: ExchangeRole.OWNER,
    ExchangeStatus.REJECTED: ExchangeRole.OWNER,
    ExchangeStatus.COMPLETED: ExchangeRole.OWNER,
    ExchangeStatus.CANCELLED: ExchangeRole.REQUESTER,
}

TRANSITIONS = {
    ExchangeStatus.PENDING: {
        ExchangeStatus.ACCEPTED,
        ExchangeStatus.REJECTED,
        ExchangeStatus.CANCELLED,
    },
    ExchangeStatus.ACCEPTED: {ExchangeStatus.COMPLETED},
    ExchangeStatus.REJECTED: set(),
    ExchangeStatus.CANCELLED: set(),
    ExchangeStatus.COMPLETED: set(),
}

# completion leaves the book untouched
BOOK_STATUS_AFTER = {
    ExchangeStatus.PENDING: BookStatus.PENDING,
    ExchangeStatus.ACCEPTED: BookStatus.PENDING,
    ExchangeStatus.REJECTED: BookStatus.AVAILABLE,
    ExchangeStatus.CANCELLED: BookStatus.AVAILABLE,
}

STATUS_MESSAGES = {
    ExchangeStatus.ACCEPTED: "Request accepted",
    ExchangeStatus.REJECTED: "Request rejected",
    ExchangeStatus.CANCELLED: "Request withdrawn",
}

FORBIDDEN_MESSAGES = {
    ExchangeRole.OWNER: "Only the owner can accept, reject or complete requests",
    ExchangeRole.REQUESTER: "Only the requester can cancel requests",
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in TRANSITIONS.items() if not targets
)


def role_of(transaction: dict, user_id: str) -> Optional[ExchangeRole]:
    if str(transaction.get("owner")) == user_id:
        return ExchangeRole.OWNER
    if str(transaction.get("requester")) == user_id:
        return ExchangeRole.REQUESTER
    return None


def apply_transition(
    current: ExchangeStatus,
    role: Optional[ExchangeRole],
    requested: ExchangeStatus,
) -> ExchangeStatus:
    """Return the new status or raise Forbidden / InvalidTransition."""
    current = ExchangeStatus(current)
    requested = ExchangeStatus(requested)

    if role is None:
        raise Forbidden("Not authorized to update this exchange")

    required = REQUIRED_ROLE.get(requested)
    if required is not None and role != required:
        raise Forbidden(FORBIDDEN_MESSAGES[required])

    if requested not in TRANSITIONS[current]:
        raise InvalidTransition(
            f"Cannot change exchange status from {current.value} to {requested.value}"
        )
    return requested


def book_status_after(status: ExchangeStatus) -> Optional[BookStatus]:
    return BOOK_STATUS_AFTER.get(ExchangeStatus(status))


def status_message(status: ExchangeStatus, message: Optional[str] = None) -> Optional[str]:
    """Caller text wins over the fixed status text."""
    if message and message.strip():
        return message.strip()
    return STATUS_MESSAGES.get(ExchangeStatus(status))
