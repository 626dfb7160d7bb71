"""
Booking status transitions

Booking statuses: Pending → Confirmed → Completed, with Cancelled reachable
from Pending and Confirmed. Completed and Cancelled are terminal.
"""

from ...models import BOOKING_CANCELLED, BOOKING_COMPLETED, BOOKING_CONFIRMED, BOOKING_PENDING

BOOKING_STATUSES = (BOOKING_PENDING, BOOKING_CONFIRMED, BOOKING_COMPLETED, BOOKING_CANCELLED)


def get_valid_transitions(allow_direct_completion: bool = False) -> dict[str, list[str]]:
    """
    Transition table.

    Args:
        allow_direct_completion: also permit Pending → Completed (instant services)
    """
    valid_transitions = {
        BOOKING_PENDING: [BOOKING_CONFIRMED, BOOKING_CANCELLED],
        BOOKING_CONFIRMED: [BOOKING_COMPLETED, BOOKING_CANCELLED],
        BOOKING_COMPLETED: [],  # Terminal state
        BOOKING_CANCELLED: [],  # Terminal state
    }
    if allow_direct_completion:
        valid_transitions[BOOKING_PENDING].append(BOOKING_COMPLETED)
    return valid_transitions


def validate_status_transition(
    current_status: str, new_status: str, allow_direct_completion: bool = False
) -> bool:
    """
    Validate if a booking status transition is allowed.
    Re-applying the current status is not a transition and is rejected.
    """
    return new_status in get_valid_transitions(allow_direct_completion).get(current_status, [])


def get_allowed_predecessors(new_status: str, allow_direct_completion: bool = False) -> list[str]:
    """Statuses a booking may be in for a move to new_status (used in the conditional UPDATE)"""
    return [
        status
        for status, targets in get_valid_transitions(allow_direct_completion).items()
        if new_status in targets
    ]
