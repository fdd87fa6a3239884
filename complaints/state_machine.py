"""
Complaint status state machine.

The table below is the complete list of legal (from, to) status pairs
for a status update. Assignment is a separate operation that moves a
complaint to 'assigned' from any of ASSIGNABLE_STATES, including
'assigned' itself (reassignment).
"""

from core.exceptions import InvalidStatusTransition
from .models import ComplaintStatus as S


ALLOWED_TRANSITIONS = {
    S.SUBMITTED: {S.ASSIGNED, S.IN_PROGRESS, S.UNDER_REVIEW, S.RESOLVED, S.REJECTED, S.CLOSED},
    S.ASSIGNED: {S.IN_PROGRESS, S.UNDER_REVIEW, S.RESOLVED, S.REJECTED, S.CLOSED},
    S.IN_PROGRESS: {S.UNDER_REVIEW, S.RESOLVED, S.REJECTED, S.CLOSED},
    S.UNDER_REVIEW: {S.IN_PROGRESS, S.RESOLVED, S.REJECTED, S.CLOSED},
    S.RESOLVED: {S.IN_PROGRESS, S.CLOSED},
    S.CLOSED: set(),
    S.REJECTED: set(),
}

ASSIGNABLE_STATES = {S.SUBMITTED, S.ASSIGNED, S.IN_PROGRESS, S.UNDER_REVIEW}


def can_transition(from_status, to_status):
    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def allowed_next_statuses(from_status):
    """Sorted for stable API output."""
    return sorted(ALLOWED_TRANSITIONS.get(from_status, set()))


def validate_transition(from_status, to_status):
    """
    Raises:
        InvalidStatusTransition: if (from_status, to_status) is not legal
    """
    if not can_transition(from_status, to_status):
        raise InvalidStatusTransition(from_status, to_status)


def validate_assignment(from_status):
    if from_status not in ASSIGNABLE_STATES:
        raise InvalidStatusTransition(
            from_status,
            S.ASSIGNED,
            message=f"A complaint in status '{from_status}' cannot be assigned."
        )
