# app/ticket/lifecycle.py
"""
Ticket lifecycle.

    NOT_ASSIGNED -> ASSIGNED -> NOT_STARTED -> INPROCESS -> COMPLETE
         |                                        |
         +--------------> REJECTED <--------------+

Every legal move is one row of TRANSITIONS, keyed by (from status, action).
The write is a compare-and-swap on the status the move was validated against,
so two callers racing on the same ticket cannot both win.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum

from sqlalchemy.orm import Session

from app.core.database import utcnow
from app.core.errors import InvalidTransitionError, NotFoundError, PreconditionFailedError
from app.core.identity import Role
from app.core.logging_config import get_logger
from app.ticket import services as ticket_store
from app.ticket.models import TERMINAL_STATUSES, Ticket, TicketStatus

logger = get_logger(__name__)


class Action(str, Enum):
    ASSIGN = "assign"
    REJECT = "reject"
    BEGIN_REVIEW = "begin-review"
    START_WORK = "start-work"
    COMPLETE = "complete"


@dataclass(frozen=True)
class Transition:
    source: TicketStatus
    action: Action
    role: Role
    target: TicketStatus
    note_required: bool = False
    writes_assignment: bool = False


TRANSITIONS: dict[tuple[TicketStatus, Action], Transition] = {
    (t.source, t.action): t
    for t in (
        Transition(TicketStatus.NOT_ASSIGNED, Action.ASSIGN, Role.SUPERVISOR,
                   TicketStatus.ASSIGNED, writes_assignment=True),
        Transition(TicketStatus.NOT_ASSIGNED, Action.REJECT, Role.SUPERVISOR,
                   TicketStatus.REJECTED, note_required=True),
        Transition(TicketStatus.ASSIGNED, Action.BEGIN_REVIEW, Role.WORKER,
                   TicketStatus.NOT_STARTED),
        Transition(TicketStatus.NOT_STARTED, Action.START_WORK, Role.WORKER,
                   TicketStatus.INPROCESS),
        Transition(TicketStatus.INPROCESS, Action.COMPLETE, Role.WORKER,
                   TicketStatus.COMPLETE, note_required=True),
        Transition(TicketStatus.INPROCESS, Action.REJECT, Role.WORKER,
                   TicketStatus.REJECTED, note_required=True),
    )
}


def is_terminal(status: str | TicketStatus) -> bool:
    return TicketStatus(status) in TERMINAL_STATUSES


def lookup(status: TicketStatus, action: Action, role: Role) -> Transition:
    transition = TRANSITIONS.get((status, action))
    if transition is None:
        raise InvalidTransitionError(f"Cannot {action.value} a ticket in status {status.value}")
    if transition.role != role:
        raise InvalidTransitionError(
            f"Role {role.value} may not {action.value} a ticket in status {status.value}"
        )
    return transition


def action_for_target(status: TicketStatus, target: TicketStatus) -> Action:
    """Map a requested target status to the action leading there from ``status``."""
    for (source, action), transition in TRANSITIONS.items():
        if source == status and transition.target == target:
            return action
    raise InvalidTransitionError(f"Cannot move a ticket from {status.value} to {target.value}")


def apply_transition(
    db: Session,
    ticket_id: int,
    action: Action,
    role: Role,
    *,
    note: str | None = None,
    assignee: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    priority: str | None = None,
    remarks: str | None = None,
) -> Ticket:
    ticket = ticket_store.get_ticket(db, ticket_id)
    if ticket is None:
        raise NotFoundError("Ticket not found")

    transition = lookup(TicketStatus(ticket.status), action, role)
    values: dict = {"status": transition.target.value, "updated_at": utcnow()}

    if transition.writes_assignment:
        if not assignee or not assignee.strip():
            raise PreconditionFailedError("assignee required")
        if start_date and end_date and end_date < start_date:
            raise PreconditionFailedError("end_date must not be before start_date")
        values.update(
            assignee=assignee.strip(),
            start_date=start_date,
            end_date=end_date,
            priority=priority or None,
            remarks=remarks or None,
        )

    if transition.note_required:
        if not note or not note.strip():
            raise PreconditionFailedError(f"A note is required to {action.value} this ticket")
        values["remarks"] = note.strip()

    if not ticket_store.compare_and_set(db, ticket_id, transition.source.value, values):
        raise InvalidTransitionError(
            f"Ticket {ticket_id} is no longer {transition.source.value}"
        )

    logger.info(
        "ticket transition",
        extra={
            "ticket_id": ticket_id,
            "action": action.value,
            "role": role.value,
            "from_status": transition.source.value,
            "to_status": transition.target.value,
        },
    )
    db.refresh(ticket)
    return ticket
