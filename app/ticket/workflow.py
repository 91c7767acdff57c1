# app/ticket/workflow.py
"""
Ticket workflows used by the routes.

``submit`` fans one report out into one independent ticket per destination.
``assign`` narrows one ticket to one worker. The remaining helpers pair a
lifecycle move with its notification mails; mail problems come back as
warnings and never undo the move.
"""

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, PreconditionFailedError
from app.core.identity import Actor, Role
from app.core.logging_config import get_logger
from app.mail.dispatcher import Dispatcher
from app.ticket import lifecycle
from app.ticket import services as ticket_store
from app.ticket.lifecycle import Action
from app.ticket.models import Ticket, TicketStatus
from app.ticket.schemas import AssignPayload, TicketSubmit

logger = get_logger(__name__)


def submit(db: Session, report: TicketSubmit, client_ip: str | None = None) -> list[Ticket]:
    destinations = list(dict.fromkeys(d.strip() for d in report.destinations if d and d.strip()))
    if not destinations:
        raise PreconditionFailedError("At least one destination required")

    shared = {
        "originator_id": report.emp_id,
        "originator_username": report.username,
        "originator_name": report.full_name,
        "department": report.department,
        "system_ip": report.ip_address or client_ip,
        "issue_text": report.issue_text,
        "remarks": report.remarks or None,
        "status": TicketStatus.NOT_ASSIGNED.value,
    }
    tickets = [ticket_store.create_ticket(db, destination=d, **shared) for d in destinations]
    logger.info(
        "tickets submitted",
        extra={"originator_id": report.emp_id, "ticket_ids": [t.id for t in tickets]},
    )
    return tickets


def assign(db: Session, ticket_id: int, payload: AssignPayload, actor: Actor,
           dispatcher: Dispatcher) -> tuple[Ticket, list[str]]:
    ticket = lifecycle.apply_transition(
        db,
        ticket_id,
        Action.ASSIGN,
        actor.role,
        assignee=payload.assignee,
        start_date=payload.start_date,
        end_date=payload.end_date,
        priority=payload.priority,
        remarks=payload.remarks,
    )
    return ticket, dispatcher.notify_assigned(ticket, actor)


def reject(db: Session, ticket_id: int, note: str | None, actor: Actor, dispatcher: Dispatcher,
           subject: str | None = None) -> tuple[Ticket, list[str]]:
    ticket = lifecycle.apply_transition(db, ticket_id, Action.REJECT, actor.role, note=note)
    if actor.role == Role.SUPERVISOR:
        return ticket, dispatcher.notify_rejected_by_supervisor(ticket, actor)
    return ticket, dispatcher.notify_rejected_by_worker(ticket, actor, subject)


def advance(db: Session, ticket_id: int, target: TicketStatus, note: str | None, actor: Actor,
            dispatcher: Dispatcher) -> tuple[Ticket, list[str]]:
    """Move a ticket to ``target`` through whichever action leads there."""
    current = ticket_store.get_ticket(db, ticket_id)
    if current is None:
        raise NotFoundError("Ticket not found")
    status = TicketStatus(current.status)
    action = lifecycle.action_for_target(status, target)
    lifecycle.lookup(status, action, actor.role)
    if action == Action.ASSIGN:
        raise PreconditionFailedError("Use the assign endpoint to assign a ticket")
    if action == Action.REJECT:
        return reject(db, ticket_id, note, actor, dispatcher)

    ticket = lifecycle.apply_transition(db, ticket_id, action, actor.role, note=note)
    if action == Action.START_WORK:
        return ticket, dispatcher.notify_taken_over(ticket, actor)
    if action == Action.COMPLETE:
        return ticket, dispatcher.notify_completed(ticket, actor)
    return ticket, []
