# app/ticket/services.py
from sqlalchemy import func, update
from sqlalchemy.orm import Session
from app.core.errors import NotFoundError, PreconditionFailedError
from app.ticket.models import TERMINAL_STATUSES, Ticket, TicketStatus

# never touched by update_ticket
IMMUTABLE_FIELDS = frozenset({
    "id", "originator_id", "originator_username", "originator_name",
    "department", "system_ip", "destination", "created_at",
})
# only written through the lifecycle
LIFECYCLE_FIELDS = frozenset({"status", "assignee"})


def _filter_status(query, status: str | None):
    if status and status != "ALL":
        query = query.filter(Ticket.status == status)
    return query


def create_ticket(db: Session, **values) -> Ticket:
    try:
        status = TicketStatus(values.get("status") or TicketStatus.NOT_ASSIGNED.value)
    except ValueError:
        raise PreconditionFailedError(f"Unknown ticket status: {values['status']}")
    if status == TicketStatus.NOT_ASSIGNED and values.get("assignee"):
        raise PreconditionFailedError("An unassigned ticket cannot have an assignee")
    values["status"] = status.value
    db_ticket = Ticket(**values)
    db.add(db_ticket)
    db.commit()
    db.refresh(db_ticket)
    return db_ticket


def get_ticket(db: Session, ticket_id: int) -> Ticket | None:
    return db.query(Ticket).filter(Ticket.id == ticket_id).first()


def update_ticket(db: Session, ticket_id: int, changes: dict) -> Ticket:
    blocked = (IMMUTABLE_FIELDS | LIFECYCLE_FIELDS) & changes.keys()
    if blocked:
        raise PreconditionFailedError(f"Fields cannot be updated: {', '.join(sorted(blocked))}")
    db_ticket = get_ticket(db, ticket_id)
    if not db_ticket:
        raise NotFoundError("Ticket not found")
    for field, value in changes.items():
        setattr(db_ticket, field, value)
    db.commit()
    db.refresh(db_ticket)
    return db_ticket


def compare_and_set(db: Session, ticket_id: int, expected_status: str, values: dict) -> bool:
    """Write ``values`` only if the row still has ``expected_status``."""
    result = db.execute(
        update(Ticket)
        .where(Ticket.id == ticket_id, Ticket.status == expected_status)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        return False
    db.commit()
    return True


def list_by_destination(db: Session, destination: str, status: str | None = None) -> list[Ticket]:
    query = db.query(Ticket).filter(Ticket.destination == destination)
    return _filter_status(query, status).order_by(Ticket.created_at.desc(), Ticket.id.desc()).all()


def list_by_assignee(db: Session, assignee: str, status: str | None = None) -> list[Ticket]:
    query = db.query(Ticket).filter(Ticket.assignee == assignee)
    return _filter_status(query, status).order_by(Ticket.created_at.desc(), Ticket.id.desc()).all()


def list_by_originator(db: Session, originator_id: str) -> list[Ticket]:
    return (
        db.query(Ticket)
        .filter(Ticket.originator_id == originator_id)
        .order_by(Ticket.updated_at.desc(), Ticket.id.desc())
        .all()
    )


def list_open_with_due_date(db: Session) -> list[Ticket]:
    return (
        db.query(Ticket)
        .filter(Ticket.end_date.isnot(None))
        .filter(Ticket.status.notin_([s.value for s in TERMINAL_STATUSES]))
        .order_by(Ticket.id)
        .all()
    )


def count_by_status(db: Session, destination: str) -> dict[str, int]:
    rows = (
        db.query(Ticket.status, func.count(Ticket.id))
        .filter(Ticket.destination == destination)
        .group_by(Ticket.status)
        .all()
    )
    return {status: count for status, count in rows}


def acknowledge_alert(db: Session, ticket_id: int) -> Ticket:
    return update_ticket(db, ticket_id, {"alert_acknowledged": True})
