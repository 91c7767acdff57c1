# app/ticket/routes.py
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.core.identity import Actor, Role, get_actor, require_role
from app.mail.dispatcher import Dispatcher, get_dispatcher
from app.ticket import services as ticket_service
from app.ticket import workflow
from app.ticket.schemas import (
    AssignPayload,
    RejectPayload,
    RemindOut,
    RemindPayload,
    StatusPayload,
    SubmitOut,
    TicketOut,
    TicketSubmit,
    TransitionOut,
)

router = APIRouter(prefix="/tickets", tags=["Tickets"])

STATUS_FILTER = Query(default=None, description="Filter by status, ALL for every status")


@router.post("/", response_model=SubmitOut, status_code=201)
def submit(report: TicketSubmit, request: Request, db: Session = Depends(get_db)):
    client_ip = request.client.host if request.client else None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        client_ip = forwarded.split(",")[0].strip()
    tickets = workflow.submit(db, report, client_ip)
    return SubmitOut(ticket_ids=[t.id for t in tickets])


@router.get("/by-originator", response_model=list[TicketOut])
def by_originator(emp_id: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    return ticket_service.list_by_originator(db, emp_id)


@router.get("/inbox", response_model=list[TicketOut])
def inbox(
    status: str | None = STATUS_FILTER,
    actor: Actor = Depends(require_role(Role.SUPERVISOR)),
    db: Session = Depends(get_db),
):
    return ticket_service.list_by_destination(db, actor.identity, status)


@router.get("/inbox/counts", response_model=dict[str, int])
def inbox_counts(actor: Actor = Depends(require_role(Role.SUPERVISOR)),
                 db: Session = Depends(get_db)):
    return ticket_service.count_by_status(db, actor.identity)


@router.get("/assigned", response_model=list[TicketOut])
def assigned(
    status: str | None = STATUS_FILTER,
    actor: Actor = Depends(require_role(Role.WORKER)),
    db: Session = Depends(get_db),
):
    return ticket_service.list_by_assignee(db, actor.identity, status)


@router.get("/{ticket_id}", response_model=TicketOut)
def get(ticket_id: int, db: Session = Depends(get_db)):
    ticket = ticket_service.get_ticket(db, ticket_id)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket


@router.patch("/{ticket_id}/assign", response_model=TransitionOut)
def assign(
    ticket_id: int,
    payload: AssignPayload,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    ticket, warnings = workflow.assign(db, ticket_id, payload, actor, dispatcher)
    return TransitionOut(ticket=TicketOut.model_validate(ticket), warnings=warnings)


@router.patch("/{ticket_id}/reject", response_model=TransitionOut)
def reject(
    ticket_id: int,
    payload: RejectPayload,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    ticket, warnings = workflow.reject(db, ticket_id, payload.note, actor, dispatcher, payload.subject)
    return TransitionOut(ticket=TicketOut.model_validate(ticket), warnings=warnings)


@router.patch("/{ticket_id}/status", response_model=TransitionOut)
def change_status(
    ticket_id: int,
    payload: StatusPayload,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    ticket, warnings = workflow.advance(db, ticket_id, payload.status, payload.note, actor, dispatcher)
    return TransitionOut(ticket=TicketOut.model_validate(ticket), warnings=warnings)


@router.patch("/{ticket_id}/seen", response_model=TicketOut)
def mark_seen(ticket_id: int, _actor: Actor = Depends(require_role(Role.SUPERVISOR)),
              db: Session = Depends(get_db)):
    return ticket_service.acknowledge_alert(db, ticket_id)


@router.post("/{ticket_id}/remind", response_model=RemindOut)
def remind(
    ticket_id: int,
    payload: RemindPayload,
    actor: Actor = Depends(get_actor),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    result = dispatcher.remind(ticket_id, payload.message, actor)
    if result.sent:
        return RemindOut(ok=True, sent=True, message=f"Reminder mail sent to {result.recipient}")
    return RemindOut(ok=False, sent=False, message="Reminder mail could not be sent",
                     warnings=[result.warning] if result.warning else [])
