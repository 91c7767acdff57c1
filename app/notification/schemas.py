# app/notification/schemas.py
from datetime import date, datetime

from pydantic import BaseModel

from app.notification.models import AlertKind
from app.ticket.models import TicketStatus


class AlertOut(BaseModel):
    id: int
    ticket_id: int
    kind: AlertKind
    title: str
    message: str
    created_at: datetime
    refreshed_at: datetime
    ticket_status: TicketStatus
    assignee: str | None = None
    end_date: date | None = None
    seen: bool = False


class ScanOut(BaseModel):
    ran: bool
    overdue: int = 0
    due_today: int = 0
    pruned: int = 0
