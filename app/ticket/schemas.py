# app/ticket/schemas.py
from datetime import date, datetime

from pydantic import BaseModel, Field

from app.ticket.models import TicketStatus


class TicketReport(BaseModel):
    emp_id: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=1)
    department: str = Field(..., min_length=1)
    issue_text: str = Field(..., min_length=1)
    remarks: str | None = None
    ip_address: str | None = None


class TicketSubmit(TicketReport):
    destinations: list[str] = Field(..., min_length=1)


class AssignPayload(BaseModel):
    assignee: str = Field(..., min_length=1)
    start_date: date | None = None
    end_date: date | None = None
    priority: str | None = None
    remarks: str | None = None


class RejectPayload(BaseModel):
    note: str | None = None
    subject: str | None = None


class StatusPayload(BaseModel):
    status: TicketStatus
    note: str | None = None


class RemindPayload(BaseModel):
    message: str | None = None


class TicketOut(BaseModel):
    id: int
    originator_id: str
    originator_username: str
    originator_name: str
    department: str
    system_ip: str | None = None
    destination: str
    assignee: str | None = None
    status: TicketStatus
    priority: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    issue_text: str
    remarks: str | None = None
    alert_acknowledged: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SubmitOut(BaseModel):
    ok: bool = True
    ticket_ids: list[int]


class TransitionOut(BaseModel):
    ok: bool = True
    ticket: TicketOut
    warnings: list[str] = []


class RemindOut(BaseModel):
    ok: bool
    sent: bool
    message: str
    warnings: list[str] = []
