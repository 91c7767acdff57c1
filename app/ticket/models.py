# app/ticket/models.py
from enum import Enum

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, String, Text
from app.core.database import Base, utcnow


class TicketStatus(str, Enum):
    NOT_ASSIGNED = "NOT_ASSIGNED"
    ASSIGNED = "ASSIGNED"
    NOT_STARTED = "NOT_STARTED"
    INPROCESS = "INPROCESS"
    COMPLETE = "COMPLETE"
    REJECTED = "REJECTED"


TERMINAL_STATUSES = frozenset({TicketStatus.COMPLETE, TicketStatus.REJECTED})


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)

    # originator
    originator_id = Column(String(50), index=True, nullable=False)
    originator_username = Column(String(100), nullable=False)
    originator_name = Column(String(150), nullable=False)
    department = Column(String(100), nullable=False)
    system_ip = Column(String(64), nullable=True)

    destination = Column(String(100), index=True, nullable=False)
    assignee = Column(String(100), index=True, nullable=True)
    status = Column(String(20), default=TicketStatus.NOT_ASSIGNED.value, index=True, nullable=False)
    priority = Column(String(20), nullable=True)

    start_date = Column(Date, nullable=True)
    end_date = Column(Date, index=True, nullable=True)

    issue_text = Column(Text, nullable=False)
    remarks = Column(Text, nullable=True)

    alert_acknowledged = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
