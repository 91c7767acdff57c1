# app/notification/models.py
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from app.core.database import Base, utcnow


class AlertKind(str, Enum):
    OVERDUE = "OVERDUE"
    DUE_TODAY = "DUE_TODAY"


class Alert(Base):
    """Derived notice for one ticket, at most one per kind."""

    __tablename__ = "alerts"
    __table_args__ = (UniqueConstraint("ticket_id", "kind", name="uq_alert_ticket_kind"),)

    id = Column(Integer, primary_key=True, index=True)
    ticket_id = Column(Integer, ForeignKey("tickets.id", ondelete="CASCADE"), index=True, nullable=False)
    kind = Column(String(20), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    refreshed_at = Column(DateTime, default=utcnow, index=True, nullable=False)


class AlertAcknowledgement(Base):
    __tablename__ = "alert_acknowledgements"
    __table_args__ = (UniqueConstraint("alert_id", "viewer", name="uq_alert_ack_viewer"),)

    id = Column(Integer, primary_key=True, index=True)
    alert_id = Column(Integer, ForeignKey("alerts.id", ondelete="CASCADE"), index=True, nullable=False)
    viewer = Column(String(100), nullable=False)
    acknowledged_at = Column(DateTime, default=utcnow, nullable=False)
