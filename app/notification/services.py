# app/notification/services.py
"""
Alert derivation.

One scan upserts an OVERDUE alert for every open ticket past its due date and
a DUE_TODAY alert for every open ticket due today, then prunes alerts not
refreshed within the retention window. Alerts of tickets that closed or moved
their due date are left to age out; readers filter on the ticket's current
status instead (see ``list_alerts``).
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import utcnow
from app.core.errors import NotFoundError
from app.core.logging_config import get_logger
from app.notification.models import Alert, AlertAcknowledgement, AlertKind
from app.ticket import services as ticket_store
from app.ticket.models import TERMINAL_STATUSES, Ticket

logger = get_logger(__name__)

UPSERT_ATTEMPTS = 3


@dataclass(frozen=True)
class ScanResult:
    overdue: int
    due_today: int
    pruned: int


def local_today(now: datetime, tz_name: str) -> date:
    """Calendar date of naive-UTC ``now`` in zone ``tz_name``."""
    return now.replace(tzinfo=timezone.utc).astimezone(ZoneInfo(tz_name)).date()


def alert_message(ticket: Ticket, limit: int) -> str:
    if ticket.remarks and ticket.remarks.strip():
        return ticket.remarks
    return ticket.issue_text[:limit]


def alert_title(ticket_id: int, kind: AlertKind) -> str:
    if kind == AlertKind.OVERDUE:
        return f"Ticket {ticket_id} is overdue"
    return f"Ticket {ticket_id} is due today"


def _upsert(db: Session, existing: dict, ticket: Ticket, kind: AlertKind, message: str,
            now: datetime) -> None:
    alert = existing.get((ticket.id, kind.value))
    if alert is None:
        db.add(Alert(
            ticket_id=ticket.id,
            kind=kind.value,
            title=alert_title(ticket.id, kind),
            message=message,
            created_at=now,
            refreshed_at=now,
        ))
        return
    alert.title = alert_title(ticket.id, kind)
    alert.message = message
    alert.refreshed_at = now


def prune_alerts(db: Session, cutoff: datetime) -> int:
    stale_ids = [row.id for row in db.query(Alert.id).filter(Alert.refreshed_at < cutoff).all()]
    if not stale_ids:
        return 0
    db.query(AlertAcknowledgement).filter(
        AlertAcknowledgement.alert_id.in_(stale_ids)
    ).delete(synchronize_session=False)
    db.query(Alert).filter(Alert.id.in_(stale_ids)).delete(synchronize_session=False)
    return len(stale_ids)


def existing_alerts(db: Session) -> dict:
    return {(a.ticket_id, a.kind): a for a in db.query(Alert).all()}


def _upsert_all(db: Session, today: date, now: datetime, message_chars: int) -> tuple[int, int]:
    existing = existing_alerts(db)
    overdue = due_today = 0
    for ticket in ticket_store.list_open_with_due_date(db):
        if ticket.end_date < today:
            kind = AlertKind.OVERDUE
            overdue += 1
        elif ticket.end_date == today:
            kind = AlertKind.DUE_TODAY
            due_today += 1
        else:
            continue
        _upsert(db, existing, ticket, kind, alert_message(ticket, message_chars), now)
    db.flush()
    return overdue, due_today


def refresh_alerts(db: Session, now: datetime | None = None) -> ScanResult:
    """Run one alert scan. ``now`` is naive UTC; "today" is its date in TIMEZONE.

    A scan in another process may insert the same (ticket, kind) first; the
    unique constraint then rejects our insert and the upsert is redone
    against the rows that now exist.
    """
    settings = get_settings()
    now = now or utcnow()
    today = local_today(now, settings.TIMEZONE)

    for attempt in range(1, UPSERT_ATTEMPTS + 1):
        try:
            overdue, due_today = _upsert_all(db, today, now, settings.ALERT_MESSAGE_CHARS)
            break
        except IntegrityError:
            db.rollback()
            if attempt == UPSERT_ATTEMPTS:
                raise
            logger.warning("alert upsert conflicted with another scan, retrying",
                           extra={"attempt": attempt})

    pruned = prune_alerts(db, now - timedelta(days=settings.ALERT_RETENTION_DAYS))
    db.commit()

    result = ScanResult(overdue=overdue, due_today=due_today, pruned=pruned)
    logger.info("alert scan finished", extra=result.__dict__)
    return result


def list_alerts(db: Session, destination: str, viewer: str) -> list[dict]:
    rows = (
        db.query(Alert, Ticket)
        .join(Ticket, Ticket.id == Alert.ticket_id)
        .filter(Ticket.destination == destination)
        .filter(Ticket.status.notin_([s.value for s in TERMINAL_STATUSES]))
        .order_by(Alert.refreshed_at.desc(), Alert.id.desc())
        .all()
    )
    seen_ids = {
        ack.alert_id
        for ack in db.query(AlertAcknowledgement).filter(AlertAcknowledgement.viewer == viewer).all()
    }
    return [
        {
            "id": alert.id,
            "ticket_id": alert.ticket_id,
            "kind": alert.kind,
            "title": alert.title,
            "message": alert.message,
            "created_at": alert.created_at,
            "refreshed_at": alert.refreshed_at,
            "ticket_status": ticket.status,
            "assignee": ticket.assignee,
            "end_date": ticket.end_date,
            "seen": alert.id in seen_ids,
        }
        for alert, ticket in rows
    ]


def acknowledge(db: Session, alert_id: int, viewer: str) -> AlertAcknowledgement:
    if db.query(Alert).filter(Alert.id == alert_id).first() is None:
        raise NotFoundError("Alert not found")
    ack = (
        db.query(AlertAcknowledgement)
        .filter(AlertAcknowledgement.alert_id == alert_id, AlertAcknowledgement.viewer == viewer)
        .first()
    )
    if ack is None:
        ack = AlertAcknowledgement(alert_id=alert_id, viewer=viewer)
        db.add(ack)
        db.commit()
        db.refresh(ack)
    return ack
