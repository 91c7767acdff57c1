# tests/test_alerts.py
from datetime import date, datetime, timedelta

from app.notification import services as alert_service
from app.notification.models import Alert, AlertAcknowledgement
from app.notification.scheduler import AlertScheduler
from app.ticket import lifecycle
from app.core.config import get_settings
from app.core.identity import Role

NOW = datetime(2026, 3, 10, 9, 30)
TODAY = NOW.date()


def _alerts(db):
    return sorted(
        (a.ticket_id, a.kind, a.title, a.message) for a in db.query(Alert).all()
    )


def test_overdue_ticket_gets_one_overdue_alert(db, make_ticket):
    ticket = make_ticket(status="ASSIGNED", end_date=TODAY - timedelta(days=1))

    result = alert_service.refresh_alerts(db, NOW)

    assert result.overdue == 1 and result.due_today == 0
    assert _alerts(db) == [(ticket.id, "OVERDUE", f"Ticket {ticket.id} is overdue", ticket.issue_text)]


def test_due_today_not_started(db, make_ticket):
    ticket = make_ticket(status="NOT_STARTED", end_date=TODAY)

    alert_service.refresh_alerts(db, NOW)

    kinds = [a.kind for a in db.query(Alert).filter(Alert.ticket_id == ticket.id)]
    assert kinds == ["DUE_TODAY"]


def test_future_undated_and_closed_tickets_get_nothing(db, make_ticket):
    make_ticket(status="ASSIGNED", end_date=TODAY + timedelta(days=1))
    make_ticket()
    make_ticket(status="COMPLETE", end_date=TODAY - timedelta(days=5))
    make_ticket(status="REJECTED", end_date=TODAY)

    alert_service.refresh_alerts(db, NOW)

    assert db.query(Alert).count() == 0


def test_message_prefers_remarks_then_truncated_issue(db, make_ticket):
    with_remarks = make_ticket(status="ASSIGNED", end_date=TODAY, remarks="Bring a ladder")
    long_issue = make_ticket(status="ASSIGNED", end_date=TODAY, remarks="  ", issue_text="x" * 400)

    alert_service.refresh_alerts(db, NOW)

    messages = {a.ticket_id: a.message for a in db.query(Alert).all()}
    assert messages[with_remarks.id] == "Bring a ladder"
    assert messages[long_issue.id] == "x" * 250


def test_scan_is_idempotent(db, make_ticket):
    make_ticket(status="ASSIGNED", end_date=TODAY - timedelta(days=2))
    make_ticket(status="INPROCESS", end_date=TODAY)

    alert_service.refresh_alerts(db, NOW)
    first = _alerts(db)
    alert_service.refresh_alerts(db, NOW + timedelta(seconds=1))

    assert _alerts(db) == first
    assert db.query(Alert).count() == 2


def test_refresh_updates_message_in_place(db, make_ticket):
    ticket = make_ticket(status="ASSIGNED", end_date=TODAY - timedelta(days=1))
    alert_service.refresh_alerts(db, NOW)
    alert_id = db.query(Alert).one().id

    ticket.remarks = "Waiting on spare part"
    db.commit()
    later = NOW + timedelta(minutes=5)
    alert_service.refresh_alerts(db, later)

    alert = db.query(Alert).one()
    assert alert.id == alert_id
    assert alert.message == "Waiting on spare part"
    assert alert.refreshed_at == later
    assert alert.created_at == NOW


def test_closed_ticket_alert_lingers_until_retention(db, make_ticket):
    ticket = make_ticket(status="INPROCESS", end_date=TODAY - timedelta(days=1))
    alert_service.refresh_alerts(db, NOW)
    lifecycle.apply_transition(db, ticket.id, lifecycle.Action.COMPLETE, Role.WORKER, note="fixed")

    alert_service.refresh_alerts(db, NOW + timedelta(days=2))
    assert db.query(Alert).count() == 1

    result = alert_service.refresh_alerts(db, NOW + timedelta(days=3, seconds=1))
    assert result.pruned == 1
    assert db.query(Alert).count() == 0


def test_retention_prunes_any_kind(db, make_ticket):
    ticket = make_ticket(status="ASSIGNED", end_date=TODAY + timedelta(days=30))
    old = NOW - timedelta(days=4)
    db.add_all([
        Alert(ticket_id=ticket.id, kind="OVERDUE", title="t", message="m", created_at=old, refreshed_at=old),
        Alert(ticket_id=ticket.id, kind="DUE_TODAY", title="t", message="m", created_at=old, refreshed_at=old),
    ])
    db.commit()

    result = alert_service.refresh_alerts(db, NOW)

    assert result.pruned == 2
    assert db.query(Alert).count() == 0


def test_list_alerts_hides_closed_tickets_and_tracks_seen(db, make_ticket):
    open_ticket = make_ticket(status="ASSIGNED", end_date=TODAY - timedelta(days=1))
    closing = make_ticket(status="INPROCESS", end_date=TODAY)
    make_ticket(status="ASSIGNED", end_date=TODAY, destination="sup2")
    alert_service.refresh_alerts(db, NOW)
    lifecycle.apply_transition(db, closing.id, lifecycle.Action.COMPLETE, Role.WORKER, note="done")

    listed = alert_service.list_alerts(db, destination="sup1", viewer="sup1")
    assert [a["ticket_id"] for a in listed] == [open_ticket.id]
    assert listed[0]["seen"] is False

    alert_service.acknowledge(db, listed[0]["id"], "sup1")
    alert_service.acknowledge(db, listed[0]["id"], "sup1")
    assert db.query(AlertAcknowledgement).count() == 1
    assert alert_service.list_alerts(db, destination="sup1", viewer="sup1")[0]["seen"] is True


def test_scheduler_skips_when_scan_in_progress(session_factory, make_ticket):
    make_ticket(status="ASSIGNED", end_date=TODAY - timedelta(days=1))
    scheduler = AlertScheduler(session_factory=session_factory)

    scheduler._run_lock.acquire()
    try:
        assert scheduler.run_once(NOW) is None
    finally:
        scheduler._run_lock.release()

    result = scheduler.run_once(NOW)
    assert result.overdue == 1


def test_today_follows_configured_timezone(db, make_ticket, monkeypatch):
    monkeypatch.setattr(get_settings(), "TIMEZONE", "Asia/Kolkata")
    # 20:00 UTC on the 10th is 01:30 on the 11th in Kolkata
    late_evening = datetime(2026, 3, 10, 20, 0)
    due_local_today = make_ticket(status="ASSIGNED", end_date=date(2026, 3, 11))
    due_local_yesterday = make_ticket(status="ASSIGNED", end_date=date(2026, 3, 10))

    alert_service.refresh_alerts(db, late_evening)

    kinds = {a.ticket_id: a.kind for a in db.query(Alert).all()}
    assert kinds == {due_local_today.id: "DUE_TODAY", due_local_yesterday.id: "OVERDUE"}


def test_local_today_defaults_to_utc():
    assert alert_service.local_today(datetime(2026, 3, 10, 23, 59), "UTC") == date(2026, 3, 10)


def test_upsert_redone_when_another_scan_inserted_first(db, make_ticket, monkeypatch):
    ticket = make_ticket(status="ASSIGNED", end_date=TODAY - timedelta(days=1))
    alert_service.refresh_alerts(db, NOW)

    real_existing = alert_service.existing_alerts
    calls = []

    def stale_then_real(session):
        # first read misses the row another scan already wrote
        calls.append(1)
        return {} if len(calls) == 1 else real_existing(session)

    monkeypatch.setattr(alert_service, "existing_alerts", stale_then_real)
    result = alert_service.refresh_alerts(db, NOW + timedelta(minutes=5))

    assert len(calls) == 2
    assert result.overdue == 1
    alert = db.query(Alert).one()
    assert alert.ticket_id == ticket.id
    assert alert.refreshed_at == NOW + timedelta(minutes=5)
