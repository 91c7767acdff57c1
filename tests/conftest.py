# tests/conftest.py
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.core.errors import TransientDispatchFailure
from app.core.identity import Actor, Role
from app.directory.models import Contact
from app.main import app
from app.mail.transport import get_mail_transport
from app.notification.scheduler import AlertScheduler, get_alert_scheduler

SUPERVISOR = Actor(identity="sup1", role=Role.SUPERVISOR, display_name="Sam Super")
OTHER_SUPERVISOR = Actor(identity="sup2", role=Role.SUPERVISOR, display_name="Olga Other")
WORKER = Actor(identity="tech1", role=Role.WORKER, display_name="Tina Tech")


def headers_for(actor: Actor) -> dict:
    return {"X-Identity": actor.identity, "X-Role": actor.role.value, "X-Display-Name": actor.display_name}


class RecordingTransport:
    """Mail transport double: records sends, or fails them when ``fail`` is set."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, mail):
        if self.fail:
            raise TransientDispatchFailure(f"Mail to {mail.recipient} failed: connection refused")
        self.sent.append(mail)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def contacts(db):
    rows = [
        Contact(identity="sup1", display_name="Sam Super", role="SUPERVISOR",
                email="sam@example.com", mail_password="sam-app-pass"),
        Contact(identity="sup2", display_name="Olga Other", role="SUPERVISOR",
                email="olga@example.com", mail_password="olga-app-pass"),
        Contact(identity="tech1", display_name="Tina Tech", role="WORKER",
                email="tina@example.com", mail_password="tina-app-pass"),
        Contact(identity="jdoe", display_name="John Doe", role="USER", employee_id="E100",
                department="Finance", email="john@example.com"),
    ]
    db.add_all(rows)
    db.commit()
    return rows


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def client(session_factory, transport):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    scheduler = AlertScheduler(session_factory=session_factory)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mail_transport] = lambda: transport
    app.dependency_overrides[get_alert_scheduler] = lambda: scheduler
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_ticket(db):
    from app.ticket import services as ticket_store

    def _make(status="NOT_ASSIGNED", destination="sup1", assignee=None, **values):
        if assignee is None and status != "NOT_ASSIGNED":
            assignee = "tech1"
        fields = {
            "originator_id": "E100",
            "originator_username": "jdoe",
            "originator_name": "John Doe",
            "department": "Finance",
            "issue_text": "Printer on floor 3 is jammed",
        }
        fields.update(values)
        return ticket_store.create_ticket(
            db, status=status, destination=destination, assignee=assignee, **fields
        )

    return _make
