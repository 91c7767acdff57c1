# app/directory/services.py
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.errors import PreconditionFailedError
from app.core.identity import Role
from app.directory.models import Contact
from app.directory.schemas import ContactCreate


class ContactDirectory:
    """Resolves identities or display names to contact rows."""

    def __init__(self, db: Session):
        self.db = db

    def resolve(self, key: str | None) -> Contact | None:
        if not key:
            return None
        return (
            self.db.query(Contact)
            .filter(or_(Contact.identity == key, Contact.display_name == key))
            .order_by(Contact.id)
            .first()
        )

    def find(self, key: str) -> Contact | None:
        return (
            self.db.query(Contact)
            .filter(or_(Contact.employee_id == key, Contact.identity == key))
            .order_by(Contact.id)
            .first()
        )

    def list_by_role(self, role: Role) -> list[Contact]:
        return (
            self.db.query(Contact)
            .filter(Contact.role == role.value)
            .order_by(Contact.display_name)
            .all()
        )


def create_contact(db: Session, payload: ContactCreate) -> Contact:
    if db.query(Contact).filter(Contact.identity == payload.identity).first():
        raise PreconditionFailedError(f"Contact {payload.identity} already exists")
    data = payload.model_dump()
    data["role"] = payload.role.value
    db_contact = Contact(**data)
    db.add(db_contact)
    db.commit()
    db.refresh(db_contact)
    return db_contact
