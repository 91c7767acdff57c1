# app/directory/schemas.py
from pydantic import BaseModel, Field

from app.core.identity import Role


class ContactBase(BaseModel):
    identity: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1)
    role: Role
    employee_id: str | None = None
    department: str | None = None
    email: str | None = None


class ContactCreate(ContactBase):
    mail_password: str | None = None


class ContactOut(ContactBase):
    id: int

    model_config = {"from_attributes": True}


class PersonOut(BaseModel):
    identity: str
    display_name: str
    email: str | None = None

    model_config = {"from_attributes": True}
