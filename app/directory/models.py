# app/directory/models.py
from sqlalchemy import Column, Integer, String
from app.core.database import Base


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True)
    identity = Column(String(100), unique=True, index=True, nullable=False)
    display_name = Column(String(150), index=True, nullable=False)
    role = Column(String(20), index=True, nullable=False)
    employee_id = Column(String(50), index=True, nullable=True)
    department = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    # outbound-send credential (app password), not a login password
    mail_password = Column(String(255), nullable=True)

    @property
    def can_send(self) -> bool:
        return bool(self.email and self.mail_password)
