# app/directory/routes.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.identity import Role
from app.directory import services as directory_service
from app.directory.schemas import ContactCreate, ContactOut, PersonOut

router = APIRouter(prefix="/directory", tags=["Directory"])


@router.get("/supervisors", response_model=list[PersonOut])
def supervisors(db: Session = Depends(get_db)):
    return directory_service.ContactDirectory(db).list_by_role(Role.SUPERVISOR)


@router.get("/workers", response_model=list[PersonOut])
def workers(db: Session = Depends(get_db)):
    return directory_service.ContactDirectory(db).list_by_role(Role.WORKER)


@router.get("/find", response_model=ContactOut)
def find(key: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    contact = directory_service.ContactDirectory(db).find(key)
    if not contact:
        raise HTTPException(status_code=404, detail="Not found")
    return contact


@router.post("/contacts", response_model=ContactOut, status_code=201)
def create(contact: ContactCreate, db: Session = Depends(get_db)):
    return directory_service.create_contact(db, contact)
