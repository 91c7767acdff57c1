# app/notification/routes.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.identity import Actor, Role, require_role
from app.notification import services as alert_service
from app.notification.scheduler import AlertScheduler, get_alert_scheduler
from app.notification.schemas import AlertOut, ScanOut

router = APIRouter(prefix="/alerts", tags=["Alerts"])


@router.get("/", response_model=list[AlertOut])
def list_alerts(actor: Actor = Depends(require_role(Role.SUPERVISOR)), db: Session = Depends(get_db)):
    return alert_service.list_alerts(db, destination=actor.identity, viewer=actor.identity)


@router.patch("/{alert_id}/seen")
def mark_seen(alert_id: int, actor: Actor = Depends(require_role(Role.SUPERVISOR)),
              db: Session = Depends(get_db)):
    alert_service.acknowledge(db, alert_id, actor.identity)
    return {"ok": True}


@router.post("/refresh", response_model=ScanOut)
def refresh(_actor: Actor = Depends(require_role(Role.SUPERVISOR)),
            scheduler: AlertScheduler = Depends(get_alert_scheduler)):
    result = scheduler.run_once()
    if result is None:
        return ScanOut(ran=False)
    return ScanOut(ran=True, overdue=result.overdue, due_today=result.due_today, pruned=result.pruned)
