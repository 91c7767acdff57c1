# app/notification/scheduler.py
import threading
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.logging_config import get_logger
from app.notification.services import ScanResult, refresh_alerts

logger = get_logger(__name__)

JOB_ID = "refresh_alerts"


class AlertScheduler:
    """Runs the alert scan at start-up and then every ``interval_minutes``."""

    def __init__(self, interval_minutes: int = 5, session_factory=SessionLocal):
        self.interval_minutes = interval_minutes
        self.session_factory = session_factory
        self.scheduler = BackgroundScheduler(timezone=timezone.utc)
        self._run_lock = threading.Lock()

    def run_once(self, now: datetime | None = None) -> ScanResult | None:
        """Run one scan, or return None when a scan is already in progress."""
        if not self._run_lock.acquire(blocking=False):
            logger.debug("alert scan already running, skipped")
            return None
        try:
            db = self.session_factory()
            try:
                return refresh_alerts(db, now)
            finally:
                db.close()
        finally:
            self._run_lock.release()

    def _tick(self) -> None:
        try:
            self.run_once()
        except Exception:
            logger.exception("alert scan failed")

    def start(self) -> None:
        if self.scheduler.running:
            return
        self.scheduler.add_job(
            self._tick,
            trigger="interval",
            minutes=self.interval_minutes,
            id=JOB_ID,
            next_run_time=datetime.now(timezone.utc),
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info("alert scheduler started", extra={"interval_minutes": self.interval_minutes})

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("alert scheduler stopped")


_alert_scheduler: AlertScheduler | None = None


def get_alert_scheduler() -> AlertScheduler:
    global _alert_scheduler
    if _alert_scheduler is None:
        _alert_scheduler = AlertScheduler(get_settings().NOTIFY_INTERVAL_MINUTES)
    return _alert_scheduler
