"""
Celery Tasks für automatische Tray-Bewegungen
"""
import logging
from datetime import datetime

import redis

from growtrack.celery_app import celery_app
from growtrack.config import get_settings
from growtrack.core.events import TrayEventBus, log_subscriber
from growtrack.database import SessionLocal
from growtrack.services.movement_scheduler import MovementScheduler

logger = logging.getLogger(__name__)
settings = get_settings()

LOCK_NAME = "growtrack:movement-cycle"


def _event_bus() -> TrayEventBus:
    bus = TrayEventBus()
    bus.subscribe(log_subscriber)
    return bus


@celery_app.task(name="growtrack.tasks.movement_tasks.run_movement_cycle")
def run_movement_cycle():
    """
    Planungsdurchlauf: Vorschläge erzeugen und ausführen, fällige Trays auf
    ready setzen. Ein Redis-Lock sorgt dafür, dass nur ein Worker schreibt.
    """
    client = redis.Redis.from_url(settings.redis_url)
    lock = client.lock(LOCK_NAME, timeout=settings.movement_lock_timeout_seconds)

    if not lock.acquire(blocking=False):
        logger.warning("Bewegungsdurchlauf übersprungen: anderer Durchlauf läuft noch")
        return {"status": "skipped"}

    db = SessionLocal()
    try:
        scheduler = MovementScheduler(db, settings=settings, events=_event_bus())
        result = scheduler.run_cycle(datetime.utcnow())
        return {"status": "success", **result}
    except Exception as e:
        logger.error(f"Fehler im Bewegungsdurchlauf: {e}")
        db.rollback()
        raise
    finally:
        db.close()
        if lock.owned():
            lock.release()
