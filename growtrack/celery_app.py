"""
Celery Konfiguration für Background Tasks
"""
from celery import Celery
from growtrack.config import get_settings

settings = get_settings()

celery_app = Celery(
    "growtrack",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "growtrack.tasks.movement_tasks",
    ]
)

# Celery Konfiguration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="America/Chicago",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=10 * 60,  # 10 Minuten max
    worker_prefetch_multiplier=1,
)

# Scheduled Tasks (Celery Beat)
celery_app.conf.beat_schedule = {
    # Automatische Stufenwechsel + Erntereife
    "movement-cycle": {
        "task": "growtrack.tasks.movement_tasks.run_movement_cycle",
        "schedule": settings.movement_cycle_minutes * 60.0,
    },
}
