# Celery Tasks
from growtrack.tasks import movement_tasks

__all__ = [
    "movement_tasks",
]
