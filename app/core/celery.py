# app/core/celery.py
from celery import Celery
from celery.schedules import crontab

from app.core.config import settings

celery_app = Celery(
    "linka_tasks",
    broker=settings.RABBITMQ_URL,
    backend=settings.REDIS_URL,
    include=[
        "app.tasks.connection_tasks",
        "app.tasks.mission_tasks",
    ],
)


def init_celery():
    celery_app.conf.update(
        task_serializer="json",
        accept_content=["json"],
        result_serializer="json",
        timezone="UTC",
        enable_utc=True,
        worker_send_task_events=True,
        broker_connection_retry_on_startup=True,
        task_track_started=True,
    )


async def check_connection() -> bool:
    try:
        with celery_app.connection_for_write() as conn:
            conn.ensure_connection(max_retries=1, timeout=2)
            return True
    except Exception:
        return False


celery_app.conf.beat_schedule = {
    "cool-inactive-connections": {
        "task": "app.tasks.connection_tasks.cool_inactive_connections_task",
        "schedule": crontab(minute=0),
    },
    "expire-cooled-connections": {
        "task": "app.tasks.connection_tasks.expire_cooled_connections_task",
        "schedule": crontab(hour=3, minute=0),
    },
    "expire-mission-rounds": {
        "task": "app.tasks.mission_tasks.expire_mission_rounds_task",
        "schedule": crontab(minute="*/15"),
    },
}
