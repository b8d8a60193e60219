from asgiref.sync import async_to_sync

from app.core.celery import celery_app
from app.domains.missions.service import mission_service


@celery_app.task
def expire_mission_rounds_task():
    return async_to_sync(mission_service.expire_rounds)()
