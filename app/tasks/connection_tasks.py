from asgiref.sync import async_to_sync

from app.core.celery import celery_app
from app.domains.connections.service import connection_service


@celery_app.task
def cool_inactive_connections_task():
    return async_to_sync(connection_service.cool_inactive)()


@celery_app.task
def expire_cooled_connections_task():
    return async_to_sync(connection_service.expire_cooled)()
