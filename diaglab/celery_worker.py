# diaglab/celery_worker.py
from celery import Celery

from diaglab.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    CELERY_TASK_ALWAYS_EAGER,
)

celery_app = Celery(
    "diaglab",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# tasks have to be imported explicitly so the worker registers them
celery_app.conf.imports = (
    "diaglab.services.notification_service",
)

celery_app.conf.task_always_eager = CELERY_TASK_ALWAYS_EAGER
celery_app.conf.timezone = "UTC"
