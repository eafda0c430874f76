import os
from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "transcoding_api.settings")

celery_app = Celery("transcoding_api")
celery_app.config_from_object("django.conf:settings", namespace="CELERY")
# Callback runs wait in the queue with countdowns; fetch one at a time.
celery_app.conf.update(
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)
celery_app.autodiscover_tasks(["api"])
