"""
Status callback delivery.

Each job with a callback URL gets its own chain of `deliver_status_callbacks`
task runs. One run = one status query plus the callback POSTs; the run then
schedules the next one `status_callback_interval` seconds later until the job
reaches a terminal status. Every run carries the chain's deadline: a run is
never started after it (`expires`) and is killed if it is still running when
the deadline passes (`time_limit`, counted from when the run starts).
"""
import logging
import time
from datetime import datetime, timezone

import requests
from celery import shared_task
from django.conf import settings
from django.db import DatabaseError

from .errors import JobNotFound, JobServiceError
from .models import Job
from .providers import is_terminal
from .serializers import JobStatusSerializer
from .service import query_job_status

logger = logging.getLogger(__name__)


def start_status_callbacks(job: Job) -> float:
    """Start delivering status callbacks for `job`; returns the chain's deadline (epoch seconds)."""
    deadline = time.time() + settings.JOB_MAX_CALLBACK_DURATION
    schedule_status_callbacks(str(job.id), deadline)
    return deadline


def schedule_status_callbacks(job_id: str, deadline: float, countdown: float = 0) -> bool:
    """Enqueue the next delivery run, unless it would start after `deadline`."""
    remaining = deadline - time.time()
    if countdown >= remaining:
        logger.info("Status callbacks for job %s stopped: deadline reached", job_id)
        return False
    deliver_status_callbacks.apply_async(
        args=[job_id, deadline],
        countdown=countdown,
        expires=datetime.fromtimestamp(deadline, tz=timezone.utc),
        time_limit=max(1, int(remaining - countdown)),
    )
    return True


def post_status(payload: dict, callback_url: str) -> bool:
    try:
        resp = requests.post(callback_url, json=payload, timeout=settings.STATUS_CALLBACK_TIMEOUT)
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.warning("Error calling status callback URL %s: %s", callback_url, e)
        return False
    return True


def run_callback_iteration(job_id: str):
    """
    Query the job once and push the result to its callback URLs.

    Returns the number of seconds to wait before the next iteration, or None when
    delivery is over (terminal status reported, or the job record is gone).
    """
    try:
        job = Job.objects.get(pk=job_id)
    except Job.DoesNotExist:
        logger.warning("Status callbacks for job %s stopped: job not found", job_id)
        return None
    except DatabaseError as e:
        logger.warning("Could not load job %s: %s", job_id, e)
        return settings.DEFAULT_STATUS_CALLBACK_INTERVAL
    interval = max(1, job.status_callback_interval)

    try:
        job_status = query_job_status(job)
    except JobNotFound:
        logger.warning("Status callbacks for job %s stopped: job not found", job_id)
        return None
    except JobServiceError as e:
        logger.warning("Could not query status of job %s: %s", job_id, e)
        return interval

    payload = JobStatusSerializer(job_status).data
    if job.status_callback_url and not post_status(payload, job.status_callback_url):
        return interval

    if not is_terminal(job_status.status):
        return interval

    if job.completion_callback_url and not post_status(payload, job.completion_callback_url):
        return interval
    logger.info("Status callbacks for job %s done: job %s", job_id, job_status.status)
    return None


@shared_task(ignore_result=True)
def deliver_status_callbacks(job_id: str, deadline: float):
    if time.time() >= deadline:
        logger.info("Status callbacks for job %s stopped: deadline reached", job_id)
        return
    wait = run_callback_iteration(job_id)
    if wait is not None:
        schedule_status_callbacks(job_id, deadline, countdown=wait)
