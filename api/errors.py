"""
Errors raised by the job and preset workflows.

Each class carries the HTTP status the views answer with; provider errors are
classified into one of these at the workflow boundary.
"""


class JobServiceError(Exception):
    status_code = 500


class InvalidRequest(JobServiceError):
    status_code = 400


class InvalidJob(InvalidRequest):
    pass


class NotFound(JobServiceError):
    status_code = 404


class JobNotFound(NotFound):
    def __init__(self, job_id):
        super().__init__(f"job not found: {job_id}")
        self.job_id = job_id


class JobGone(JobServiceError):
    """The job record exists but the provider no longer knows about it."""
    status_code = 410


class Conflict(JobServiceError):
    status_code = 409


class ServiceFailure(JobServiceError):
    status_code = 500
