"""Workers package: background import jobs."""

from .job_runner import JobRunner, run_job  # noqa: F401
