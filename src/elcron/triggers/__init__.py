"""Trigger layer -- job file loading and threshold evaluation."""

from elcron.triggers.engine import TriggerEngine, select_jobs
from elcron.triggers.jobs import JOB_FILE_TEMPLATE, load_jobs, parse_job_line, parse_job_lines

__all__ = [
    "JOB_FILE_TEMPLATE",
    "TriggerEngine",
    "load_jobs",
    "parse_job_line",
    "parse_job_lines",
    "select_jobs",
]
