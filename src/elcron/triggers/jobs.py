"""Job file loader.

The job file (default name `elcron`) holds one job per line:

    threshold, condition, command

threshold is a whole number of c/kWh, condition is `above` or `below`, and
command is passed to the shell verbatim (it may itself contain commas).
Lines starting with `#` and blank lines are ignored.
"""

from __future__ import annotations

from pathlib import Path

from elcron.exceptions import JobFileError
from elcron.logging import get_logger
from elcron.models import JobDefinition, TriggerCondition

logger = get_logger(__name__)

JOB_FILE_TEMPLATE = """\
# This file defines jobs that run when the price of electricity is above or
# below a threshold. It is re-read every hour, so edits apply without restart.

# One job per line, columns separated by comma:
# price, condition, command

# price: the price of electricity in c/kWh that triggers the job
# condition: above or below. Equality never triggers.
# command: the shell command to run when the condition is met

# Example:
# price,    condition,  command
# 5,        above,      echo "Price of electricity is above 5"
# 10,       below,      echo "Price of electricity is below 10"
"""


def parse_threshold(raw: str) -> int:
    text = raw.strip()
    if not (text.isascii() and text.isdigit()):
        raise JobFileError(f"Invalid price threshold: {raw!r}")
    return int(text)


def parse_condition(raw: str) -> TriggerCondition:
    try:
        return TriggerCondition(raw.strip().lower())
    except ValueError as e:
        raise JobFileError(f"Invalid condition: {raw!r}") from e


def parse_job_line(line: str) -> JobDefinition:
    """Parse one `threshold, condition, command` line."""
    parts = line.split(",", 2)
    if len(parts) != 3 or not parts[2].strip():
        raise JobFileError(f"Expected 'price, condition, command': {line!r}")
    return JobDefinition(
        threshold=parse_threshold(parts[0]),
        condition=parse_condition(parts[1]),
        command=parts[2].strip(),
    )


def parse_job_lines(lines: list[str]) -> list[JobDefinition]:
    """Parse job lines, skipping comments and blank lines.

    Raises:
        JobFileError: On the first invalid line (with its 1-based number),
            or when no job lines remain after filtering.
    """
    jobs: list[JobDefinition] = []
    for number, line in enumerate(lines, 1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        try:
            jobs.append(parse_job_line(stripped))
        except JobFileError as e:
            raise JobFileError(f"line {number}: {e}") from e

    if not jobs:
        raise JobFileError("No jobs defined")
    return jobs


def load_jobs(path: str | Path) -> list[JobDefinition]:
    """Read and parse the job file.

    A missing file is created from JOB_FILE_TEMPLATE so the operator has
    something to edit, and JobFileError is raised.

    Raises:
        JobFileError: If the file is missing, unreadable, empty or invalid.
    """
    path = Path(path)
    if not path.exists():
        try:
            path.write_text(JOB_FILE_TEMPLATE, encoding="utf-8")
        except OSError as e:
            raise JobFileError(f"Job file {path} not found and could not be created") from e
        logger.warning("job_file_created_from_template", path=str(path))
        raise JobFileError(f"Job file {path} not found, created a template")

    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise JobFileError(f"Cannot read job file {path}: {e}") from e

    try:
        jobs = parse_job_lines(lines)
    except JobFileError as e:
        raise JobFileError(f"{path}: {e}") from e

    logger.debug("jobs_loaded", path=str(path), count=len(jobs))
    return jobs
