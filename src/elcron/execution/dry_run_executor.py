"""Dry-run executor: logs triggered commands without running them.

Implements the same CommandExecutor ABC as ShellExecutor, so a job file can
be tried out against live prices before it is allowed to act.
"""

from elcron.execution.executor import CommandExecutor
from elcron.logging import get_logger
from elcron.models import JobDefinition, JobResult

logger = get_logger(__name__)


class DryRunExecutor(CommandExecutor):
    """Records every command it is asked to run. All results have is_simulated=True."""

    def __init__(self) -> None:
        self.commands: list[str] = []

    async def run(self, job: JobDefinition) -> JobResult:
        self.commands.append(job.command)
        logger.info("job_dry_run", job=str(job))
        return JobResult(job=job, is_simulated=True)
