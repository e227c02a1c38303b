"""Abstract command executor interface.

Deciding which jobs fire (TriggerEngine) is kept apart from running their
commands. Both ShellExecutor and DryRunExecutor implement this ABC, so the
scheduler is identical whether commands really run or are only logged.
"""

from abc import ABC, abstractmethod

from elcron.models import JobDefinition, JobResult


class CommandExecutor(ABC):
    """Abstract base class for job command executors."""

    @abstractmethod
    async def run(self, job: JobDefinition) -> JobResult:
        """Run the job's command to completion and report the outcome.

        Failures (spawn error, non-zero exit, timeout) are recorded on the
        returned JobResult rather than raised, so one failing job never
        stops the jobs after it.
        """
        ...
