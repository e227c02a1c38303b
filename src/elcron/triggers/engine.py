"""Trigger engine -- evaluates job thresholds against the current price.

Decide and act are separate steps: select_jobs() is a pure function over
the job list, and the injected CommandExecutor runs whatever it selected.
Jobs run one at a time in job-file order, each to completion, so the
scheduler cannot sleep into the next hour while a command is still running.
"""

from decimal import Decimal

from elcron.execution.executor import CommandExecutor
from elcron.logging import get_logger
from elcron.models import JobDefinition, JobResult

logger = get_logger(__name__)


def select_jobs(jobs: list[JobDefinition], price: Decimal) -> list[JobDefinition]:
    """Return the jobs whose condition holds for `price`, in input order.

    ABOVE fires when price > threshold, BELOW when price < threshold.
    A price exactly at the threshold fires neither.
    """
    return [job for job in jobs if job.should_execute(price)]


class TriggerEngine:
    """Selects triggered jobs and hands them to the executor.

    Args:
        executor: Runs (or simulates) each triggered job's command.
    """

    def __init__(self, executor: CommandExecutor) -> None:
        self._executor = executor

    async def evaluate_and_run(
        self, jobs: list[JobDefinition], price: Decimal
    ) -> list[JobResult]:
        """Run every job triggered by `price` and return their results.

        A job that fails (including an executor that raises unexpectedly)
        is recorded as a failed result and the remaining jobs still run.
        """
        triggered = select_jobs(jobs, price)
        logger.info(
            "jobs_evaluated",
            price=str(price),
            jobs=len(jobs),
            triggered=len(triggered),
        )

        results: list[JobResult] = []
        for job in triggered:
            try:
                result = await self._executor.run(job)
            except Exception as e:
                logger.error(
                    "job_executor_error",
                    job=str(job),
                    error=str(e),
                    exc_info=True,
                )
                result = JobResult(job=job, error=str(e))
            results.append(result)

        failed = sum(1 for r in results if not r.succeeded)
        if failed:
            logger.warning("jobs_failed", failed=failed, total=len(results))
        return results
