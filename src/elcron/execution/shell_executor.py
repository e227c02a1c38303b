"""Shell command executor.

Runs each triggered job's command through /bin/sh -c and waits for it to
finish before returning. Standard output is captured and logged so the
effect of a job is visible in the service log.
"""

import asyncio
import os
import signal

from elcron.exceptions import JobExecutionError
from elcron.execution.executor import CommandExecutor
from elcron.logging import get_logger
from elcron.models import JobDefinition, JobResult

logger = get_logger(__name__)


class ShellExecutor(CommandExecutor):
    """Runs job commands as shell subprocesses.

    Args:
        timeout: Seconds to wait for a command before killing it.
            None waits indefinitely.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._timeout = timeout

    async def run(self, job: JobDefinition) -> JobResult:
        """Run the command; failures are logged and recorded, never raised."""
        logger.info("job_activated", job=str(job))
        result = JobResult(job=job)
        try:
            result.returncode, result.stdout = await self._run_command(job.command)
        except JobExecutionError as e:
            result.returncode = e.returncode
            result.error = str(e)
            logger.error(
                "job_execution_failed",
                command=job.command,
                returncode=e.returncode,
                error=str(e),
            )
            return result

        logger.info("job_output", command=job.command, stdout=result.stdout)
        return result

    async def _run_command(self, command: str) -> tuple[int, str]:
        """Return (returncode, stripped stdout).

        Raises:
            JobExecutionError: If the process cannot be spawned, times out,
                or exits non-zero.
        """
        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            raise JobExecutionError(command, f"Failed to spawn ({e})") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self._timeout
            )
        except asyncio.TimeoutError as e:
            _kill_process_group(process)
            await process.wait()
            raise JobExecutionError(
                command, f"Timed out after {self._timeout}s", process.returncode
            ) from e

        output = stdout.decode(errors="replace").strip()
        if process.returncode != 0:
            message = stderr.decode(errors="replace").strip() or "Command failed"
            raise JobExecutionError(
                command,
                f"Exited with status {process.returncode} ({message})",
                process.returncode,
            )
        return process.returncode, output


def _kill_process_group(process: asyncio.subprocess.Process) -> None:
    """SIGKILL the shell and everything it started.

    The command runs in its own session, so its process group id is the
    shell's pid. Children of the shell would otherwise keep the output
    pipes open after the shell itself is gone.
    """
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
