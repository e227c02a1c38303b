"""Command execution layer -- runs the commands of triggered jobs."""

from elcron.execution.dry_run_executor import DryRunExecutor
from elcron.execution.executor import CommandExecutor
from elcron.execution.shell_executor import ShellExecutor

__all__ = ["CommandExecutor", "DryRunExecutor", "ShellExecutor"]
