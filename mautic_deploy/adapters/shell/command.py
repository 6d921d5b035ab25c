"""
Shell command runner — execute real processes.

The SINGLE PLACE where ``subprocess.run`` is called. Every other
component goes through a CommandRunner.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time

from mautic_deploy.adapters.base import CommandRunner
from mautic_deploy.core.models.command import CommandOptions, CommandResult

logger = logging.getLogger(__name__)


class ShellCommandRunner(CommandRunner):
    """Run commands as local subprocesses and capture their output."""

    @property
    def name(self) -> str:
        return "shell"

    def _execute(self, cmd: list[str], options: CommandOptions) -> CommandResult:
        env = None
        if options.env:
            env = os.environ.copy()
            env.update(options.env)

        logger.debug("Executing: %s (cwd=%s)", cmd, options.cwd)
        start = time.monotonic()

        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                cwd=options.cwd,
                env=env,
                timeout=options.timeout,
            )
        except subprocess.TimeoutExpired as e:
            if options.ignore_error:
                return CommandResult.fault(f"Command timed out after {e.timeout}s")
            raise
        except (OSError, subprocess.SubprocessError) as e:
            if options.ignore_error:
                return CommandResult.fault(str(e) or e.__class__.__name__)
            raise

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.debug("Exit %d after %dms: %s", proc.returncode, elapsed_ms, cmd[0])

        return CommandResult.from_exit(
            proc.returncode,
            (proc.stdout or "") + (proc.stderr or ""),
        )
