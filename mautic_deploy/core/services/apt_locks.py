"""
Apt lock handling — wait out other package-manager runs.

A fresh Debian/Ubuntu host often has unattended-upgrades holding the
dpkg lock for minutes after boot. ``LockWaiter.wait_for_locks`` polls
the lock files and the process table until they clear, nudges
unattended-upgrades every minute, and after the timeout force-clears
the locks and repairs the dpkg database.

The wait is a small state machine driven by a logical elapsed
counter, so tests (and ``--dry-run``) drive it with a fake sleep:

    CHECKING ──locked──▶ WAITING ──sleep(poll)──▶ CHECKING
        │                                           │
        └──clear──▶ DONE ◀──timeout: force release──┘
"""

from __future__ import annotations

import logging
import shlex
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from mautic_deploy.adapters.base import CommandRunner
from mautic_deploy.core.models.command import IGNORE_ERRORS
from mautic_deploy.core.observability.deploy_log import DeployLog

logger = logging.getLogger(__name__)

LOCK_FILES: tuple[str, ...] = (
    "/var/lib/dpkg/lock-frontend",
    "/var/lib/apt/lists/lock",
    "/var/cache/apt/archives/lock",
    "/var/lib/dpkg/lock",
)

PROCESS_PATTERN = "apt-get|apt|dpkg|unattended-upgrade"

POLL_INTERVAL = 15         # seconds between lock checks
DIAGNOSTIC_INTERVAL = 60   # seconds between process snapshots / nudges
SETTLE_DELAY = 5           # seconds after a forced release
DEFAULT_TIMEOUT = 600


class LockWaitState(str, Enum):
    CHECKING = "checking"
    WAITING = "waiting"
    DONE = "done"


@dataclass
class LockWaitOutcome:
    """How a wait ended."""

    forced: bool = False    # True = timeout hit, locks were force-cleared
    elapsed: int = 0        # logical seconds waited
    polls: int = 0          # waiting iterations (sleeps between checks)

    @property
    def cleared(self) -> bool:
        return not self.forced

    def to_dict(self) -> dict:
        return {
            "result": "forced" if self.forced else "cleared",
            "elapsed": self.elapsed,
            "polls": self.polls,
        }


class LockWaiter:
    """Poll apt/dpkg locks until they clear or a timeout forces them."""

    def __init__(
        self,
        runner: CommandRunner,
        log: DeployLog,
        sleep: Callable[[float], None] = time.sleep,
        lock_files: Sequence[str] = LOCK_FILES,
        poll_interval: int = POLL_INTERVAL,
        diagnostic_interval: int = DIAGNOSTIC_INTERVAL,
    ):
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        self._runner = runner
        self._log = log
        self._sleep = sleep
        self.lock_files = tuple(lock_files)
        self.poll_interval = poll_interval
        self.diagnostic_interval = diagnostic_interval

    def check_locks(self) -> bool:
        """Return True if any lock file is held or apt/dpkg is running.

        A failing probe (fuser/pgrep missing, no match) counts as
        "not locked".
        """
        locked = False

        for lock_file in self.lock_files:
            result = self._runner.run_shell(f"fuser {shlex.quote(lock_file)}", IGNORE_ERRORS)
            if result.success:
                self._log.warning(f"{lock_file} is held")
                locked = True

        result = self._runner.run_shell(f'pgrep -f "{PROCESS_PATTERN}"', IGNORE_ERRORS)
        if result.success:
            self._log.warning("apt/dpkg processes are running")
            locked = True

        return locked

    def wait_for_locks(self, timeout_seconds: int = DEFAULT_TIMEOUT) -> LockWaitOutcome:
        """Block until the locks clear, forcing them after ``timeout_seconds``.

        Always returns: either the locks cleared on their own or they
        were force-released (without re-checking afterwards).
        """
        self._log.log("Checking for apt locks...", "🔒")

        outcome = LockWaitOutcome()
        next_diagnostic = self.diagnostic_interval
        state = LockWaitState.CHECKING

        while state is not LockWaitState.DONE:
            if state is LockWaitState.WAITING:
                self._sleep(self.poll_interval)
                outcome.elapsed += self.poll_interval
                state = LockWaitState.CHECKING
                continue

            if not self.check_locks():
                state = LockWaitState.DONE
                continue

            if outcome.elapsed >= timeout_seconds:
                self._force_release(timeout_seconds)
                outcome.forced = True
                state = LockWaitState.DONE
                continue

            if self.diagnostic_interval > 0 and outcome.elapsed >= next_diagnostic:
                self._diagnose()
                while next_diagnostic <= outcome.elapsed:
                    next_diagnostic += self.diagnostic_interval

            self._log.log(
                f"Waiting for apt locks... ({outcome.elapsed}/{timeout_seconds}s)", "⏳"
            )
            outcome.polls += 1
            state = LockWaitState.WAITING

        if outcome.forced:
            self._log.warning("Apt locks force-released, continuing")
        else:
            self._log.success("Apt locks released")

        logger.debug("Lock wait finished: %s", outcome.to_dict())
        return outcome

    # ── Escalation ──────────────────────────────────────────────

    def _diagnose(self) -> None:
        """Log who holds the lock and try to stop unattended-upgrades."""
        self._log.log("Analyzing lock status...", "🔍")
        processes = self._runner.run_shell(
            'ps aux | grep -E "(apt|dpkg|unattended)" | grep -v grep', IGNORE_ERRORS
        )
        if processes.output:
            self._log.log(f"Running processes:\n{processes.output}")

        self._runner.run_shell("systemctl stop unattended-upgrades", IGNORE_ERRORS)
        self._runner.run_shell("pkill -f unattended-upgrade", IGNORE_ERRORS)

    def _force_release(self, timeout_seconds: int) -> None:
        """Kill blockers, delete lock files and repair dpkg.

        Risks leaving the package database half-configured; the
        ``dpkg --configure -a`` run is the repair for that.
        """
        self._log.error(f"Timeout waiting for apt locks after {timeout_seconds} seconds")
        self._log.log("Forcing lock release...", "🚨")

        self._runner.run_shell(f'pkill -9 -f "{PROCESS_PATTERN}"', IGNORE_ERRORS)
        for lock_file in self.lock_files:
            self._runner.run_shell(f"rm -f {shlex.quote(lock_file)}", IGNORE_ERRORS)
        self._runner.run_shell("dpkg --configure -a", IGNORE_ERRORS)

        self._sleep(SETTLE_DELAY)
