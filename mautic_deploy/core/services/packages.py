"""
Package installation — apt index refresh and retrying installs.

Installs are idempotent (already-installed packages are skipped) and
resilient: each attempt first waits out apt locks, failed attempts are
retried after a pause, and the last resort is a ``--fix-broken``
install. Running out of attempts is fatal to the caller.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable, Iterable

from mautic_deploy.adapters.base import CommandRunner, InvalidArgumentError
from mautic_deploy.core.models.command import IGNORE_ERRORS
from mautic_deploy.core.observability.deploy_log import DeployLog
from mautic_deploy.core.services.apt_locks import LockWaiter

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
RETRY_DELAY = 30          # seconds between failed attempts
INSTALL_LOCK_TIMEOUT = 120

# Debian policy: lowercase alphanumerics plus + - . (optional :arch suffix)
_PACKAGE_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9+.\-]+(:[a-z0-9\-]+)?$")


class UpdateFailedError(Exception):
    """Raised when the apt package index cannot be refreshed."""


class InstallFailedError(Exception):
    """Raised when a package cannot be installed, even with --fix-broken."""

    def __init__(self, package: str, output: str = ""):
        self.package = package
        self.output = output
        super().__init__(f"Complete failure installing {package}")


def validate_package_name(name: str) -> str:
    """Return ``name`` if it is a valid Debian package name.

    Raises:
        InvalidArgumentError: If the name would be unsafe to place in
            a shell command.
    """
    if not _PACKAGE_NAME_RE.match(name or ""):
        raise InvalidArgumentError(f"Invalid package name: {name!r}")
    return name


class PackageInstaller:
    """Refresh the apt index and install packages with retries."""

    def __init__(
        self,
        runner: CommandRunner,
        log: DeployLog,
        lock_waiter: LockWaiter | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._runner = runner
        self._log = log
        self._sleep = sleep
        self.lock_waiter = lock_waiter or LockWaiter(runner, log, sleep=sleep)

    def update_packages(self) -> None:
        """Run ``apt-get update``, retrying up to three times.

        Raises:
            UpdateFailedError: If every attempt fails.
        """
        self._log.log("Updating package lists...", "📦")

        for attempt in range(1, MAX_ATTEMPTS + 1):
            result = self._runner.run_shell("apt-get update", IGNORE_ERRORS)
            if result.success:
                self._log.success("Package lists updated successfully")
                return

            logger.debug("apt-get update attempt %d output: %s", attempt, result.output)
            if attempt < MAX_ATTEMPTS:
                self._log.warning(
                    f"apt-get update failed (attempt {attempt}/{MAX_ATTEMPTS}), "
                    f"retrying in {RETRY_DELAY} seconds..."
                )
                self._sleep(RETRY_DELAY)

        self._log.error(f"Failed to update package lists after {MAX_ATTEMPTS} attempts")
        raise UpdateFailedError(
            f"Failed to update package lists after {MAX_ATTEMPTS} attempts"
        )

    def is_installed(self, name: str) -> bool:
        """Whether dpkg reports ``name`` as installed (state ``ii``)."""
        result = self._runner.run_shell(f'dpkg -l | grep -q "^ii  {name} "', IGNORE_ERRORS)
        return result.success

    def install_package(self, name: str) -> None:
        """Install ``name`` unless it is already present.

        Raises:
            InvalidArgumentError: If ``name`` is not a valid package name.
            InstallFailedError: If all attempts and the forced fallback fail.
        """
        try:
            validate_package_name(name)
        except InvalidArgumentError as e:
            self._log.error(str(e))
            raise

        if self.is_installed(name):
            self._log.success(f"{name} is already installed")
            return

        self._log.log(f"Installing {name}...", "📦")

        for attempt in range(1, MAX_ATTEMPTS + 1):
            self.lock_waiter.wait_for_locks(INSTALL_LOCK_TIMEOUT)

            result = self._runner.run_shell(
                "DEBIAN_FRONTEND=noninteractive apt-get install -y "
                f"-o Dpkg::Lock::Timeout=60 {name}",
                IGNORE_ERRORS,
            )
            if result.success:
                self._log.success(f"{name} installed successfully")
                return

            logger.debug("Install attempt %d for %s: %s", attempt, name, result.output)
            if attempt < MAX_ATTEMPTS:
                self._log.warning(f"Failed to install {name} (attempt {attempt}/{MAX_ATTEMPTS})")
                self._sleep(RETRY_DELAY)

        self._force_install(name)

    def install_packages(self, names: Iterable[str]) -> None:
        """Install packages in order, stopping at the first fatal error."""
        for name in names:
            self.install_package(name)

    def _force_install(self, name: str) -> None:
        self._log.log(f"Final attempt with force options for {name}...", "🚨")
        result = self._runner.run_shell(
            f"DEBIAN_FRONTEND=noninteractive apt-get install -y --fix-broken {name}",
            IGNORE_ERRORS,
        )
        if result.success:
            self._log.success(f"{name} installed with force")
            return

        self._log.error(f"Complete failure installing {name}")
        raise InstallFailedError(name, result.output)
