"""
Deploy use case — provision the host end to end.

Order matters: wait for apt to settle, refresh the index, install the
required packages (Nginx and certbot among them), then set up SSL.
A fatal error stops the run and is recorded on the result; an SSL
soft failure only marks ``ssl_ok`` False.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from mautic_deploy.adapters.base import CommandRunner, InvalidArgumentError
from mautic_deploy.core.models.deployment import DeploymentConfig
from mautic_deploy.core.observability.deploy_log import DeployLog
from mautic_deploy.core.services.apt_locks import LockWaiter
from mautic_deploy.core.services.packages import (
    InstallFailedError,
    PackageInstaller,
    UpdateFailedError,
)
from mautic_deploy.core.services.ssl_setup import NginxConfigInvalidError, SSLProvisioner

logger = logging.getLogger(__name__)

FATAL_ERRORS = (
    InvalidArgumentError,
    UpdateFailedError,
    InstallFailedError,
    NginxConfigInvalidError,
)


@dataclass
class DeployResult:
    """Result of a deployment run."""

    updated: bool = False
    installed: list[str] = field(default_factory=list)
    ssl_ok: bool | None = None      # None = SSL step not reached
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "updated": self.updated,
            "installed": self.installed,
            "ssl_ok": self.ssl_ok,
            "error": self.error,
        }


def run_deploy(
    config: DeploymentConfig,
    runner: CommandRunner,
    log: DeployLog,
    sleep: Callable[[float], None] = time.sleep,
    skip_ssl: bool = False,
) -> DeployResult:
    """Provision packages and SSL for the configured deployment.

    With ``skip_ssl`` the SSL step is announced but not run, leaving
    ``ssl_ok`` as None.
    """
    result = DeployResult()
    waiter = LockWaiter(runner, log, sleep=sleep)
    installer = PackageInstaller(runner, log, lock_waiter=waiter, sleep=sleep)

    try:
        waiter.wait_for_locks(config.lock_timeout)

        installer.update_packages()
        result.updated = True

        for name in config.packages:
            installer.install_package(name)
            result.installed.append(name)

        if skip_ssl:
            log.info(f"Skipping SSL setup for {config.domain_name or '(no domain)'}")
        else:
            result.ssl_ok = SSLProvisioner(config, runner, log).setup_ssl()

    except FATAL_ERRORS as e:
        log.error(f"Deployment failed: {e}")
        result.error = str(e)
        return result

    if result.ssl_ok:
        log.success("Deployment completed")
    else:
        log.warning("Deployment completed without SSL")

    logger.info("Deploy result: %s", result.to_dict())
    return result
