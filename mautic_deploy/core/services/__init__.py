"""Services — apt lock waiting, package installation, SSL provisioning."""

from mautic_deploy.core.services.apt_locks import LOCK_FILES, LockWaiter, LockWaitOutcome
from mautic_deploy.core.services.packages import (
    InstallFailedError,
    PackageInstaller,
    UpdateFailedError,
)
from mautic_deploy.core.services.ssl_setup import NginxConfigInvalidError, SSLProvisioner

__all__ = [
    "LOCK_FILES",
    "InstallFailedError",
    "LockWaitOutcome",
    "LockWaiter",
    "NginxConfigInvalidError",
    "PackageInstaller",
    "SSLProvisioner",
    "UpdateFailedError",
]
