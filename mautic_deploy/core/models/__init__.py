"""
Domain models — Pydantic types for the deployment toolkit.

    from mautic_deploy.core.models import CommandResult, DeploymentConfig
"""

from mautic_deploy.core.models.command import IGNORE_ERRORS, CommandOptions, CommandResult
from mautic_deploy.core.models.deployment import (
    DEFAULT_PACKAGES,
    DeploymentConfig,
    NginxPaths,
)

__all__ = [
    # command.py
    "CommandOptions",
    "CommandResult",
    "IGNORE_ERRORS",
    # deployment.py
    "DEFAULT_PACKAGES",
    "DeploymentConfig",
    "NginxPaths",
]
