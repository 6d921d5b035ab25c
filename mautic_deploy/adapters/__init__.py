"""Adapters — command execution bindings.

Public re-exports for convenient access.
"""

from mautic_deploy.adapters.base import CommandRunner, InvalidArgumentError
from mautic_deploy.adapters.mock import MockCommandRunner
from mautic_deploy.adapters.shell.command import ShellCommandRunner

__all__ = [
    "CommandRunner",
    "InvalidArgumentError",
    "MockCommandRunner",
    "ShellCommandRunner",
]
