"""Shell adapters — real process execution."""

from mautic_deploy.adapters.shell.command import ShellCommandRunner

__all__ = ["ShellCommandRunner"]
