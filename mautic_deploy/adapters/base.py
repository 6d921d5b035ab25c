"""
Runner base — the contract between services and process execution.

Services never call ``subprocess`` directly. They hand a command
vector to a CommandRunner and inspect the CommandResult that comes
back. Swapping the runner (real shell, mock) changes nothing else.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from mautic_deploy.core.models.command import CommandOptions, CommandResult


class InvalidArgumentError(ValueError):
    """Raised when a runner is handed a malformed command vector."""


class CommandRunner(ABC):
    """Abstract base class for command runners.

    To create a new runner:
        1. Subclass CommandRunner
        2. Implement name and _execute
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The runner identifier (e.g., 'shell', 'mock')."""

    def run(
        self,
        cmd: Sequence[str],
        options: CommandOptions | None = None,
    ) -> CommandResult:
        """Run a program with arguments and return its result.

        Raises:
            InvalidArgumentError: If ``cmd`` is empty or its program
                name is empty, regardless of ``options``.
        """
        if not cmd or not cmd[0]:
            raise InvalidArgumentError("Command cannot be empty")
        return self._execute(list(cmd), options or CommandOptions())

    def run_shell(
        self,
        command: str,
        options: CommandOptions | None = None,
    ) -> CommandResult:
        """Run a command string through ``bash -c``."""
        return self.run(["bash", "-c", command], options)

    @abstractmethod
    def _execute(self, cmd: list[str], options: CommandOptions) -> CommandResult:
        """Execute a validated command vector.

        Faults propagate unless ``options.ignore_error`` is set, in
        which case they come back as ``CommandResult.fault(...)``.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
