"""
Command models — the execution contract.

Options describe how a command should be run. Results describe what
happened. Expected failures (lock not held, package missing) come back
as a result with ``success=False``, never as exceptions.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CommandOptions(BaseModel):
    """How to run a single command.

    ``ignore_error`` only controls whether an execution fault (binary
    missing, timeout, OS error) is converted into a failed result.
    A non-zero exit status is always reported as a result.
    """

    model_config = ConfigDict(frozen=True)

    cwd: str | None = None                         # working directory override
    ignore_error: bool = False
    timeout: float | None = None                   # seconds, None = no limit
    env: dict[str, str] = Field(default_factory=dict)


class CommandResult(BaseModel):
    """Outcome of one command execution.

    ``success`` is true iff the process exited with status zero.
    ``output`` is stdout followed by stderr, trimmed.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    output: str = ""
    exit_code: int = 0

    @property
    def failed(self) -> bool:
        return not self.success

    @classmethod
    def from_exit(cls, exit_code: int, output: str = "") -> CommandResult:
        """Build a result from a process exit status."""
        return cls(success=exit_code == 0, output=output.strip(), exit_code=exit_code)

    @classmethod
    def fault(cls, description: str) -> CommandResult:
        """Result for an invocation that could not be started or completed."""
        return cls(success=False, output=description, exit_code=-1)


# Shared option set for probes and best-effort commands
IGNORE_ERRORS = CommandOptions(ignore_error=True)
