"""
Mock runner — scripted test double for command execution.

Used by tests and by ``--dry-run`` to exercise services without
touching the host. Responses are matched by substring against the
command text; unmatched commands get the default exit code.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from mautic_deploy.adapters.base import CommandRunner
from mautic_deploy.core.models.command import CommandOptions, CommandResult


@dataclass
class _Rule:
    pattern: str
    results: list[CommandResult] = field(default_factory=list)
    fault: Exception | None = None
    exact: bool = False
    hits: int = 0

    def matches(self, text: str) -> bool:
        return text == self.pattern if self.exact else self.pattern in text

    def next_result(self) -> CommandResult:
        # Play results in order, then keep repeating the last one
        index = min(self.hits, len(self.results) - 1)
        self.hits += 1
        return self.results[index]


class MockCommandRunner(CommandRunner):
    """Universal mock runner for testing.

    By default every command exits with ``default_exit_code``. Rules
    registered later take precedence over earlier ones.
    """

    def __init__(self, default_exit_code: int = 0, default_output: str = ""):
        self._default = CommandResult.from_exit(default_exit_code, default_output)
        self._rules: list[_Rule] = []
        self._call_log: list[list[str]] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_log(self) -> list[list[str]]:
        """Every command vector this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def commands(self) -> list[str]:
        """Command text for every call (the script for ``bash -c``)."""
        return [_command_text(cmd) for cmd in self._call_log]

    def count(self, pattern: str) -> int:
        """Number of calls whose command text contains ``pattern``."""
        return sum(1 for text in self.commands if pattern in text)

    def set_response(
        self,
        pattern: str,
        *results: CommandResult,
        exact: bool = False,
    ) -> None:
        """Answer commands containing ``pattern`` with ``results`` in order.

        With ``exact=True`` the whole command text must equal ``pattern``.
        """
        if not results:
            raise ValueError("set_response needs at least one result")
        self._rules.append(_Rule(pattern=pattern, results=list(results), exact=exact))

    def set_exit(
        self,
        pattern: str,
        *exit_codes: int,
        output: str = "",
        exact: bool = False,
    ) -> None:
        """Shorthand for ``set_response`` with plain exit codes."""
        self.set_response(
            pattern,
            *(CommandResult.from_exit(code, output) for code in exit_codes),
            exact=exact,
        )

    def set_fault(self, pattern: str, error: Exception) -> None:
        """Make commands containing ``pattern`` fail to execute."""
        self._rules.append(_Rule(pattern=pattern, fault=error))

    def reset(self) -> None:
        self._rules.clear()
        self._call_log.clear()

    def _execute(self, cmd: list[str], options: CommandOptions) -> CommandResult:
        self._call_log.append(cmd)
        text = _command_text(cmd)

        for rule in reversed(self._rules):
            if not rule.matches(text):
                continue
            if rule.fault is not None:
                if options.ignore_error:
                    return CommandResult.fault(str(rule.fault))
                raise rule.fault
            return rule.next_result()

        return self._default


def _command_text(cmd: list[str]) -> str:
    if len(cmd) == 3 and cmd[0] == "bash" and cmd[1] == "-c":
        return cmd[2]
    return " ".join(cmd)
