"""
Deploy log — the operator-facing progress trail.

Every message is echoed to the console as ``<emoji> <message>`` and,
when a log file could be prepared, appended to it as
``[<ISO-8601 timestamp>] <emoji> <message>``.

Nothing in here raises. A log file that cannot be created degrades to
console-only output; a line that cannot be written is dropped.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from pathlib import Path

import click

logger = logging.getLogger(__name__)

DEFAULT_LOG_FILE = Path("/var/log/setup-dc.log")
FALLBACK_LOG_FILE = Path("setup-dc.log")

EMOJI_DEFAULT = "📋"
EMOJI_ERROR = "❌"
EMOJI_SUCCESS = "✅"
EMOJI_INFO = "ℹ️"
EMOJI_WARNING = "⚠️"


# ── Sinks ───────────────────────────────────────────────────────


class LogSink(ABC):
    """Destination for timestamped log lines."""

    @abstractmethod
    def write_line(self, line: str) -> None:
        """Persist one line. May raise; the caller swallows errors."""


class FileSink(LogSink):
    """Append-only file sink."""

    def __init__(self, path: Path):
        self.path = path

    def write_line(self, line: str) -> None:
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")

    def __repr__(self) -> str:
        return f"<FileSink path={str(self.path)!r}>"


class NullSink(LogSink):
    """Console-only mode: lines are discarded."""

    def write_line(self, line: str) -> None:
        return None


# ── Deploy log ──────────────────────────────────────────────────


class DeployLog:
    """Logging context handed to every service at construction."""

    def __init__(self, sink: LogSink | None = None):
        self.sink = sink or NullSink()

    @property
    def path(self) -> Path | None:
        """Backing log file, or None in console-only mode."""
        return self.sink.path if isinstance(self.sink, FileSink) else None

    def log(self, message: str, emoji: str = EMOJI_DEFAULT) -> None:
        line = f"{emoji} {message}"
        try:
            click.echo(line)
        except OSError as e:
            logger.debug("Dropped console line: %s", e)

        timestamp = datetime.now(UTC).isoformat()
        try:
            self.sink.write_line(f"[{timestamp}] {line}")
        except Exception as e:
            logger.debug("Dropped deploy log line: %s", e)

    def error(self, message: str) -> None:
        self.log(message, EMOJI_ERROR)

    def success(self, message: str) -> None:
        self.log(message, EMOJI_SUCCESS)

    def info(self, message: str) -> None:
        self.log(message, EMOJI_INFO)

    def warning(self, message: str) -> None:
        self.log(message, EMOJI_WARNING)


def init_deploy_log(
    path: Path | str | None = None,
    fallback: Path | str = FALLBACK_LOG_FILE,
) -> DeployLog:
    """Prepare the deploy log file and return a log bound to it.

    The log directory is created if needed; if that fails the fallback
    path (relative to the cwd) is used instead. The file is truncated
    and restricted to owner read/write. If the file still cannot be
    prepared the log runs console-only.
    """
    target = Path(path) if path else DEFAULT_LOG_FILE

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        target = Path(fallback)

    try:
        target.write_text("", encoding="utf-8")
        target.chmod(0o600)
    except OSError as e:
        click.echo(
            f"Log file initialization failed, using console-only logging: {e}",
            err=True,
        )
        return DeployLog(NullSink())

    logger.debug("Deploy log at %s", target)
    return DeployLog(FileSink(target))
