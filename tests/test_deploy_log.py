"""
Tests for the deploy log — console echo, file lines, degradation.
"""

import io
import re
import stat
import sys
from pathlib import Path

from mautic_deploy.core.observability.deploy_log import (
    EMOJI_ERROR,
    EMOJI_INFO,
    EMOJI_SUCCESS,
    EMOJI_WARNING,
    DeployLog,
    FileSink,
    LogSink,
    NullSink,
    init_deploy_log,
)

_LINE_RE = re.compile(r"^\[\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}[^\]]*\] (.+)$")


class _BrokenSink(LogSink):
    def write_line(self, line: str) -> None:
        raise OSError("disk full")


class _ClosedStdout(io.StringIO):
    def write(self, s):
        raise BrokenPipeError(32, "Broken pipe")


class TestInitDeployLog:
    def test_creates_empty_private_file(self, tmp_path: Path):
        path = tmp_path / "logs" / "setup-dc.log"
        log = init_deploy_log(path)
        assert log.path == path
        assert path.read_text() == ""
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_truncates_existing_file(self, tmp_path: Path):
        path = tmp_path / "setup-dc.log"
        path.write_text("old run\n")
        init_deploy_log(path)
        assert path.read_text() == ""

    def test_falls_back_when_directory_unavailable(self, tmp_path: Path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        fallback = tmp_path / "fallback.log"

        log = init_deploy_log(blocker / "sub" / "setup-dc.log", fallback=fallback)

        assert log.path == fallback
        assert fallback.exists()

    def test_console_only_when_file_unwritable(self, tmp_path: Path, capsys):
        directory = tmp_path / "is-a-directory"
        directory.mkdir()

        log = init_deploy_log(directory)

        assert log.path is None
        assert isinstance(log.sink, NullSink)
        assert "console-only" in capsys.readouterr().err

        log.success("still printed")
        assert "✅ still printed" in capsys.readouterr().out


class TestDeployLog:
    def test_console_and_file(self, deploy_log: DeployLog, log_path: Path, capsys):
        deploy_log.log("Installing nginx...", "📦")

        assert capsys.readouterr().out == "📦 Installing nginx...\n"
        lines = log_path.read_text().splitlines()
        assert len(lines) == 1
        match = _LINE_RE.match(lines[0])
        assert match
        assert match.group(1) == "📦 Installing nginx..."

    def test_default_emoji(self, deploy_log: DeployLog, capsys):
        deploy_log.log("plain")
        assert capsys.readouterr().out == "📋 plain\n"

    def test_severity_wrappers(self, deploy_log: DeployLog, log_path: Path, capsys):
        deploy_log.error("e")
        deploy_log.success("s")
        deploy_log.info("i")
        deploy_log.warning("w")
        assert capsys.readouterr().out.splitlines() == [
            f"{EMOJI_ERROR} e",
            f"{EMOJI_SUCCESS} s",
            f"{EMOJI_INFO} i",
            f"{EMOJI_WARNING} w",
        ]
        assert len(log_path.read_text().splitlines()) == 4

    def test_appends(self, deploy_log: DeployLog, log_path: Path):
        for i in range(3):
            deploy_log.info(f"line {i}")
        lines = log_path.read_text().splitlines()
        assert [line.rsplit(" ", 1)[-1] for line in lines] == ["0", "1", "2"]

    def test_write_errors_are_swallowed(self, capsys):
        log = DeployLog(_BrokenSink())
        log.error("boom")
        assert "❌ boom" in capsys.readouterr().out

    def test_console_errors_are_swallowed(
        self, deploy_log: DeployLog, log_path: Path, monkeypatch
    ):
        monkeypatch.setattr(sys, "stdout", _ClosedStdout())
        deploy_log.warning("apt locks held")
        assert log_path.read_text().rstrip().endswith(f"{EMOJI_WARNING} apt locks held")

    def test_missing_file_directory_is_swallowed(self, tmp_path: Path):
        log = DeployLog(FileSink(tmp_path / "gone" / "x.log"))
        log.info("nowhere to go")

    def test_default_is_console_only(self):
        assert DeployLog().path is None
