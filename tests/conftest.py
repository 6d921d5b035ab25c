"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from mautic_deploy.adapters.mock import MockCommandRunner
from mautic_deploy.core.models.deployment import DeploymentConfig, NginxPaths
from mautic_deploy.core.observability.deploy_log import DeployLog, FileSink


class RecordingSleep:
    """Stand-in for time.sleep that records requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.calls)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def runner() -> MockCommandRunner:
    """Mock runner where every unscripted command fails (exit 1).

    Failing probes mean "not locked" and "not installed".
    """
    return MockCommandRunner(default_exit_code=1)


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    path = tmp_path / "setup-dc.log"
    path.write_text("")
    return path


@pytest.fixture
def deploy_log(log_path: Path) -> DeployLog:
    return DeployLog(FileSink(log_path))


@pytest.fixture
def nginx_dirs(tmp_path: Path) -> NginxPaths:
    available = tmp_path / "sites-available"
    enabled = tmp_path / "sites-enabled"
    available.mkdir()
    enabled.mkdir()
    return NginxPaths(sites_available=str(available), sites_enabled=str(enabled))


@pytest.fixture
def ssl_config(nginx_dirs: NginxPaths) -> DeploymentConfig:
    return DeploymentConfig(
        domain_name="example.com",
        email_address="a@example.com",
        port=8080,
        nginx=nginx_dirs,
    )
