"""Observability — diagnostic logging setup and the deploy log."""

from mautic_deploy.core.observability.deploy_log import (
    DeployLog,
    FileSink,
    LogSink,
    NullSink,
    init_deploy_log,
)
from mautic_deploy.core.observability.logging_config import setup_logging

__all__ = [
    "DeployLog",
    "FileSink",
    "LogSink",
    "NullSink",
    "init_deploy_log",
    "setup_logging",
]
