"""
Configuration loader — reads deploy.yml into a DeploymentConfig.

The file is optional: without one, defaults apply. Environment
variables override whatever the file says, so a one-off run can be
pointed at a different domain without editing anything:

    MAUTIC_DOMAIN   domain_name
    MAUTIC_EMAIL    email_address
    MAUTIC_PORT     port
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from mautic_deploy.core.models.deployment import DeploymentConfig

logger = logging.getLogger(__name__)

DEPLOY_CONFIG_FILE = "deploy.yml"

_ENV_OVERRIDES = {
    "MAUTIC_DOMAIN": "domain_name",
    "MAUTIC_EMAIL": "email_address",
    "MAUTIC_PORT": "port",
}


class ConfigError(Exception):
    """Raised when deployment configuration is invalid or unreadable."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for deploy.yml starting from the given directory, walking up.

    Returns:
        Path to deploy.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / DEPLOY_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_config(
    path: Path | None = None,
    environ: dict[str, str] | None = None,
) -> DeploymentConfig:
    """Load and validate deployment configuration.

    Args:
        path: Explicit path to deploy.yml. If None, searches upward;
            if nothing is found, defaults are used.
        environ: Environment to read overrides from (default: os.environ).

    Returns:
        Validated DeploymentConfig.

    Raises:
        ConfigError: If an explicit file is missing, or the file or
            overrides are invalid.
    """
    environ = os.environ if environ is None else environ
    data: dict = {}

    if path is None:
        path = find_config_file()
    elif not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    if path is not None:
        data = _read_yaml(path)

    # The YAML may wrap everything under a "deployment" key or be flat
    if isinstance(data.get("deployment"), dict):
        data = dict(data["deployment"])

    for env_key, field_name in _ENV_OVERRIDES.items():
        value = environ.get(env_key)
        if value:
            data[field_name] = value

    try:
        config = DeploymentConfig.model_validate(data)
    except ValidationError as e:
        source = path or "environment"
        raise ConfigError(f"Invalid deployment configuration ({source}): {e}") from e

    logger.info(
        "Loaded deployment config: domain=%s port=%d packages=%d",
        config.domain_name,
        config.port,
        len(config.packages),
    )
    return config


def _read_yaml(path: Path) -> dict:
    logger.debug("Loading deployment config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data
