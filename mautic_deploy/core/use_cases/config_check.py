"""
Config check use case — validate deploy.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from mautic_deploy.core.config.loader import ConfigError, find_config_file, load_config
from mautic_deploy.core.models.deployment import DeploymentConfig


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: DeploymentConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "domain_name": self.config.domain_name if self.config else None,
            "port": self.config.port if self.config else None,
            "packages": self.config.packages if self.config else [],
        }


def check_config(
    config_path: Path | None = None,
    environ: dict[str, str] | None = None,
) -> ConfigCheckResult:
    """Validate deployment configuration and report issues.

    Args:
        config_path: Optional explicit path to deploy.yml.
        environ: Environment used for overrides (default: os.environ).

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult()
    result.config_path = config_path or find_config_file()

    try:
        config = load_config(config_path, environ=environ)
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    result.config = config

    if result.config_path is None:
        result.warnings.append("No deploy.yml found, using defaults and environment.")

    # Semantic checks
    if config.domain_name:
        if not config.email_address:
            result.errors.append("email_address is required when domain_name is set (certbot).")
        for needed in ("nginx", "certbot", "python3-certbot-nginx"):
            if needed not in config.packages:
                result.warnings.append(f"SSL needs '{needed}' but it is not in packages.")
    else:
        result.warnings.append("No domain_name set. SSL setup will be skipped.")

    if not config.packages:
        result.warnings.append("No packages listed. Nothing will be installed.")

    dupes = sorted({p for p in config.packages if config.packages.count(p) > 1})
    if dupes:
        result.warnings.append(f"Duplicate packages: {', '.join(dupes)}")

    result.valid = not result.errors
    return result
