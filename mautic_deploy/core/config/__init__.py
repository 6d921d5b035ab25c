"""Configuration — deploy.yml loading with environment overrides."""

from mautic_deploy.core.config.loader import ConfigError, find_config_file, load_config

__all__ = ["ConfigError", "find_config_file", "load_config"]
