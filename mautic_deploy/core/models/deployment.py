"""
Deployment model — what is being deployed and where.

Loaded from deploy.yml (plus environment overrides). Services treat
it as read-only input.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator

DEFAULT_PACKAGES = ["nginx", "certbot", "python3-certbot-nginx"]

_HOSTNAME_RE = re.compile(
    r"^(?=.{1,253}$)([a-z0-9]([a-z0-9\-]{0,61}[a-z0-9])?)(\.[a-z0-9]([a-z0-9\-]{0,61}[a-z0-9])?)*$"
)


class NginxPaths(BaseModel):
    """Where Nginx site definitions live on the host."""

    sites_available: str = "/etc/nginx/sites-available"
    sites_enabled: str = "/etc/nginx/sites-enabled"


class DeploymentConfig(BaseModel):
    """Deployment settings consumed by the installer and SSL services."""

    domain_name: str | None = None
    email_address: str = ""
    port: int = 8080

    packages: list[str] = Field(default_factory=lambda: list(DEFAULT_PACKAGES))
    nginx: NginxPaths = Field(default_factory=NginxPaths)
    log_file: str | None = None
    lock_timeout: int = 600

    @field_validator("domain_name")
    @classmethod
    def _valid_domain(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        value = value.strip().lower()
        if not _HOSTNAME_RE.match(value):
            raise ValueError(f"invalid domain name: {value!r}")
        return value

    @field_validator("port")
    @classmethod
    def _port_in_range(cls, value: int) -> int:
        if not 1 <= value <= 65535:
            raise ValueError(f"port must be between 1 and 65535, got {value}")
        return value

    @field_validator("lock_timeout")
    @classmethod
    def _timeout_not_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("lock_timeout cannot be negative")
        return value

    @property
    def ssl_enabled(self) -> bool:
        """SSL is optional: it only runs when a domain is configured."""
        return bool(self.domain_name)
