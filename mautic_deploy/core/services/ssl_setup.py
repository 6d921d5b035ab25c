"""
SSL provisioning — Nginx reverse proxy plus a Let's Encrypt certificate.

SSL is optional: without a domain nothing happens. With a domain the
Nginx site is written, enabled, validated and reloaded, then certbot
is asked for a certificate and to rewrite the site for HTTPS.

Only an invalid Nginx configuration is fatal. A certificate that
cannot be issued (DNS not pointing here yet, rate limits) leaves the
site on plain HTTP and ``setup_ssl`` returns False.
"""

from __future__ import annotations

import logging
import shlex
import textwrap
from pathlib import Path

from mautic_deploy.adapters.base import CommandRunner
from mautic_deploy.core.models.command import IGNORE_ERRORS
from mautic_deploy.core.models.deployment import DeploymentConfig
from mautic_deploy.core.observability.deploy_log import DeployLog

logger = logging.getLogger(__name__)


class NginxConfigInvalidError(Exception):
    """Raised when ``nginx -t`` rejects the generated configuration."""

    def __init__(self, output: str = ""):
        self.output = output
        super().__init__(f"Nginx configuration test failed: {output}")


def render_site_config(domain: str, port: int) -> str:
    """Render the reverse-proxy server block for ``domain``."""
    return textwrap.dedent(f"""\
        server {{
            listen 80;
            server_name {domain};

            location / {{
                proxy_pass http://localhost:{port};
                proxy_set_header Host $host;
                proxy_set_header X-Real-IP $remote_addr;
                proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;
                proxy_set_header X-Forwarded-Proto $scheme;
            }}
        }}
    """)


class SSLProvisioner:
    """Configure Nginx for the deployment and obtain a certificate."""

    def __init__(self, config: DeploymentConfig, runner: CommandRunner, log: DeployLog):
        self.config = config
        self._runner = runner
        self._log = log

    @property
    def site_path(self) -> Path:
        return Path(self.config.nginx.sites_available) / str(self.config.domain_name)

    def setup_ssl(self) -> bool:
        """Run the whole SSL sequence.

        Returns:
            True if SSL is set up (or not wanted), False if the
            certificate failed or something unexpected went wrong.

        Raises:
            NginxConfigInvalidError: If Nginx rejects the configuration.
        """
        if not self.config.domain_name:
            self._log.info("No domain specified, skipping SSL setup")
            return True

        self._log.log(f"Setting up SSL for domain: {self.config.domain_name}", "🔒")

        try:
            self.setup_nginx()

            if not self.generate_certificate():
                self._log.warning("SSL certificate generation failed, but continuing...")
                return False

        except NginxConfigInvalidError:
            raise
        except Exception as e:
            logger.debug("SSL setup failed", exc_info=True)
            self._log.error(f"SSL setup failed: {e}")
            return False

        self._log.success("SSL setup completed successfully")
        return True

    def setup_nginx(self) -> None:
        """Write, enable, validate and reload the Nginx site."""
        self._log.log("Configuring Nginx...", "🌐")

        site = self.site_path
        site.write_text(
            render_site_config(str(self.config.domain_name), self.config.port),
            encoding="utf-8",
        )
        logger.debug("Wrote Nginx site %s", site)

        enabled_dir = self.config.nginx.sites_enabled.rstrip("/") + "/"
        self._runner.run_shell(f"ln -sf {shlex.quote(str(site))} {shlex.quote(enabled_dir)}")

        test = self._runner.run_shell("nginx -t", IGNORE_ERRORS)
        if not test.success:
            self._log.error(f"Nginx configuration test failed: {test.output}")
            raise NginxConfigInvalidError(test.output)

        reload = self._runner.run_shell("systemctl reload nginx")
        if reload.failed:
            self._log.warning(f"Nginx reload reported a problem: {reload.output}")
        self._log.success("Nginx configured successfully")

    def generate_certificate(self) -> bool:
        """Ask certbot for a certificate and HTTPS redirect."""
        self._log.log("Generating SSL certificate...", "🔐")

        domain = shlex.quote(str(self.config.domain_name))
        email = shlex.quote(self.config.email_address)
        result = self._runner.run_shell(
            f"certbot --nginx -d {domain} --non-interactive --agree-tos "
            f"--email {email} --redirect",
            IGNORE_ERRORS,
        )

        if result.success:
            self._log.success("SSL certificate generated successfully")
            return True

        self._log.error(f"Certbot failed: {result.output}")
        return False
