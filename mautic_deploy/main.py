"""
Mautic deploy — CLI entrypoint.

Usage:
    mautic-deploy --help
    mautic-deploy deploy
    mautic-deploy install nginx certbot
    mautic-deploy --dry-run deploy
    mautic-deploy config check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from mautic_deploy import __version__
from mautic_deploy.core.observability.logging_config import (
    ENV_LOG_FILE,
    ENV_LOG_FILE_LEVEL,
    resolve_level,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="mautic-deploy")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to deploy.yml (default: auto-detect).",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Print the commands that would run instead of running them.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    dry_run: bool,
) -> None:
    """Mautic deploy — provision packages, Nginx and SSL on a Debian host."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    ctx.obj["dry_run"] = dry_run

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(ENV_LOG_FILE),
        log_file_level=os.environ.get(ENV_LOG_FILE_LEVEL),
    )


# ── Wiring ──────────────────────────────────────────────────────


class _Context:
    """Everything a command needs: config, runner, deploy log, sleep."""

    def __init__(self, ctx: click.Context):
        from mautic_deploy.adapters.mock import MockCommandRunner
        from mautic_deploy.adapters.shell.command import ShellCommandRunner
        from mautic_deploy.core.config.loader import ConfigError, load_config
        from mautic_deploy.core.observability.deploy_log import DeployLog, init_deploy_log

        try:
            self.config = load_config(ctx.obj.get("config_path"))
        except ConfigError as e:
            click.secho(f"❌ {e}", fg="red")
            sys.exit(1)

        self.dry_run = ctx.obj.get("dry_run", False)
        if self.dry_run:
            mock = MockCommandRunner(default_exit_code=0)
            # Probes report "not locked" / "not installed" so every step shows
            mock.set_exit("fuser ", 1)
            mock.set_exit("pgrep ", 1)
            mock.set_exit("dpkg -l", 1)
            self.runner = mock
            self.log = DeployLog()
            self.sleep = lambda seconds: None
        else:
            self.runner = ShellCommandRunner()
            self.log = init_deploy_log(self.config.log_file)
            self.sleep = None

    def sleep_kwargs(self) -> dict:
        return {"sleep": self.sleep} if self.sleep else {}

    def report_dry_run(self) -> None:
        if not self.dry_run:
            return
        click.echo()
        click.secho("Commands that would run:", fg="cyan", bold=True)
        for command in self.runner.commands:
            click.echo(f"   $ {command}")


def _fail(message: str) -> None:
    click.secho(f"❌ {message}", fg="red")
    sys.exit(1)


# ── Commands ────────────────────────────────────────────────────


@cli.command()
@click.option(
    "--timeout",
    type=click.IntRange(min=0),
    default=None,
    help="Seconds to wait before forcing the locks (default: lock_timeout).",
)
@click.pass_context
def locks(ctx: click.Context, timeout: int | None) -> None:
    """Wait until apt/dpkg locks are free."""
    from mautic_deploy.core.services.apt_locks import LockWaiter

    env = _Context(ctx)
    waiter = LockWaiter(env.runner, env.log, **env.sleep_kwargs())
    waiter.wait_for_locks(timeout if timeout is not None else env.config.lock_timeout)
    env.report_dry_run()


@cli.command()
@click.pass_context
def update(ctx: click.Context) -> None:
    """Refresh the apt package index."""
    from mautic_deploy.core.services.packages import PackageInstaller, UpdateFailedError

    env = _Context(ctx)
    try:
        PackageInstaller(env.runner, env.log, **env.sleep_kwargs()).update_packages()
    except UpdateFailedError:
        sys.exit(1)
    env.report_dry_run()


@cli.command()
@click.argument("packages", nargs=-1, required=True)
@click.pass_context
def install(ctx: click.Context, packages: tuple[str, ...]) -> None:
    """Install one or more apt packages (skips installed ones)."""
    from mautic_deploy.adapters.base import InvalidArgumentError
    from mautic_deploy.core.services.packages import InstallFailedError, PackageInstaller

    env = _Context(ctx)
    try:
        PackageInstaller(env.runner, env.log, **env.sleep_kwargs()).install_packages(packages)
    except (InstallFailedError, InvalidArgumentError):
        sys.exit(1)
    env.report_dry_run()


@cli.command()
@click.pass_context
def ssl(ctx: click.Context) -> None:
    """Configure Nginx for the domain and request a certificate.

    A failed certificate request is reported but does not fail the
    command; an invalid Nginx configuration does.
    """
    from mautic_deploy.core.services.ssl_setup import NginxConfigInvalidError, SSLProvisioner

    env = _Context(ctx)
    if env.dry_run and env.config.domain_name:
        _fail("--dry-run cannot preview ssl: it writes the Nginx site file")

    try:
        SSLProvisioner(env.config, env.runner, env.log).setup_ssl()
    except NginxConfigInvalidError:
        sys.exit(1)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def deploy(ctx: click.Context, as_json: bool) -> None:
    """Wait for apt, update, install packages and set up SSL."""
    from mautic_deploy.core.use_cases.deploy import run_deploy

    env = _Context(ctx)
    # The Nginx site file is real I/O; preview everything up to it
    skip_ssl = env.dry_run and bool(env.config.domain_name)

    result = run_deploy(env.config, env.runner, env.log, skip_ssl=skip_ssl, **env.sleep_kwargs())

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        env.report_dry_run()

    if not result.ok:
        sys.exit(1)


@cli.group()
def config() -> None:
    """Deployment configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate deploy.yml and environment overrides."""
    from mautic_deploy.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.config is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Domain: {result.config.domain_name or '(none, SSL skipped)'}")
        click.echo(f"   Port: {result.config.port}")
        click.echo(f"   Packages: {', '.join(result.config.packages) or '(none)'}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        sys.exit(1)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
