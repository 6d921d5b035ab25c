"""
Tests for configuration loading — deploy.yml parsing, overrides, checks.
"""

import textwrap
from pathlib import Path

import pytest

from mautic_deploy.core.config.loader import ConfigError, find_config_file, load_config
from mautic_deploy.core.models.deployment import DEFAULT_PACKAGES
from mautic_deploy.core.use_cases.config_check import check_config


@pytest.fixture
def flat_deploy_yml(tmp_path: Path) -> Path:
    content = textwrap.dedent("""\
        domain_name: mautic.example.com
        email_address: ops@example.com
        port: 8081
        packages:
          - nginx
          - certbot
          - python3-certbot-nginx
          - php8.2-fpm
        nginx:
          sites_available: /srv/nginx/available
        lock_timeout: 300
    """)
    path = tmp_path / "deploy.yml"
    path.write_text(content)
    return path


@pytest.fixture
def wrapped_deploy_yml(tmp_path: Path) -> Path:
    content = textwrap.dedent("""\
        deployment:
          domain_name: wrapped.example.com
          email_address: ops@example.com
    """)
    path = tmp_path / "deploy.yml"
    path.write_text(content)
    return path


class TestLoadConfig:
    def test_flat(self, flat_deploy_yml: Path):
        config = load_config(flat_deploy_yml, environ={})
        assert config.domain_name == "mautic.example.com"
        assert config.port == 8081
        assert config.packages[-1] == "php8.2-fpm"
        assert config.nginx.sites_available == "/srv/nginx/available"
        assert config.nginx.sites_enabled == "/etc/nginx/sites-enabled"
        assert config.lock_timeout == 300

    def test_wrapped(self, wrapped_deploy_yml: Path):
        config = load_config(wrapped_deploy_yml, environ={})
        assert config.domain_name == "wrapped.example.com"
        assert config.packages == DEFAULT_PACKAGES
        assert config.port == 8080

    def test_env_overrides(self, flat_deploy_yml: Path):
        config = load_config(
            flat_deploy_yml,
            environ={"MAUTIC_DOMAIN": "other.example.com", "MAUTIC_PORT": "9000"},
        )
        assert config.domain_name == "other.example.com"
        assert config.port == 9000
        assert config.email_address == "ops@example.com"

    def test_empty_env_values_ignored(self, flat_deploy_yml: Path):
        config = load_config(flat_deploy_yml, environ={"MAUTIC_DOMAIN": ""})
        assert config.domain_name == "mautic.example.com"

    def test_no_file_uses_defaults(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = load_config(environ={"MAUTIC_EMAIL": "x@example.com"})
        assert config.domain_name is None
        assert config.email_address == "x@example.com"
        assert not config.ssl_enabled

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "deploy.yml"
        path.write_text("")
        assert load_config(path, environ={}).port == 8080

    def test_missing_explicit_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yml", environ={})

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "deploy.yml"
        path.write_text("domain_name: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path, environ={})

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "deploy.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_config(path, environ={})

    def test_invalid_port(self, flat_deploy_yml: Path):
        with pytest.raises(ConfigError, match="port"):
            load_config(flat_deploy_yml, environ={"MAUTIC_PORT": "70000"})

    def test_invalid_domain(self, flat_deploy_yml: Path):
        with pytest.raises(ConfigError):
            load_config(flat_deploy_yml, environ={"MAUTIC_DOMAIN": "example.com; reboot"})


class TestFindConfigFile:
    def test_walks_up(self, flat_deploy_yml: Path):
        nested = flat_deploy_yml.parent / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == flat_deploy_yml.resolve()

    def test_not_found(self, tmp_path: Path):
        start = tmp_path / "empty"
        start.mkdir()
        assert find_config_file(start) is None


class TestCheckConfig:
    def test_valid(self, flat_deploy_yml: Path):
        result = check_config(flat_deploy_yml, environ={})
        assert result.valid
        assert result.errors == []
        assert result.to_dict()["domain_name"] == "mautic.example.com"

    def test_domain_without_email(self, tmp_path: Path):
        path = tmp_path / "deploy.yml"
        path.write_text("domain_name: example.com\n")
        result = check_config(path, environ={})
        assert not result.valid
        assert any("email_address" in e for e in result.errors)

    def test_no_domain_warns(self, tmp_path: Path):
        path = tmp_path / "deploy.yml"
        path.write_text("port: 8080\n")
        result = check_config(path, environ={})
        assert result.valid
        assert any("SSL setup will be skipped" in w for w in result.warnings)

    def test_missing_ssl_packages_warn(self, tmp_path: Path):
        path = tmp_path / "deploy.yml"
        path.write_text(textwrap.dedent("""\
            domain_name: example.com
            email_address: a@example.com
            packages: [nginx, nginx]
        """))
        result = check_config(path, environ={})
        assert result.valid
        assert any("certbot" in w for w in result.warnings)
        assert any("Duplicate packages: nginx" in w for w in result.warnings)

    def test_load_error(self, tmp_path: Path):
        path = tmp_path / "deploy.yml"
        path.write_text("port: not-a-number\n")
        result = check_config(path, environ={})
        assert not result.valid
        assert result.errors
        assert result.to_dict()["packages"] == []
