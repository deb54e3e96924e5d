"""Integration tests for configuration loading with layered precedence.

Runs the real load_config() against YAML files, environment variables
and CLI overrides: defaults < YAML < ENV < CLI.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from plumenest.infrastructure.config.load import load_config

pytestmark = pytest.mark.integration


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    """Write a sectioned YAML config and return its path."""
    config = {
        "app_name": "plumenest-test",
        "environment": "test",
        "http": {"timeout_seconds": 15.0, "user_agent": "TestAgent/1.0"},
        "logging": {"level": "DEBUG", "format": "console"},
        "cache": {"dir": str(tmp_path / "cache"), "ttl_seconds": 1800},
        "upstream": {
            "catalog_base_url": "https://catalog.example/",
            "fallback_keys": {"vidstr": "yaml-key"},
            "extraction": {
                "version": 2,
                "token_rules": [{"selector": "meta[name=_gg_fb]", "attribute": "content"}],
            },
        },
        "resolution": {"stream_ttl_seconds": 600, "browser_fallback_enabled": False},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


class TestDefaultsOnly:
    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()
        assert config.app_name == "plumenest"
        assert config.environment == "dev"
        assert config.http_timeout_seconds == 20.0
        assert config.log_format == "console"
        assert config.cache.backend == "diskcache"
        assert config.resolution.stream_ttl_seconds == 14_400
        assert config.resolution.overall_deadline_seconds == 120.0
        assert config.resolution.browser_fallback_enabled is True
        assert config.upstream.key_provider_preference == ["vidstr", "mega"]
        assert config.upstream.extraction.sources_path == "/embed-1/v3/e-1/getSources"

    def test_prod_derives_json_logs(self) -> None:
        config = load_config(cli_overrides={"environment": "prod"})
        assert config.log_format == "json"


class TestYamlOverrides:
    def test_yaml_overrides_defaults(self, yaml_config: Path, tmp_path: Path) -> None:
        config = load_config(config_path=yaml_config)
        assert config.app_name == "plumenest-test"
        assert config.http_user_agent == "TestAgent/1.0"
        assert config.log_level == "DEBUG"
        assert config.cache.directory == tmp_path / "cache"
        assert config.cache.ttl_seconds == 1800
        assert config.resolution.stream_ttl_seconds == 600
        assert config.resolution.browser_fallback_enabled is False

    def test_yaml_upstream_section(self, yaml_config: Path) -> None:
        upstream = load_config(config_path=yaml_config).upstream
        assert upstream.catalog_base_url == "https://catalog.example"
        assert upstream.fallback_keys == {"vidstr": "yaml-key"}
        assert upstream.extraction.version == 2
        assert upstream.extraction.token_rules[0].attribute == "content"
        # Untouched defaults survive the deep merge.
        assert upstream.embed_base_url == "https://videostr.net"
        assert upstream.key_provider_preference == ["vidstr", "mega"]

    def test_yaml_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "missing.yaml")

    def test_yaml_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_config(config_path=path)

    def test_invalid_embed_pattern_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text(
            yaml.dump({"upstream": {"extraction": {"embed_id_pattern": "/e-1/.+"}}}),
            encoding="utf-8",
        )
        with pytest.raises(ValidationError):
            load_config(config_path=path)


class TestEnvOverrides:
    def test_env_overrides_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PLUMENEST_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("PLUMENEST_STREAM_TTL_SECONDS", "900")
        monkeypatch.setenv("PLUMENEST_BROWSER_FALLBACK_ENABLED", "true")

        config = load_config(config_path=yaml_config)
        assert config.log_level == "WARNING"
        assert config.resolution.stream_ttl_seconds == 900
        assert config.resolution.browser_fallback_enabled is True
        assert config.app_name == "plumenest-test"

    def test_env_switches_cache_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PLUMENEST_CACHE_BACKEND", "redis")
        monkeypatch.setenv("PLUMENEST_CACHE_REDIS_URL", "redis://cache:6379/1")

        config = load_config()
        assert config.cache.backend == "redis"
        assert config.cache.redis_url == "redis://cache:6379/1"

    def test_env_fallback_keys_json(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PLUMENEST_FALLBACK_KEYS", '{"vidstr": "env-key", "mega": "m"}')

        config = load_config(config_path=yaml_config)
        assert config.upstream.fallback_keys == {"vidstr": "env-key", "mega": "m"}

    def test_fallback_keys_empty_by_default(self) -> None:
        assert load_config().upstream.fallback_keys == {}

    def test_dotenv_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        # Registers the variable with monkeypatch so teardown removes it again.
        monkeypatch.setenv("PLUMENEST_EMBED_BASE_URL", "placeholder")
        monkeypatch.delenv("PLUMENEST_EMBED_BASE_URL")
        dotenv = tmp_path / ".env"
        dotenv.write_text("PLUMENEST_EMBED_BASE_URL=https://embed.example\n")

        config = load_config(dotenv_path=dotenv)
        assert config.upstream.embed_base_url == "https://embed.example"


class TestCliOverrides:
    def test_cli_beats_yaml_and_env(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PLUMENEST_LOG_LEVEL", "WARNING")
        config = load_config(
            config_path=yaml_config,
            cli_overrides={"log_level": "ERROR", "browser_fallback_enabled": True},
        )
        assert config.log_level == "ERROR"
        assert config.resolution.browser_fallback_enabled is True

    def test_cli_sectioned_format(self, yaml_config: Path) -> None:
        config = load_config(
            config_path=yaml_config,
            cli_overrides={"resolution": {"overall_deadline_seconds": 30.0}},
        )
        assert config.resolution.overall_deadline_seconds == 30.0
        assert config.resolution.stream_ttl_seconds == 600

    def test_non_positive_deadline_rejected(self) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides={"overall_deadline_seconds": 0})
