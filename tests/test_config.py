"""Tests for configuration loading."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from livewager_core.config import AppConfig, load_config


class TestAppConfig:
    def test_defaults(self):
        cfg = AppConfig()
        assert cfg.provider.inplay_url == "https://api.b365api.com/v3/events/inplay"
        assert cfg.provider.demo_credential == "DEMO_MODE"
        assert cfg.provider.excluded_leagues == ["esoccer"]
        assert cfg.fetcher.max_retries == 3
        assert cfg.fetcher.backoff_base_s == 2.0
        assert cfg.cache.ttl_s == 60.0
        assert cfg.scheduler.interval_s == 45.0
        assert cfg.database.url == "sqlite:///livewager.db"
        assert cfg.oracle.enabled is False
        assert cfg.logging.level == "INFO"
        assert cfg.logging.format == "json"

    def test_default_spacing_exceeds_cache_ttl(self):
        cfg = AppConfig()
        assert cfg.fetcher.min_interval_s > cfg.cache.ttl_s

    def test_spacing_at_or_below_ttl_rejected(self):
        with pytest.raises(ValidationError):
            AppConfig(fetcher={"min_interval_s": 60}, cache={"ttl_s": 60})
        with pytest.raises(ValidationError):
            AppConfig(fetcher={"min_interval_s": 45})

    def test_shorter_ttl_allows_shorter_spacing(self):
        cfg = AppConfig(fetcher={"min_interval_s": 45}, cache={"ttl_s": 30})
        assert cfg.fetcher.min_interval_s == 45

    def test_scheduler_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            AppConfig(scheduler={"interval_s": 0})


class TestLoadConfig:
    def test_load_example_config(self):
        cfg = load_config("config.yaml.example")
        assert cfg.provider.sport_id == 1
        assert cfg.fetcher.min_interval_s == 65
        assert cfg.cache.ttl_s == 60

    def test_load_nonexistent_file_returns_defaults(self):
        cfg = load_config("/tmp/nonexistent_config_12345.yaml")
        assert cfg == AppConfig()

    def test_load_none_returns_defaults(self):
        cfg = load_config(None)
        assert cfg.database.url == "sqlite:///livewager.db"

    def test_yaml_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "provider:\n"
            "  excluded_leagues: [esoccer, virtual]\n"
            "scheduler:\n"
            "  interval_s: 30\n"
        )
        cfg = load_config(path)
        assert cfg.provider.excluded_leagues == ["esoccer", "virtual"]
        assert cfg.scheduler.interval_s == 30

    def test_empty_yaml_returns_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path) == AppConfig()

    def test_invalid_spacing_in_yaml_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("fetcher:\n  min_interval_s: 45\n")
        with pytest.raises(ValidationError):
            load_config(path)

    def test_env_override_credential(self, monkeypatch):
        monkeypatch.setenv("LIVEWAGER_CREDENTIAL", "secret-token")
        cfg = load_config(None)
        assert cfg.provider.credential == "secret-token"

    def test_env_override_database_url(self, monkeypatch):
        monkeypatch.setenv("LIVEWAGER_DATABASE_URL", "postgresql://u:p@db:5432/wagers")
        cfg = load_config(None)
        assert cfg.database.url == "postgresql://u:p@db:5432/wagers"

    def test_env_override_log_level(self, monkeypatch):
        monkeypatch.setenv("LIVEWAGER_LOG_LEVEL", "DEBUG")
        cfg = load_config(None)
        assert cfg.logging.level == "DEBUG"

    def test_env_overrides_yaml_values(self, monkeypatch, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("provider:\n  proxy_url: https://edge.example/proxy\n")
        monkeypatch.setenv("LIVEWAGER_PROXY_URL", "https://other.example/proxy")
        cfg = load_config(path)
        assert cfg.provider.proxy_url == "https://other.example/proxy"
