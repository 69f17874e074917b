"""
ElectionTrends - Configuration Tests
"""

from pathlib import Path

import pytest

from election_trends.utils.config import Config, OperationalConfig, StoreConfig


ENV_KEYS = (
    "STORE_BACKEND", "STORE_KEY_PREFIX", "REDIS_URL", "REDIS_HOST", "REDIS_PORT",
    "DASH_HOST", "DASH_PORT", "DASH_DEBUG", "DEFAULT_GROUP_BY",
    "REQUEST_TIMEOUT", "MAX_RETRIES", "RETRY_DELAY", "PARALLEL_DOWNLOADS", "DATA_DIR"
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run in an empty directory with no configuration variables set."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    return monkeypatch


class TestConfig:
    """Tests for environment-driven configuration."""

    def test_defaults_without_environment(self):
        config = Config(load_environment=False)

        assert config.store == StoreConfig()
        assert config.server.port == 8050
        assert config.aggregation.default_group_by == "politicalFamily"
        assert config.operational == OperationalConfig()

    def test_defaults_from_empty_environment(self, clean_env, tmp_path):
        config = Config()

        assert config.store.backend == "redis"
        assert config.store.redis_url == "redis://localhost:6379"
        assert config.data_dir == tmp_path / "data"
        assert (tmp_path / "data" / "logs").is_dir()

    def test_environment_overrides(self, clean_env):
        clean_env.setenv("STORE_BACKEND", "Memory")
        clean_env.setenv("REDIS_HOST", "cache")
        clean_env.setenv("REDIS_PORT", "6380")
        clean_env.setenv("DASH_PORT", "9000")
        clean_env.setenv("DASH_DEBUG", "yes")
        clean_env.setenv("MAX_RETRIES", "5")
        clean_env.setenv("DEFAULT_GROUP_BY", "party")

        config = Config()

        assert config.store.backend == "memory"
        assert config.store.redis_url == "redis://cache:6380"
        assert config.server.port == 9000
        assert config.server.debug is True
        assert config.operational.max_retries == 5
        assert config.aggregation.default_group_by == "party"

    def test_redis_url_takes_priority(self, clean_env):
        clean_env.setenv("REDIS_URL", "redis://redis.internal:6379/2")
        clean_env.setenv("REDIS_HOST", "ignored")

        assert Config().store.redis_url == "redis://redis.internal:6379/2"

    def test_invalid_backend(self, clean_env):
        clean_env.setenv("STORE_BACKEND", "postgres")

        with pytest.raises(ValueError):
            Config()

    def test_env_file_is_loaded(self, clean_env, tmp_path):
        Path(tmp_path / ".env").write_text("STORE_KEY_PREFIX=fromfile\n", encoding="utf-8")

        # clean_env removed STORE_KEY_PREFIX first, so teardown drops the loaded value
        assert Config().store.key_prefix == "fromfile"
