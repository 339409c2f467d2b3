"""Unit tests for config."""

import os
from unittest.mock import patch

import pytest

from imgrelay.core.config import (
    DEFAULT_MODEL,
    DEFAULT_PORT,
    DEFAULT_RATE_LIMIT_MAX,
    DEFAULT_RATE_LIMIT_WINDOW,
    Config,
    get_config,
    set_config,
)
from imgrelay.utils.exceptions import ConfigurationError

_CONFIG_VARS = [
    "PORT",
    "IMGRELAY_HOST",
    "IMGRELAY_ENV",
    "IMGRELAY_DEFAULT_MODEL",
    "IMGRELAY_RATE_LIMIT_MAX",
    "IMGRELAY_RATE_LIMIT_WINDOW",
    "IMGRELAY_CORS_ORIGINS",
    "IMGRELAY_DEBUG_API",
]


@pytest.fixture
def no_config_env(monkeypatch):
    for name in _CONFIG_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.mark.unit
class TestConfig:
    def test_defaults(self):
        c = Config()
        assert c.port == DEFAULT_PORT
        assert c.default_model == DEFAULT_MODEL == "stable-diffusion-xl"
        assert c.rate_limit_max == DEFAULT_RATE_LIMIT_MAX == 50
        assert c.rate_limit_window == DEFAULT_RATE_LIMIT_WINDOW == 900
        assert c.poll_interval == 1.0
        assert c.poll_max_attempts == 30
        assert c.debug_api is False

    def test_defaults_validate(self):
        Config().validate()

    @pytest.mark.parametrize(
        "kwargs,needle",
        [
            ({"port": 0}, "port"),
            ({"port": 70000}, "port"),
            ({"rate_limit_max": 0}, "rate_limit_max"),
            ({"rate_limit_window": -1}, "rate_limit_window"),
            ({"poll_interval": -0.5}, "poll_interval"),
            ({"poll_max_attempts": 0}, "poll_max_attempts"),
            ({"probe_timeout": 0}, "probe_timeout"),
            ({"default_model": ""}, "default_model"),
        ],
    )
    def test_validate_rejects(self, kwargs, needle):
        with pytest.raises(ConfigurationError) as exc_info:
            Config(**kwargs).validate()
        assert needle in str(exc_info.value)

    def test_zero_poll_interval_allowed(self):
        Config(poll_interval=0).validate()

    def test_is_production(self):
        assert Config(environment="production").is_production is True
        assert Config(environment=" Production ").is_production is True
        assert Config(environment="development").is_production is False

    def test_from_env_uses_env_vars(self, no_config_env):
        with patch.dict(
            os.environ,
            {
                "PORT": "8080",
                "IMGRELAY_HOST": "127.0.0.1",
                "IMGRELAY_ENV": "production",
                "IMGRELAY_DEFAULT_MODEL": "craiyon",
                "IMGRELAY_RATE_LIMIT_MAX": "5",
                "IMGRELAY_RATE_LIMIT_WINDOW": "60",
                "IMGRELAY_CORS_ORIGINS": "https://a.example, https://b.example",
                "IMGRELAY_DEBUG_API": "true",
            },
            clear=False,
        ):
            c = Config.from_env()
        assert c.port == 8080
        assert c.host == "127.0.0.1"
        assert c.environment == "production"
        assert c.default_model == "craiyon"
        assert c.rate_limit_max == 5
        assert c.rate_limit_window == 60
        assert c.debug_api is True
        assert c.cors_origin_list() == ["https://a.example", "https://b.example"]

    def test_from_env_defaults_when_env_empty(self, no_config_env):
        with patch.dict(os.environ, {"PORT": ""}, clear=False):
            c = Config.from_env()
        assert c.port == DEFAULT_PORT
        assert c.default_model == DEFAULT_MODEL
        assert c.debug_api is False
        assert c.cors_origin_list() == "*"

    def test_from_env_rejects_non_integer(self, no_config_env):
        with patch.dict(os.environ, {"PORT": "eighty"}, clear=False):
            with pytest.raises(ConfigurationError) as exc_info:
                Config.from_env()
        assert "PORT" in str(exc_info.value)

    def test_get_set_config(self):
        original = get_config()
        custom = Config(default_model="dalle")
        try:
            set_config(custom)
            assert get_config() is custom
        finally:
            set_config(original)
