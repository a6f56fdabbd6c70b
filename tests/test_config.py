"""Unit tests for client settings."""
from pathlib import Path

import pytest
from pydantic import ValidationError

from thinkstream.config import DEFAULT_BASE_URL, ClientSettings
from thinkstream.errors import ConfigError

ENV_VARS = [
    "THINKSTREAM_API_TOKEN",
    "ANTHROPIC_API_KEY",
    "THINKSTREAM_TRANSPORT",
    "THINKSTREAM_BASE_URL",
    "THINKSTREAM_MODEL",
    "THINKSTREAM_MAX_TOKENS",
    "THINKSTREAM_THINKING_BUDGET",
    "THINKSTREAM_TEMPERATURE",
    "THINKSTREAM_TIMEOUT",
    "THINKSTREAM_STORAGE",
    "THINKSTREAM_STORAGE_PATH",
    "THINKSTREAM_LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestClientSettings:
    """Tests for ClientSettings."""

    def test_defaults(self, clean_env):
        settings = ClientSettings.from_env()

        assert settings.api_token is None
        assert settings.transport == "proxy"
        assert settings.base_url == DEFAULT_BASE_URL
        assert settings.max_tokens == 128000
        assert settings.thinking_budget == 64000
        assert settings.temperature == 1.0
        assert settings.storage_backend == "file"

    def test_reads_environment(self, clean_env):
        clean_env.setenv("THINKSTREAM_API_TOKEN", "secret")
        clean_env.setenv("THINKSTREAM_BASE_URL", "http://proxy:9000")
        clean_env.setenv("THINKSTREAM_MAX_TOKENS", "2048")
        clean_env.setenv("THINKSTREAM_STORAGE_PATH", "/tmp/chats.json")

        settings = ClientSettings.from_env()

        assert settings.api_token == "secret"
        assert settings.base_url == "http://proxy:9000"
        assert settings.max_tokens == 2048
        assert settings.storage_path == Path("/tmp/chats.json")

    def test_falls_back_to_anthropic_key(self, clean_env):
        clean_env.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
        assert ClientSettings.from_env().api_token == "sk-ant-test"

    def test_overrides_win(self, clean_env):
        """Test that explicit keyword overrides beat the environment, None does not."""
        clean_env.setenv("THINKSTREAM_MODEL", "from-env")

        assert ClientSettings.from_env(model="explicit").model == "explicit"
        assert ClientSettings.from_env(model=None).model == "from-env"

    def test_invalid_value(self, clean_env):
        clean_env.setenv("THINKSTREAM_MAX_TOKENS", "lots")
        with pytest.raises(ValidationError):
            ClientSettings.from_env()

    def test_token_not_in_repr(self):
        assert "secret" not in repr(ClientSettings(api_token="secret"))

    def test_require_credential(self):
        assert ClientSettings(api_token="t").require_credential() == "t"
        assert ClientSettings(api_token="t").has_credential

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_credential(self, token):
        settings = ClientSettings(api_token=token)

        assert not settings.has_credential
        with pytest.raises(ConfigError):
            settings.require_credential()
