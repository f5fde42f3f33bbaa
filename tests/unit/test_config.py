"""
Unit tests for ServerConfig and the command-line layer.
"""

import pytest

from ajcwebdev_docker.config import ServerConfig
from ajcwebdev_docker.__main__ import build_parser, load_config


ENV_VARS = (
    "HTTP_HOST", "HTTP_PORT", "HTTP_WORKERS",
    "HTTP_TIMEOUT", "HTTP_LOG_LEVEL", "HTTP_LOG_FORMAT",
)


@pytest.fixture
def clean_env(monkeypatch):
    """No HTTP_* variables leaking in from the shell."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestServerConfig:
    """Tests for ServerConfig defaults and validation."""

    def test_container_defaults(self):
        config = ServerConfig()

        assert config.host == "0.0.0.0"
        assert config.port == 8080
        config.validate()

    @pytest.mark.parametrize("port", [0, 1, 8080, 65535])
    def test_valid_ports(self, port: int):
        ServerConfig(port=port).validate()

    @pytest.mark.parametrize("port", [-1, 65536, 100000])
    def test_invalid_ports(self, port: int):
        with pytest.raises(ValueError, match="Invalid port"):
            ServerConfig(port=port).validate()

    @pytest.mark.parametrize("kwargs, message", [
        ({"min_workers": 0}, "min_workers"),
        ({"min_workers": 4, "max_workers": 2}, "max_workers"),
        ({"buffer_size": 512}, "buffer_size"),
        ({"timeout": 0}, "timeout"),
        ({"log_format": "xml"}, "log_format"),
    ])
    def test_invalid_values(self, kwargs: dict, message: str):
        with pytest.raises(ValueError, match=message):
            ServerConfig(**kwargs).validate()

    def test_timeout_none_allowed(self):
        ServerConfig(timeout=None).validate()


class TestFromEnv:
    """Tests for ServerConfig.from_env()."""

    def test_defaults_without_env(self, clean_env):
        config = ServerConfig.from_env()

        assert config.host == "0.0.0.0"
        assert config.port == 8080
        assert config.max_workers == 16
        assert config.min_workers == 4
        assert config.log_format == "text"

    def test_reads_env(self, clean_env):
        clean_env.setenv("HTTP_HOST", "127.0.0.1")
        clean_env.setenv("HTTP_PORT", "3000")
        clean_env.setenv("HTTP_WORKERS", "2")
        clean_env.setenv("HTTP_TIMEOUT", "7.5")
        clean_env.setenv("HTTP_LOG_LEVEL", "DEBUG")
        clean_env.setenv("HTTP_LOG_FORMAT", "json")

        config = ServerConfig.from_env()

        assert config.host == "127.0.0.1"
        assert config.port == 3000
        assert config.max_workers == 2
        assert config.min_workers == 2
        assert config.timeout == 7.5
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"
        config.validate()

    def test_non_numeric_port(self, clean_env):
        clean_env.setenv("HTTP_PORT", "eighty")

        with pytest.raises(ValueError):
            ServerConfig.from_env()


class TestLoadConfig:
    """Command line over environment over defaults."""

    def test_no_arguments(self, clean_env):
        config = load_config([])

        assert (config.host, config.port) == ("0.0.0.0", 8080)
        assert config.log_level == "INFO"

    def test_flags_override_env(self, clean_env):
        clean_env.setenv("HTTP_PORT", "3000")
        clean_env.setenv("HTTP_LOG_FORMAT", "json")

        config = load_config(["--port", "4000", "--log-format", "text"])

        assert config.port == 4000
        assert config.log_format == "text"

    def test_env_used_when_flag_absent(self, clean_env):
        clean_env.setenv("HTTP_PORT", "3000")

        assert load_config([]).port == 3000

    def test_short_flags(self, clean_env):
        config = load_config(["-H", "127.0.0.1", "-p", "0", "-w", "1", "-l", "debug"])

        assert config.host == "127.0.0.1"
        assert config.port == 0
        assert config.max_workers == 1
        assert config.min_workers == 1
        assert config.log_level == "DEBUG"

    def test_bad_flag_exits_2(self, clean_env):
        with pytest.raises(SystemExit) as exc_info:
            load_config(["--log-format", "xml"])

        assert exc_info.value.code == 2

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            build_parser(ServerConfig()).parse_args(["--version"])

        assert exc_info.value.code == 0
        assert "ajcwebdev-docker" in capsys.readouterr().out
