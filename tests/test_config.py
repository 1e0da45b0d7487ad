"""
Unit tests for configuration loading, validation and the CLI mapping.

Run with: pytest tests/test_config.py -v
"""

import pytest

from contractscan.__main__ import build_parser, config_from_args
from contractscan.analyzer import get_engine
from contractscan.core.config import DEFAULT_PORT, Config, get_config, set_config
from contractscan.core.exceptions import ConfigError
from contractscan.core.logging import get_gateway_banner, logger, setup_console_only, setup_logging


class TestConfigFromEnv:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("HOST", raising=False)
        monkeypatch.delenv("PORT", raising=False)

        config = Config.from_env()

        assert config.host == "0.0.0.0"
        assert config.port == DEFAULT_PORT == 9005
        assert config.engine == "slither"

    def test_host_and_port(self, monkeypatch):
        monkeypatch.setenv("HOST", "127.0.0.1")
        monkeypatch.setenv("PORT", "8123")

        config = Config.from_env()

        assert config.host == "127.0.0.1"
        assert config.port == 8123

    def test_engine_not_read_from_env(self, monkeypatch):
        monkeypatch.setenv("ENGINE", "aderyn")
        assert Config.from_env().engine == "slither"


class TestConfigValidate:

    def test_valid(self):
        assert Config().validate() == []

    @pytest.mark.parametrize(
        "overrides, fragment",
        [
            ({"engine": "mythril"}, "Invalid engine"),
            ({"port": 0}, "Invalid port"),
            ({"timeout_seconds": -1}, "Invalid timeout"),
            ({"log_level": "LOUD"}, "Invalid log level"),
            ({"sandbox_dir": "/nonexistent/contractscan"}, "Sandbox directory"),
        ],
    )
    def test_errors(self, overrides, fragment):
        errors = Config(**overrides).validate()
        assert len(errors) == 1
        assert fragment in errors[0]

    def test_global_instance(self):
        config = Config(engine="aderyn")
        set_config(config)
        try:
            assert get_config() is config
        finally:
            set_config(None)


class TestEngines:

    def test_known_engines(self):
        assert get_engine("slither").command == ("slither", ".", "--disable-color")
        assert get_engine("aderyn").scaffold.source_dir == "src"

    def test_unknown_engine(self):
        with pytest.raises(ConfigError, match="Unsupported engine"):
            get_engine("mythril")


class TestCommandLine:

    def test_flags_override_env(self, monkeypatch):
        monkeypatch.setenv("PORT", "7000")
        args = build_parser().parse_args(
            ["--engine", "aderyn", "--timeout", "60", "--no-skills", "--json-response", "--log-level", "debug"]
        )

        config = config_from_args(args)

        assert config.port == 7000
        assert config.engine == "aderyn"
        assert config.timeout_seconds == 60.0
        assert config.enable_skills is False
        assert config.json_response is True
        assert config.log_level == "DEBUG"

    def test_port_flag(self, monkeypatch):
        monkeypatch.setenv("PORT", "7000")
        config = config_from_args(build_parser().parse_args(["--port", "9100"]))
        assert config.port == 9100


class TestLogging:

    def test_banner_skips_missing_values(self):
        banner = get_gateway_banner({"Engine": "slither", "Timeout": None})
        assert "GATEWAY CONFIGURATION" in banner
        assert "Engine:" in banner
        assert "Timeout" not in banner

    def test_setup_logging_creates_run_dir(self, tmp_path):
        run_dir = setup_logging(tmp_path, console_level="WARNING")
        try:
            logger.error("sandbox cleanup failed")
            assert run_dir.parent == tmp_path
            assert (run_dir / "gateway.log").exists()
            assert (run_dir / "error.log").exists()
        finally:
            setup_console_only("INFO")
