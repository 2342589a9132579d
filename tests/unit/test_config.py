"""Tests for configuration defaults, loading and validation."""

from pathlib import Path

import pytest

from cpr_trader.config.defaults import DefaultConfig, GatewayParams, WindowParams, get_default_config
from cpr_trader.config.loader import ConfigLoader, build_settings
from cpr_trader.config.validation import ConfigValidator


class TestDefaults:
    """Test built-in defaults."""

    def test_default_windows(self):
        config = get_default_config()

        assert config.windows.timezone == "Asia/Kolkata"
        assert (config.windows.preparation_start, config.windows.preparation_end) == ("07:30", "15:30")
        assert (config.windows.live_start, config.windows.live_end) == ("09:30", "15:12")

    def test_defaults_are_safe(self):
        config = get_default_config()

        assert config.gateway.mode == "paper"
        assert config.gateway.retry_attempts == 0
        assert config.candles.interval_minutes == 3
        assert config.credentials.refresh_every_seconds == 40

    def test_defaults_are_frozen(self):
        with pytest.raises(AttributeError):
            WindowParams().timezone = "UTC"


class TestConfigLoader:
    """Test 3-tier precedence."""

    def test_no_file_gives_defaults(self, tmp_path):
        loader = ConfigLoader.create(tmp_path)

        config = loader.merge_config()

        assert config["gateway"]["mode"] == "paper"
        assert config["windows"]["live_end"] == "15:12"

    def test_file_overrides_defaults(self, tmp_path):
        (tmp_path / "trader.yaml").write_text(
            "gateway:\n  mode: http\n  quantity: 50\n", encoding="utf-8")
        loader = ConfigLoader.create(tmp_path)

        config = loader.merge_config()

        assert config["gateway"]["mode"] == "http"
        assert config["gateway"]["quantity"] == 50
        assert config["gateway"]["product"] == "I"

    def test_explicit_overrides_win(self, tmp_path):
        (tmp_path / "trader.yaml").write_text("gateway:\n  quantity: 50\n", encoding="utf-8")
        loader = ConfigLoader.create(tmp_path)

        config = loader.merge_config({"gateway": {"quantity": 25}})

        assert config["gateway"]["quantity"] == 25

    def test_empty_file_is_ignored(self, tmp_path):
        (tmp_path / "trader.yaml").write_text("", encoding="utf-8")

        assert ConfigLoader.create(tmp_path).load_file_config() == {}

    def test_repository_config_is_valid(self):
        loader = ConfigLoader.create(Path(__file__).resolve().parents[2] / "config")

        config = loader.merge_config()

        assert ConfigValidator.validate_config(config) == []


class TestBuildSettings:
    """Test typed settings construction."""

    def test_builds_typed_sections(self):
        settings = build_settings({"gateway": {"mode": "http", "quantity": 50}})

        assert isinstance(settings, DefaultConfig)
        assert settings.gateway == GatewayParams(mode="http", quantity=50)
        assert settings.windows == WindowParams()

    def test_unknown_keys_ignored(self):
        settings = build_settings({"windows": {"timezone": "UTC", "unused": 1}})

        assert settings.windows.timezone == "UTC"


class TestConfigValidator:
    """Test ConfigValidator."""

    def test_defaults_validate(self, tmp_path):
        config = ConfigLoader.create(tmp_path).merge_config()

        assert ConfigValidator.validate_config(config) == []

    def test_unknown_timezone(self):
        errors = ConfigValidator.validate_window_params({"timezone": "Mars/Olympus"})

        assert [e.field for e in errors] == ["timezone"]

    def test_malformed_window_time(self):
        errors = ConfigValidator.validate_window_params({"live_start": "9:30"})

        assert [e.field for e in errors] == ["live_start"]

    def test_window_end_before_start(self):
        params = {
            "preparation_start": "07:30",
            "preparation_end": "15:30",
            "live_start": "15:12",
            "live_end": "09:30",
        }

        errors = ConfigValidator.validate_window_params(params)

        assert [e.field for e in errors] == ["live_end"]

    @pytest.mark.parametrize("interval", [0, 7, "3", -3])
    def test_bad_candle_interval(self, interval):
        errors = ConfigValidator.validate_candle_params({"interval_minutes": interval})

        assert errors[0].field == "interval_minutes"

    def test_refresh_out_of_range(self):
        errors = ConfigValidator.validate_credential_params({"refresh_every_seconds": 90})

        assert errors[0].value == 90

    def test_gateway_errors_collected(self):
        params = {"mode": "live", "quantity": 0, "retry_attempts": -1, "timeout_seconds": 0}

        errors = ConfigValidator.validate_gateway_params(params)

        assert {e.field for e in errors} == {"mode", "quantity", "retry_attempts", "timeout_seconds"}

    @pytest.mark.parametrize("level", ["LOUD", 10])
    def test_bad_logging_level(self, level):
        errors = ConfigValidator.validate_logging_params({"level": level})

        assert [e.field for e in errors] == ["level"]

    def test_lowercase_logging_level_accepted(self):
        assert ConfigValidator.validate_logging_params({"level": "debug"}) == []
