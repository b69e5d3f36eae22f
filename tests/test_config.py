"""Tests for configuration loading and validation."""

from dataclasses import replace

import pytest

from lead_orchestrator.config import (
    AppConfig,
    ModelConfig,
    ResilienceConfig,
    TransportConfig,
    _safe_bool,
    _safe_float,
    _safe_int,
    _validate_config,
)


def _valid_config() -> AppConfig:
    return AppConfig(
        model=ModelConfig(api_key="", llm_temperature=0.3),
        resilience=ResilienceConfig(
            primary_timeout_sec=9.0,
            retry_timeout_sec=4.0,
            retry_backoff_sec=0.5,
            history_window=10,
        ),
        transport=TransportConfig(send_timeout_sec=15.0),
        port=3000,
    )


class TestConfigValidation:
    def test_valid_config_passes_validation(self):
        _validate_config(_valid_config())  # should not raise

    @pytest.mark.parametrize("temperature", [3.0, -0.5])
    def test_temperature_out_of_range(self, temperature):
        config = _valid_config()
        config = replace(config, model=replace(config.model, llm_temperature=temperature))
        with pytest.raises(ValueError, match="LLM_TEMPERATURE"):
            _validate_config(config)

    def test_primary_timeout_must_be_positive(self):
        config = _valid_config()
        config = replace(
            config, resilience=replace(config.resilience, primary_timeout_sec=0)
        )
        with pytest.raises(ValueError, match="PRIMARY_TIMEOUT_SEC"):
            _validate_config(config)

    def test_retry_timeout_must_be_positive(self):
        config = _valid_config()
        config = replace(
            config, resilience=replace(config.resilience, retry_timeout_sec=-1)
        )
        with pytest.raises(ValueError, match="RETRY_TIMEOUT_SEC"):
            _validate_config(config)

    def test_retry_timeout_must_be_shorter_than_primary(self):
        config = _valid_config()
        config = replace(
            config,
            resilience=replace(config.resilience, primary_timeout_sec=4.0, retry_timeout_sec=4.0),
        )
        with pytest.raises(ValueError, match="shorter than PRIMARY_TIMEOUT_SEC"):
            _validate_config(config)

    def test_negative_backoff_rejected(self):
        config = _valid_config()
        config = replace(
            config, resilience=replace(config.resilience, retry_backoff_sec=-0.1)
        )
        with pytest.raises(ValueError, match="RETRY_BACKOFF_SEC"):
            _validate_config(config)

    def test_zero_backoff_allowed(self):
        config = _valid_config()
        config = replace(config, resilience=replace(config.resilience, retry_backoff_sec=0))
        _validate_config(config)

    def test_history_window_at_least_one(self):
        config = _valid_config()
        config = replace(config, resilience=replace(config.resilience, history_window=0))
        with pytest.raises(ValueError, match="HISTORY_WINDOW"):
            _validate_config(config)

    def test_send_timeout_must_be_positive(self):
        config = _valid_config()
        config = replace(config, transport=replace(config.transport, send_timeout_sec=0))
        with pytest.raises(ValueError, match="SEND_TIMEOUT_SEC"):
            _validate_config(config)

    @pytest.mark.parametrize("port", [0, 70000])
    def test_port_out_of_range(self, port):
        with pytest.raises(ValueError, match="PORT"):
            _validate_config(replace(_valid_config(), port=port))


class TestEnvParsing:
    def test_safe_int_reads_env(self, monkeypatch):
        monkeypatch.setenv("TEST_INT", "42")
        assert _safe_int("TEST_INT", "1") == 42

    def test_safe_int_uses_default(self, monkeypatch):
        monkeypatch.delenv("TEST_INT", raising=False)
        assert _safe_int("TEST_INT", "7") == 7

    def test_safe_int_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("TEST_INT", "abc")
        with pytest.raises(ValueError, match="TEST_INT"):
            _safe_int("TEST_INT", "1")

    def test_safe_float_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("TEST_FLOAT", "fast")
        with pytest.raises(ValueError, match="TEST_FLOAT"):
            _safe_float("TEST_FLOAT", "1.0")

    @pytest.mark.parametrize("raw,expected", [
        ("true", True), ("1", True), ("YES", True), ("on", True),
        ("false", False), ("0", False), ("no", False), ("", False),
    ])
    def test_safe_bool_values(self, monkeypatch, raw, expected):
        monkeypatch.setenv("TEST_FLAG", raw)
        assert _safe_bool("TEST_FLAG", "false") is expected

    def test_safe_bool_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("TEST_FLAG", "maybe")
        with pytest.raises(ValueError, match="TEST_FLAG"):
            _safe_bool("TEST_FLAG", "false")


class TestImmutability:
    def test_configs_are_frozen(self):
        config = _valid_config()
        with pytest.raises(AttributeError):
            config.port = 1  # type: ignore[misc]
