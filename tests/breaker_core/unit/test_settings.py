from __future__ import annotations

import pytest
from pydantic import ValidationError

from breaker_core.circuit_breaker import CircuitBreakerConfig
from breaker_core.settings import BreakerSettings, SimulationSettings


def test_breaker_settings_defaults_build_default_config() -> None:
    settings = BreakerSettings()

    assert settings.log_level == "INFO"
    assert settings.to_config() == CircuitBreakerConfig()


def test_breaker_settings_read_prefixed_environment(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("BREAKER_FAILURE_THRESHOLD", "3")
    monkeypatch.setenv("BREAKER_COOLDOWN_SECONDS", "1.5")
    monkeypatch.setenv("breaker_max_probe_requests", "2")
    monkeypatch.setenv("BREAKER_LOG_LEVEL", " debug ")

    settings = BreakerSettings()
    config = settings.to_config()

    assert settings.log_level == "DEBUG"
    assert config == CircuitBreakerConfig(
        failure_threshold=3,
        cooldown=1.5,
        max_probe_requests=2,
    )


@pytest.mark.parametrize(
    "overrides",
    [
        {"failure_threshold": 0},
        {"cooldown_seconds": -0.1},
        {"max_probe_requests": 0},
        {"log_level": "TRACE"},
    ],
)
def test_breaker_settings_reject_invalid_values(overrides: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        BreakerSettings(**overrides)  # type: ignore[arg-type]


def test_simulation_settings_defaults_match_demo_dependency() -> None:
    settings = SimulationSettings()

    assert settings.failure_rate == 0.3
    assert settings.base_latency_seconds == 0.7
    assert settings.latency_variation_seconds == 0.4
    assert settings.iterations == 30
    assert settings.interval_seconds == 0.5
    assert settings.seed is None


def test_simulation_settings_read_prefixed_environment(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("SIMULATION_FAILURE_RATE", "0.5")
    monkeypatch.setenv("SIMULATION_ITERATIONS", "10")
    monkeypatch.setenv("SIMULATION_SEED", "7")

    settings = SimulationSettings()

    assert settings.failure_rate == 0.5
    assert settings.iterations == 10
    assert settings.seed == 7


@pytest.mark.parametrize(
    "overrides",
    [
        {"failure_rate": 1.5},
        {"failure_rate": -0.1},
        {"base_latency_seconds": -1.0},
        {"latency_variation_seconds": -1.0},
        {"iterations": 0},
        {"interval_seconds": -0.5},
    ],
)
def test_simulation_settings_reject_invalid_values(
    overrides: dict[str, object],
) -> None:
    with pytest.raises(ValidationError):
        SimulationSettings(**overrides)  # type: ignore[arg-type]
