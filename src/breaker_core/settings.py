from __future__ import annotations

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from breaker_core.circuit_breaker import CircuitBreakerConfig
from breaker_core.logging import get_log_level_value


def prefixed_settings_config(prefix: str) -> SettingsConfigDict:
    """Build standard Pydantic settings config for prefixed environments."""
    return SettingsConfigDict(env_prefix=prefix, case_sensitive=False)


class BreakerSettings(BaseSettings):
    """Circuit breaker tunables read from ``BREAKER_*`` environment variables."""

    model_config = prefixed_settings_config("BREAKER_")

    failure_threshold: int = 5
    cooldown_seconds: float = 30.0
    max_probe_requests: int = 1
    log_level: str = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip().upper()
            get_log_level_value(normalized)
            return normalized
        return value

    @model_validator(mode="after")
    def _validate_breaker_settings(self) -> BreakerSettings:
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        if self.cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must be >= 0")
        if self.max_probe_requests < 1:
            raise ValueError("max_probe_requests must be >= 1")
        return self

    def to_config(self) -> CircuitBreakerConfig:
        """Build the immutable breaker configuration from these settings."""
        return CircuitBreakerConfig(
            failure_threshold=self.failure_threshold,
            cooldown=self.cooldown_seconds,
            max_probe_requests=self.max_probe_requests,
        )


class SimulationSettings(BaseSettings):
    """Downstream simulation knobs read from ``SIMULATION_*`` variables."""

    model_config = prefixed_settings_config("SIMULATION_")

    failure_rate: float = 0.3
    base_latency_seconds: float = 0.7
    latency_variation_seconds: float = 0.4
    iterations: int = 30
    interval_seconds: float = 0.5
    seed: int | None = None

    @model_validator(mode="after")
    def _validate_simulation_settings(self) -> SimulationSettings:
        if not 0.0 <= self.failure_rate <= 1.0:
            raise ValueError("failure_rate must be between 0 and 1")
        if self.base_latency_seconds < 0:
            raise ValueError("base_latency_seconds must be >= 0")
        if self.latency_variation_seconds < 0:
            raise ValueError("latency_variation_seconds must be >= 0")
        if self.iterations < 1:
            raise ValueError("iterations must be >= 1")
        if self.interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")
        return self
