"""Timing and guard-rail configuration for scans and the coordinator."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

ENV_PREFIX = "CONDENSER_"


@dataclass(frozen=True, slots=True)
class ScanLimits:
    """Checkpoint cadence and memory guard used by the scan engine."""

    check_every_lines: int = 1000
    grace_period: float = 0.5  # seconds before the first checkpoint fires
    report_interval: float = 0.2  # minimum seconds between checkpoints
    memory_factor: float = 10.0

    def __post_init__(self) -> None:
        if self.check_every_lines <= 0:
            raise ValueError("check_every_lines must be positive")
        if self.memory_factor <= 1:
            raise ValueError("memory_factor must be greater than 1")


@dataclass(frozen=True, slots=True)
class CondenserConfig:
    """Debounce delays (in seconds) plus the engine limits."""

    input_delay: float = 0.3
    history_delay: float = 0.6
    expedite_delay: float = 0.0
    limits: ScanLimits = field(default_factory=ScanLimits)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CondenserConfig":
        env = os.environ if environ is None else environ
        defaults = cls()
        base = defaults.limits
        limits = ScanLimits(
            check_every_lines=_env_int(
                env, "CHECK_EVERY_LINES", base.check_every_lines
            ),
            grace_period=_env_ms(env, "GRACE_PERIOD_MS", base.grace_period),
            report_interval=_env_ms(env, "REPORT_INTERVAL_MS", base.report_interval),
            memory_factor=_env_float(env, "MEMORY_FACTOR", base.memory_factor),
        )
        return cls(
            input_delay=_env_ms(env, "INPUT_DELAY_MS", defaults.input_delay),
            history_delay=_env_ms(env, "HISTORY_DELAY_MS", defaults.history_delay),
            expedite_delay=defaults.expedite_delay,
            limits=limits,
        )


def _env_float(env: Mapping[str, str], key: str, fallback: float) -> float:
    value = env.get(f"{ENV_PREFIX}{key}")
    if value is None:
        return fallback
    try:
        parsed = float(value)
    except ValueError:
        return fallback
    return parsed if parsed > 0 else fallback


def _env_int(env: Mapping[str, str], key: str, fallback: int) -> int:
    value = env.get(f"{ENV_PREFIX}{key}")
    if value is None:
        return fallback
    try:
        parsed = int(value)
    except ValueError:
        return fallback
    return parsed if parsed > 0 else fallback


def _env_ms(env: Mapping[str, str], key: str, fallback: float) -> float:
    value = env.get(f"{ENV_PREFIX}{key}")
    if value is None:
        return fallback
    try:
        parsed = int(value)
    except ValueError:
        return fallback
    return parsed / 1000.0 if parsed >= 0 else fallback


__all__ = ["CondenserConfig", "ScanLimits"]
