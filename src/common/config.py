# ABOUTME: Holds thresholds, fallbacks, and weights used by the metric calculators.
# ABOUTME: Loads overrides from YAML on top of documented defaults.

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml


@dataclass(frozen=True)
class PointerConfig:
    """Pointer calculator constants."""

    # Used when a click carries no target bounding box.
    click_reference_distance: float = 50.0
    approach_window: int = 20
    fallback_click_precision: float = 0.7
    fallback_path_efficiency: float = 0.8
    fallback_overshoot_rate: float = 0.2
    fallback_average_velocity: float = 400.0
    fallback_velocity_variability: float = 0.3

    def __post_init__(self) -> None:
        _require_positive(self, "click_reference_distance", "approach_window")
        _require_non_negative(
            self,
            "fallback_click_precision",
            "fallback_path_efficiency",
            "fallback_overshoot_rate",
            "fallback_average_velocity",
            "fallback_velocity_variability",
        )


@dataclass(frozen=True)
class KeyboardConfig:
    """Keyboard calculator constants."""

    pause_threshold_ms: float = 1000.0
    deep_pause_threshold_ms: float = 5000.0
    min_key_hold_ms: float = 20.0
    max_key_hold_ms: float = 1000.0
    immediate_correction_window: int = 3
    fluency_reference_speed: float = 300.0  # keys per minute
    fluency_speed_weight: float = 0.4
    fluency_rhythm_weight: float = 0.4
    fluency_correction_weight: float = 0.2

    def __post_init__(self) -> None:
        _require_positive(
            self,
            "pause_threshold_ms",
            "deep_pause_threshold_ms",
            "max_key_hold_ms",
            "immediate_correction_window",
            "fluency_reference_speed",
        )
        _require_non_negative(
            self, "min_key_hold_ms", "fluency_speed_weight", "fluency_rhythm_weight", "fluency_correction_weight"
        )
        if self.min_key_hold_ms > self.max_key_hold_ms:
            raise ValueError("KeyboardConfig.min_key_hold_ms must not exceed KeyboardConfig.max_key_hold_ms.")


@dataclass(frozen=True)
class DigitSpanConfig:
    """Defaults for span protocol settings missing from the raw payload."""

    trials_per_span: int = 2

    def __post_init__(self) -> None:
        _require_positive(self, "trials_per_span")


@dataclass(frozen=True)
class EngineConfig:
    pointer: PointerConfig = field(default_factory=PointerConfig)
    keyboard: KeyboardConfig = field(default_factory=KeyboardConfig)
    digit_span: DigitSpanConfig = field(default_factory=DigitSpanConfig)
    max_workers: int = 5

    def __post_init__(self) -> None:
        _require_positive(self, "max_workers")


def _require_positive(section, *names: str) -> None:
    for name in names:
        if getattr(section, name) <= 0:
            raise ValueError(f"{type(section).__name__}.{name} must be positive, got {getattr(section, name)}.")


def _require_non_negative(section, *names: str) -> None:
    for name in names:
        if getattr(section, name) < 0:
            raise ValueError(f"{type(section).__name__}.{name} must not be negative, got {getattr(section, name)}.")


DEFAULT_CONFIG = EngineConfig()


def load_engine_config(path: Optional[Path] = None) -> EngineConfig:
    """
    Build an EngineConfig from a YAML file, falling back to defaults for missing keys.
    """

    if path is None:
        return DEFAULT_CONFIG

    with open(path) as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, Mapping):
        raise ValueError(f"Engine config at {path} must be a mapping, got {type(cfg).__name__}.")
    return config_from_mapping(cfg)


def config_from_mapping(cfg: Mapping[str, Any]) -> EngineConfig:
    sections = {
        "pointer": PointerConfig,
        "keyboard": KeyboardConfig,
        "digit_span": DigitSpanConfig,
    }
    overrides = {}
    for key, value in cfg.items():
        if key in sections:
            section_cls = sections[key]
            overrides[key] = _overlay(section_cls(), value or {}, key)
        elif key == "max_workers":
            overrides[key] = int(value)
        else:
            raise ValueError(f"Unknown engine config section '{key}'.")
    return replace(DEFAULT_CONFIG, **overrides)


def _overlay(section, values: Mapping[str, Any], section_name: str):
    known = {f.name: f for f in fields(section)}
    updates = {}
    for key, value in values.items():
        if key not in known:
            raise ValueError(f"Unknown key '{key}' in engine config section '{section_name}'.")
        current = getattr(section, key)
        updates[key] = type(current)(value)
    return replace(section, **updates)
