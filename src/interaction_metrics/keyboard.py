# ABOUTME: Derives typing metrics (speed, rhythm, hold time, corrections, pauses) from key events.
# ABOUTME: Filters modifier-only keys and scores each scope into a bounded fluency summary.

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from src.common.config import KeyboardConfig
from src.common.schemas import (
    AVERAGE_INTER_KEY_INTERVAL,
    AVERAGE_KEY_HOLD_TIME,
    CORRECTION_RATE,
    DEEP_THINKING_PAUSE_RATE,
    IMMEDIATE_CORRECTION_TENDENCY,
    KEY_PRESS_VARIABILITY,
    KEYBOARD_FLUENCY,
    KEYBOARD_METRIC_KEYS,
    PAUSE_RATE,
    TYPING_RHYTHM_VARIABILITY,
    TYPING_SPEED,
    KeyEvent,
    KeyTelemetry,
    MetricResult,
    ScopedMetrics,
)
from src.common.stats import coefficient_of_variation, mean


class KeyCategories:
    MODIFIER_KEYS = frozenset({"Shift", "Control", "Alt", "AltGraph", "Meta", "OS", "CapsLock"})
    CORRECTION_KEYS = frozenset({"Backspace", "Delete"})
    MIN_QUALIFYING_EVENTS = 2


def is_modifier_only(event: KeyEvent) -> bool:
    return event.key in KeyCategories.MODIFIER_KEYS


def compute_keyboard_metrics(
    telemetry: KeyTelemetry,
    config: KeyboardConfig = KeyboardConfig(),
    question_ids: Optional[Iterable[str]] = None,
) -> ScopedMetrics:
    if question_ids is None:
        question_ids = keyboard_question_ids(telemetry)

    global_metrics = keyboard_metrics_for_scope(telemetry.keyboard_events, config)
    question_metrics = {}
    for question_id in sorted(set(question_ids)):
        events = [e for e in telemetry.keyboard_events if e.question_id == question_id]
        question_metrics[question_id] = keyboard_metrics_for_scope(events, config)

    return ScopedMetrics(global_metrics=global_metrics, question_metrics=question_metrics)


def keyboard_question_ids(telemetry: KeyTelemetry) -> List[str]:
    return sorted({e.question_id for e in telemetry.keyboard_events if e.question_id})


def keyboard_metrics_for_scope(
    events: Sequence[KeyEvent],
    config: KeyboardConfig = KeyboardConfig(),
) -> Dict[str, MetricResult]:
    """
    Compute every keyboard metric for one scope.

    Scopes with fewer than two non-modifier events report every metric as insufficient.
    """

    metrics: Dict[str, MetricResult] = {key: MetricResult.insufficient() for key in KEYBOARD_METRIC_KEYS}

    qualifying = sorted((e for e in events if not is_modifier_only(e)), key=lambda e: e.timestamp)
    if len(qualifying) < KeyCategories.MIN_QUALIFYING_EVENTS:
        return metrics

    keydowns = [e for e in qualifying if e.type == "keydown"]
    intervals = inter_key_intervals(keydowns)

    metrics.update(interval_metrics(intervals, config))
    metrics.update(hold_time_metrics(key_hold_times(qualifying, config)))
    metrics[TYPING_SPEED] = typing_speed(keydowns)
    metrics.update(correction_metrics(keydowns, config))
    metrics[KEYBOARD_FLUENCY] = keyboard_fluency(metrics, config)
    return metrics


def inter_key_intervals(keydowns: Sequence[KeyEvent]) -> List[float]:
    return [cur.timestamp - prev.timestamp for prev, cur in zip(keydowns, keydowns[1:])]


def interval_metrics(intervals: Sequence[float], config: KeyboardConfig = KeyboardConfig()) -> Dict[str, MetricResult]:
    if not intervals:
        return {}
    n = len(intervals)
    pauses = sum(1 for i in intervals if i > config.pause_threshold_ms)
    # Deep pauses are also counted as pauses.
    deep_pauses = sum(1 for i in intervals if i > config.deep_pause_threshold_ms)
    return {
        AVERAGE_INTER_KEY_INTERVAL: MetricResult.measured(mean(intervals), n),
        TYPING_RHYTHM_VARIABILITY: MetricResult.measured(coefficient_of_variation(intervals), n),
        PAUSE_RATE: MetricResult.measured(pauses / n, n),
        DEEP_THINKING_PAUSE_RATE: MetricResult.measured(deep_pauses / n, n),
    }


def key_hold_times(events: Sequence[KeyEvent], config: KeyboardConfig = KeyboardConfig()) -> List[float]:
    """
    Pair each key's first pending keydown with its next keyup and keep plausible durations.
    """

    pending: Dict[str, float] = {}
    holds: List[float] = []
    for event in events:
        if event.type == "keydown":
            pending.setdefault(event.key, event.timestamp)
        elif event.key in pending:
            hold = event.timestamp - pending.pop(event.key)
            if config.min_key_hold_ms <= hold <= config.max_key_hold_ms:
                holds.append(hold)
    return holds


def hold_time_metrics(holds: Sequence[float]) -> Dict[str, MetricResult]:
    if not holds:
        return {}
    return {
        AVERAGE_KEY_HOLD_TIME: MetricResult.measured(mean(holds), len(holds)),
        KEY_PRESS_VARIABILITY: MetricResult.measured(coefficient_of_variation(holds), len(holds)),
    }


def typing_speed(keydowns: Sequence[KeyEvent]) -> MetricResult:
    """Keydowns per minute between the first and last keydown."""

    if len(keydowns) < 2:
        return MetricResult.insufficient()
    elapsed_ms = keydowns[-1].timestamp - keydowns[0].timestamp
    if elapsed_ms <= 0:
        return MetricResult.insufficient()
    return MetricResult.measured(len(keydowns) / (elapsed_ms / 60000.0), len(keydowns))


def correction_metrics(keydowns: Sequence[KeyEvent], config: KeyboardConfig = KeyboardConfig()) -> Dict[str, MetricResult]:
    if not keydowns:
        return {}

    corrections = 0
    immediate = 0
    last_correction = -1
    for idx, event in enumerate(keydowns):
        if event.key not in KeyCategories.CORRECTION_KEYS:
            continue
        corrections += 1
        if last_correction >= 0 and idx - last_correction <= config.immediate_correction_window:
            immediate += 1
        last_correction = idx

    results = {CORRECTION_RATE: MetricResult.measured(corrections / len(keydowns), len(keydowns))}
    if corrections:
        results[IMMEDIATE_CORRECTION_TENDENCY] = MetricResult.measured(immediate / corrections, corrections)
    return results


def keyboard_fluency(metrics: Mapping[str, MetricResult], config: KeyboardConfig = KeyboardConfig()) -> MetricResult:
    """
    Weighted blend of speed, rhythm consistency, and correction quality, scaled to [0, 1].

    Requires typing speed and rhythm variability; a missing correction rate scores as perfect.
    """

    speed = metrics.get(TYPING_SPEED)
    rhythm = metrics.get(TYPING_RHYTHM_VARIABILITY)
    if speed is None or rhythm is None or not (speed.calculated and rhythm.calculated):
        return MetricResult.insufficient()

    speed_score = min(speed.value / config.fluency_reference_speed, 1.0)
    rhythm_score = 1.0 / (1.0 + rhythm.value)
    correction = metrics.get(CORRECTION_RATE)
    correction_score = 1.0 / (1.0 + correction.value) if correction is not None and correction.calculated else 1.0

    total_weight = config.fluency_speed_weight + config.fluency_rhythm_weight + config.fluency_correction_weight
    if total_weight <= 0:
        return MetricResult.insufficient()
    score = (
        config.fluency_speed_weight * speed_score
        + config.fluency_rhythm_weight * rhythm_score
        + config.fluency_correction_weight * correction_score
    ) / total_weight
    return MetricResult.measured(min(max(score, 0.0), 1.0), speed.sample_size)
