# ABOUTME: Derives pointer metrics (precision, path efficiency, overshoot, velocity) from telemetry.
# ABOUTME: Computes every metric for the whole session and again for each question scope.

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from src.common.config import PointerConfig
from src.common.schemas import (
    AVERAGE_VELOCITY,
    CLICK_PRECISION,
    OVERSHOOT_RATE,
    PATH_EFFICIENCY,
    VELOCITY_VARIABILITY,
    InteractionEvent,
    MetricResult,
    MovementSample,
    PointerTelemetry,
    ScopedMetrics,
)
from src.common.stats import Point, coefficient_of_variation, euclidean, mean, path_length


@dataclass(frozen=True)
class ApproachPath:
    """Pointer trajectory leading up to one interaction."""

    target_id: str
    points: Sequence[Point]

    @property
    def direct_distance(self) -> float:
        return euclidean(self.points[0], self.points[-1])

    @property
    def traveled_distance(self) -> float:
        return path_length(self.points)

    @property
    def efficiency(self) -> float:
        traveled = self.traveled_distance
        if traveled <= 0:
            return 0.0
        return min(self.direct_distance / traveled, 1.0)

    @property
    def direction_changes(self) -> int:
        steps = [(b[0] - a[0], b[1] - a[1]) for a, b in zip(self.points, self.points[1:])]
        # Resting samples carry no direction.
        vectors = [v for v in steps if v != (0.0, 0.0)]
        changes = 0
        for prev, cur in zip(vectors, vectors[1:]):
            if prev[0] * cur[0] < 0 or prev[1] * cur[1] < 0:
                changes += 1
        return changes


def compute_pointer_metrics(
    telemetry: PointerTelemetry,
    config: PointerConfig = PointerConfig(),
    question_ids: Optional[Iterable[str]] = None,
) -> ScopedMetrics:
    """
    Compute pointer metrics globally and per question.

    ``question_ids`` defaults to every question id present in the telemetry.
    """

    if question_ids is None:
        question_ids = pointer_question_ids(telemetry)

    global_metrics = pointer_metrics_for_scope(telemetry.movements, telemetry.interactions, config)
    question_metrics = {}
    for question_id in sorted(set(question_ids)):
        movements = [m for m in telemetry.movements if m.question_id == question_id]
        interactions = [i for i in telemetry.interactions if i.question_id == question_id]
        question_metrics[question_id] = pointer_metrics_for_scope(movements, interactions, config)

    return ScopedMetrics(global_metrics=global_metrics, question_metrics=question_metrics)


def pointer_question_ids(telemetry: PointerTelemetry) -> List[str]:
    ids = {m.question_id for m in telemetry.movements if m.question_id}
    ids.update(i.question_id for i in telemetry.interactions if i.question_id)
    return sorted(ids)


def pointer_metrics_for_scope(
    movements: Sequence[MovementSample],
    interactions: Sequence[InteractionEvent],
    config: PointerConfig = PointerConfig(),
) -> Dict[str, MetricResult]:
    movements = sorted(movements, key=lambda m: m.timestamp)
    interactions = sorted(interactions, key=lambda i: i.timestamp)
    paths = build_approach_paths(movements, interactions, config)
    return {
        CLICK_PRECISION: click_precision(interactions, config),
        PATH_EFFICIENCY: path_efficiency(paths, config),
        OVERSHOOT_RATE: overshoot_rate(paths, config),
        AVERAGE_VELOCITY: average_velocity(movements, config),
        VELOCITY_VARIABILITY: velocity_variability(movements, config),
    }


def normalized_click_distance(interaction: InteractionEvent, config: PointerConfig = PointerConfig()) -> float:
    """
    Click offset from the target centre in units of the target half-diagonal, clamped to [0, 1].
    """

    if interaction.normalized_distance is not None:
        raw = interaction.normalized_distance
    else:
        distance = euclidean(interaction.click_point, (interaction.target_x, interaction.target_y))
        raw = distance / _reference_distance(interaction, config)
    if not math.isfinite(raw):
        return 1.0
    return min(max(raw, 0.0), 1.0)


def _reference_distance(interaction: InteractionEvent, config: PointerConfig) -> float:
    width = interaction.target_width or 0.0
    height = interaction.target_height or 0.0
    if width > 0 and height > 0:
        return math.hypot(width / 2.0, height / 2.0)
    return config.click_reference_distance


def click_precision(interactions: Sequence[InteractionEvent], config: PointerConfig = PointerConfig()) -> MetricResult:
    if not interactions:
        return MetricResult.insufficient(config.fallback_click_precision)
    distances = [normalized_click_distance(i, config) for i in interactions]
    return MetricResult.measured(1.0 - mean(distances), len(distances))


def build_approach_paths(
    movements: Sequence[MovementSample],
    interactions: Sequence[InteractionEvent],
    config: PointerConfig = PointerConfig(),
) -> List[ApproachPath]:
    """
    Collect the approach path for every interaction that has enough movement samples.

    Both inputs must be sorted by timestamp. A path starts at the previous click
    (or the first sample of the window) and ends at the centre of the
    clicked target.
    """

    paths: List[ApproachPath] = []
    previous: Optional[InteractionEvent] = None
    for interaction in interactions:
        lower = previous.timestamp if previous is not None else -math.inf
        window = [m for m in movements if lower < m.timestamp <= interaction.timestamp]
        if any(m.target_id for m in window):
            window = [m for m in window if m.target_id == interaction.target_id]
        window = window[-config.approach_window:]

        if len(window) >= 2:
            start = previous.click_point if previous is not None else (window[0].x, window[0].y)
            points = [start] + [(m.x, m.y) for m in window] + [(interaction.target_x, interaction.target_y)]
            path = ApproachPath(target_id=interaction.target_id, points=points)
            if path.traveled_distance > 0:
                paths.append(path)
        previous = interaction
    return paths


def path_efficiency(paths: Sequence[ApproachPath], config: PointerConfig = PointerConfig()) -> MetricResult:
    if not paths:
        return MetricResult.insufficient(config.fallback_path_efficiency)
    return MetricResult.measured(mean([p.efficiency for p in paths]), len(paths))


def overshoot_rate(paths: Sequence[ApproachPath], config: PointerConfig = PointerConfig()) -> MetricResult:
    if not paths:
        return MetricResult.insufficient(config.fallback_overshoot_rate)
    overshoots = sum(1 for p in paths if p.direction_changes > 0)
    return MetricResult.measured(overshoots / len(paths), len(paths))


def velocity_series(movements: Sequence[MovementSample]) -> List[float]:
    """Instantaneous speed (units per second) between consecutive samples; Δt ≤ 0 pairs are skipped."""

    ordered = sorted(movements, key=lambda m: m.timestamp)
    velocities = []
    for prev, cur in zip(ordered, ordered[1:]):
        dt = (cur.timestamp - prev.timestamp) / 1000.0
        if dt <= 0:
            continue
        velocities.append(euclidean((prev.x, prev.y), (cur.x, cur.y)) / dt)
    return velocities


def average_velocity(movements: Sequence[MovementSample], config: PointerConfig = PointerConfig()) -> MetricResult:
    velocities = velocity_series(movements) if len(movements) >= 2 else []
    if not velocities:
        return MetricResult.insufficient(config.fallback_average_velocity)
    return MetricResult.measured(mean(velocities), len(velocities))


def velocity_variability(movements: Sequence[MovementSample], config: PointerConfig = PointerConfig()) -> MetricResult:
    velocities = velocity_series(movements) if len(movements) >= 2 else []
    if not velocities:
        return MetricResult.insufficient(config.fallback_velocity_variability)
    return MetricResult.measured(coefficient_of_variation(velocities), len(velocities))
