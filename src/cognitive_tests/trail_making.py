# ABOUTME: Scores the two-part trail making (graph traversal) test.
# ABOUTME: Reports per-part completion time and errors plus the part B / part A time ratio.

from __future__ import annotations

import logging
import math
from typing import Optional

from src.common.schemas import MetricResult, TrailMakingRaw, TrailMakingResult

logger = logging.getLogger(__name__)


def score_trail_making(raw: TrailMakingRaw) -> Optional[TrailMakingResult]:
    if not raw.attempted:
        logger.info("Trail making data has no start or end time, skipping scoring")
        return None

    part_a_time = part_completion_time(raw.part_a_completion_time, raw.part_a_start_time, raw.part_a_end_time)
    part_b_time = part_completion_time(raw.part_b_completion_time, raw.part_b_start_time, raw.part_b_end_time)

    return TrailMakingResult(
        test_start_time=raw.test_start_time,
        test_end_time=raw.test_end_time,
        part_a_completion_time=part_a_time,
        part_a_errors=max(raw.part_a_errors, 0),
        part_b_completion_time=part_b_time,
        part_b_errors=max(raw.part_b_errors, 0),
        b_to_a_ratio=b_to_a_ratio(part_a_time, part_b_time),
    )


def part_completion_time(explicit: float, start: float, end: float) -> float:
    """Prefer the client's recorded completion time; otherwise derive it from the part boundaries."""

    if explicit > 0:
        return explicit
    if start >= 0 and end > start:
        return end - start
    return 0.0


def b_to_a_ratio(part_a_time: float, part_b_time: float) -> MetricResult:
    if part_a_time <= 0 or part_b_time <= 0:
        return MetricResult.insufficient()
    ratio = part_b_time / part_a_time
    if not math.isfinite(ratio):
        return MetricResult.insufficient()
    return MetricResult.measured(ratio, 2)
