# ABOUTME: Scores the sustained-attention (continuous performance) test from its raw event log.
# ABOUTME: Classifies responses into detections, commissions, and omissions with reaction-time stats.

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from src.common.schemas import StimulusResponse, SustainedAttentionRaw, SustainedAttentionResult
from src.common.stats import mean, population_std

logger = logging.getLogger(__name__)


def score_sustained_attention(raw: SustainedAttentionRaw) -> Optional[SustainedAttentionResult]:
    """
    Score one sustained-attention run, or return None when the test was not attempted.

    Repeated presses for the same stimulus count once; reaction times come from
    the first press on each correctly detected target.
    """

    if not raw.attempted:
        logger.info("Sustained-attention data has no start or end time, skipping scoring")
        return None

    target_count = sum(1 for s in raw.stimuli_presented if s.is_target)
    non_target_count = len(raw.stimuli_presented) - target_count

    detections = first_responses(raw.responses, is_target=True)
    commissions = first_responses(raw.responses, is_target=False)

    correct = len(detections)
    omissions = max(target_count - correct, 0)
    reaction_times = [r.response_time for r in detections]

    return SustainedAttentionResult(
        test_start_time=raw.test_start_time,
        test_end_time=raw.test_end_time,
        correct_detections=correct,
        commission_errors=len(commissions),
        omission_errors=omissions,
        average_reaction_time=mean(reaction_times) if reaction_times else None,
        reaction_time_sd=population_std(reaction_times) if reaction_times else None,
        detection_rate=_rate(correct, correct + omissions),
        omission_error_rate=_rate(omissions, target_count),
        commission_error_rate=_rate(len(commissions), non_target_count),
    )


def first_responses(responses: Sequence[StimulusResponse], is_target: bool) -> List[StimulusResponse]:
    seen = set()
    selected = []
    for response in responses:
        if response.is_target != is_target:
            continue
        if response.stimulus_index is not None:
            if response.stimulus_index in seen:
                continue
            seen.add(response.stimulus_index)
        selected.append(response)
    return selected


def _rate(numerator: int, denominator: int) -> float:
    if denominator <= 0:
        return 0.0
    return numerator / denominator
