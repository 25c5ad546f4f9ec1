# ABOUTME: Scores the forward digit span test trial by trial.
# ABOUTME: Applies the standard stopping rule once every attempt at one span length fails.

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Mapping, Optional

from src.common.config import DigitSpanConfig
from src.common.schemas import DigitSpanRaw, DigitSpanResult, SpanTrialOutcome

logger = logging.getLogger(__name__)


def score_digit_span(raw: DigitSpanRaw, config: DigitSpanConfig = DigitSpanConfig()) -> Optional[DigitSpanResult]:
    """
    Walk trials in the order they were recorded.

    A correct trial raises the highest span achieved. When failures at one span
    length reach ``trialsPerSpan`` the test ends there and later trials are ignored.
    """

    if not raw.attempted:
        logger.info("Digit span data has no start or end time, skipping scoring")
        return None

    trials_per_span = _setting(raw.settings, "trialsPerSpan", config.trials_per_span)

    failures: Counter = Counter()
    outcomes = []
    highest = 0
    stopped = False
    for trial in raw.results:
        outcomes.append(SpanTrialOutcome(span=trial.span, trial=trial.trial, correct=trial.correct))
        if trial.correct:
            highest = max(highest, trial.span)
            continue
        failures[trial.span] += 1
        if failures[trial.span] >= trials_per_span:
            stopped = True
            break

    if stopped and len(outcomes) < len(raw.results):
        logger.info("Ignoring %d digit span trials recorded after the stopping rule", len(raw.results) - len(outcomes))

    correct_trials = sum(1 for o in outcomes if o.correct)
    total = len(outcomes)
    return DigitSpanResult(
        test_start_time=raw.test_start_time,
        test_end_time=raw.test_end_time,
        highest_span_achieved=highest,
        total_trials=total,
        correct_trials=correct_trials,
        accuracy=correct_trials / total if total else 0.0,
        stopped_by_rule=stopped,
        trials=tuple(outcomes),
    )


def _setting(settings: Mapping[str, Any], key: str, default: int) -> int:
    value = settings.get(key)
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default
