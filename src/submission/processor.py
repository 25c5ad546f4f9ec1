# ABOUTME: Runs the full metrics engine for one submission: decode, fan out calculators, assemble.
# ABOUTME: Calculators and scorers run concurrently on disjoint inputs and are joined before merging.

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from src.cognitive_tests import score_digit_span, score_sustained_attention, score_trail_making
from src.common.config import DEFAULT_CONFIG, EngineConfig
from src.common.payloads import PayloadKind, decode_payload
from src.common.schemas import (
    DigitSpanRaw,
    DigitSpanResult,
    KeyTelemetry,
    PointerTelemetry,
    SustainedAttentionRaw,
    SustainedAttentionResult,
    TrailMakingRaw,
    TrailMakingResult,
)
from src.interaction_metrics.assembler import AssembledMetrics, assemble
from src.interaction_metrics.keyboard import compute_keyboard_metrics, keyboard_question_ids
from src.interaction_metrics.pointer import compute_pointer_metrics, pointer_question_ids

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionPayloads:
    """Raw (possibly gzip-compressed) byte payloads captured for one assessment."""

    pointer: Optional[bytes] = None
    keyboard: Optional[bytes] = None
    sustained_attention: Optional[bytes] = None
    trail_making: Optional[bytes] = None
    digit_span: Optional[bytes] = None

    @classmethod
    def from_interaction_blob(cls, interaction: Optional[bytes], **tests: Optional[bytes]) -> "SubmissionPayloads":
        """The client ships pointer and key telemetry as one blob; both schemas read from it."""

        return cls(pointer=interaction, keyboard=interaction, **tests)


@dataclass(frozen=True)
class SubmissionResult:
    metrics: AssembledMetrics
    sustained_attention: Optional[SustainedAttentionResult] = None
    trail_making: Optional[TrailMakingResult] = None
    digit_span: Optional[DigitSpanResult] = None


def process_submission(payloads: SubmissionPayloads, config: EngineConfig = DEFAULT_CONFIG) -> SubmissionResult:
    """
    Decode every supplied payload, then compute interaction metrics and test scores.

    A malformed payload raises PayloadError before any calculator runs.
    """

    pointer = _decode(payloads.pointer, PayloadKind.POINTER)
    keyboard = _decode(payloads.keyboard, PayloadKind.KEYBOARD)
    if pointer is None:
        pointer = PointerTelemetry()
    if keyboard is None:
        keyboard = KeyTelemetry()
    cpt_raw: Optional[SustainedAttentionRaw] = _decode(payloads.sustained_attention, PayloadKind.SUSTAINED_ATTENTION)
    tmt_raw: Optional[TrailMakingRaw] = _decode(payloads.trail_making, PayloadKind.TRAIL_MAKING)
    span_raw: Optional[DigitSpanRaw] = _decode(payloads.digit_span, PayloadKind.DIGIT_SPAN)

    # Every question seen by either calculator gets a full set of entries.
    question_ids = sorted(set(pointer_question_ids(pointer)) | set(keyboard_question_ids(keyboard)))

    with ThreadPoolExecutor(max_workers=max(config.max_workers, 1)) as pool:
        pointer_future = pool.submit(compute_pointer_metrics, pointer, config.pointer, question_ids)
        keyboard_future = pool.submit(compute_keyboard_metrics, keyboard, config.keyboard, question_ids)
        cpt_future = pool.submit(score_sustained_attention, cpt_raw) if cpt_raw is not None else None
        tmt_future = pool.submit(score_trail_making, tmt_raw) if tmt_raw is not None else None
        span_future = pool.submit(score_digit_span, span_raw, config.digit_span) if span_raw is not None else None

        pointer_metrics = pointer_future.result()
        keyboard_metrics = keyboard_future.result()
        cpt_result = cpt_future.result() if cpt_future is not None else None
        tmt_result = tmt_future.result() if tmt_future is not None else None
        span_result = span_future.result() if span_future is not None else None

    metrics = assemble(pointer_metrics, keyboard_metrics)
    logger.debug(
        "Scored submission: %d global entries, %d question entries",
        len(metrics.global_entries),
        len(metrics.question_entries),
    )
    return SubmissionResult(
        metrics=metrics,
        sustained_attention=cpt_result,
        trail_making=tmt_result,
        digit_span=span_result,
    )


def _decode(data: Optional[bytes], kind: PayloadKind):
    if data is None:
        return None
    return decode_payload(data, kind)
