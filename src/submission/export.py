# ABOUTME: Flattens assembled metrics and cognitive test results into storage rows and pandas frames.
# ABOUTME: Also holds the display-label catalogue and per-test timeline value lookups.

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Iterable, List, Optional, Union

import pandas as pd

from src.common.schemas import (
    DigitSpanResult,
    MetricEntry,
    SustainedAttentionResult,
    TrailMakingResult,
)
from src.interaction_metrics.assembler import AssembledMetrics, assemble_entries

ENTRY_COLUMNS = ["question_id", "metric_key", "value", "sample_size", "calculated"]

METRIC_LABELS: Dict[str, str] = {
    # Pointer
    "click_precision": "Click Precision",
    "path_efficiency": "Path Efficiency",
    "overshoot_rate": "Overshoot Rate",
    "average_velocity": "Average Velocity",
    "velocity_variability": "Velocity Variability",
    # Keyboard
    "typing_speed": "Typing Speed",
    "average_inter_key_interval": "Inter-Key Interval",
    "typing_rhythm_variability": "Typing Rhythm Variability",
    "average_key_hold_time": "Key Hold Time",
    "key_press_variability": "Key Press Variability",
    "correction_rate": "Correction Rate",
    "pause_rate": "Pause Rate",
    "immediate_correction_tendency": "Immediate Correction Tendency",
    "deep_thinking_pause_rate": "Deep Thinking Pause Rate",
    "keyboard_fluency": "Keyboard Fluency Score",
    # Sustained attention
    "reaction_time": "Reaction Time",
    "detection_rate": "Detection Rate",
    "omission_error_rate": "Omission Error Rate",
    "commission_error_rate": "Commission Error Rate",
    # Trail making
    "part_a_time": "Part A Time",
    "part_b_time": "Part B Time",
    "b_to_a_ratio": "B/A Ratio",
    "part_a_errors": "Part A Errors",
    "part_b_errors": "Part B Errors",
    # Digit span
    "highest_span": "Highest Span",
    "correct_trials": "Correct Trials",
    "total_trials": "Total Trials",
}

CognitiveResult = Union[SustainedAttentionResult, TrailMakingResult, DigitSpanResult]


def metric_label(metric_key: str) -> str:
    """Human-readable name for a metric key; unknown keys are returned unchanged."""

    return METRIC_LABELS.get(metric_key, metric_key)


def entries_to_records(entries: Iterable[MetricEntry]) -> List[Dict[str, Any]]:
    """Storage rows; the global scope is written with an empty question id."""

    return [
        {
            "question_id": entry.question_id or "",
            "metric_key": entry.metric_key,
            "value": float(entry.value),
            "sample_size": int(entry.sample_size),
            "calculated": bool(entry.calculated),
        }
        for entry in entries
    ]


def entries_to_frame(metrics: Union[AssembledMetrics, Iterable[MetricEntry]]) -> pd.DataFrame:
    entries = metrics.all_entries() if isinstance(metrics, AssembledMetrics) else metrics
    return pd.DataFrame(entries_to_records(entries), columns=ENTRY_COLUMNS)


def frame_to_entries(df: pd.DataFrame) -> AssembledMetrics:
    """
    Rebuild assembled metrics from a frame written by entries_to_frame.

    Goes through the assembler again so duplicate keys are still rejected.
    """

    missing = set(ENTRY_COLUMNS) - set(df.columns)
    if missing:
        raise ValueError(f"Metric frame is missing columns: {sorted(missing)}")

    entries = []
    for row in df.itertuples(index=False):
        question_id = row.question_id
        if pd.isna(question_id) or str(question_id) == "":
            question_id = None
        entries.append(
            MetricEntry(
                question_id=None if question_id is None else str(question_id),
                metric_key=str(row.metric_key),
                value=float(row.value),
                sample_size=int(row.sample_size),
                calculated=bool(row.calculated),
            )
        )
    return assemble_entries(entries)


def result_to_record(result: CognitiveResult) -> Dict[str, Any]:
    """One flat storage row for a scored cognitive test."""

    record = asdict(result)
    if isinstance(result, TrailMakingResult):
        ratio = result.b_to_a_ratio
        record["b_to_a_ratio"] = ratio.value if ratio.calculated else None
    elif isinstance(result, DigitSpanResult):
        record["trials"] = [asdict(t) for t in result.trials]
    return record


def cognitive_metric_value(result: CognitiveResult, metric_key: str) -> Optional[float]:
    """
    Value of one timeline metric for a scored test.

    Returns None for a metric with no data (no detections, missing part A time).
    Raises KeyError for a key the test does not report.
    """

    if isinstance(result, SustainedAttentionResult):
        values = {
            "reaction_time": result.average_reaction_time,
            "detection_rate": result.detection_rate,
            "omission_error_rate": result.omission_error_rate,
            "commission_error_rate": result.commission_error_rate,
        }
    elif isinstance(result, TrailMakingResult):
        values = {
            "part_a_time": result.part_a_completion_time,
            "part_b_time": result.part_b_completion_time,
            "b_to_a_ratio": result.b_to_a_ratio.value if result.b_to_a_ratio.calculated else None,
            "part_a_errors": result.part_a_errors,
            "part_b_errors": result.part_b_errors,
        }
    elif isinstance(result, DigitSpanResult):
        values = {
            "highest_span": result.highest_span_achieved,
            "correct_trials": result.correct_trials,
            "total_trials": result.total_trials,
        }
    else:
        raise TypeError(f"Unsupported cognitive result type: {type(result).__name__}")

    if metric_key not in values:
        raise KeyError(f"Metric '{metric_key}' is not reported by {type(result).__name__}.")
    value = values[metric_key]
    return None if value is None else float(value)
