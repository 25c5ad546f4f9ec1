# ABOUTME: Tests flattening metric entries and test results for storage.
# ABOUTME: Checks frame round trips, labels, and timeline value lookups.

import pandas as pd
import pytest

from src.common.schemas import DigitSpanResult, MetricEntry, MetricResult, SpanTrialOutcome, TrailMakingResult
from src.interaction_metrics.assembler import assemble_entries
from src.submission.export import (
    cognitive_metric_value,
    entries_to_frame,
    entries_to_records,
    frame_to_entries,
    metric_label,
    result_to_record,
)


def _mk_assembled():
    return assemble_entries(
        [
            MetricEntry(None, "typing_speed", 240.0, 30, True),
            MetricEntry(None, "click_precision", 0.7, 0, False),
            MetricEntry("q1", "typing_speed", 180.0, 10, True),
        ]
    )


def _mk_tmt(part_a=30000.0, ratio=MetricResult.measured(2.0, 2)):
    return TrailMakingResult(
        test_start_time=0.0,
        test_end_time=100.0,
        part_a_completion_time=part_a,
        part_a_errors=1,
        part_b_completion_time=60000.0,
        part_b_errors=2,
        b_to_a_ratio=ratio,
    )


def test_records_use_empty_question_id_for_global_scope():
    records = entries_to_records(_mk_assembled().all_entries())
    assert records[0]["question_id"] == ""
    assert records[-1]["question_id"] == "q1"


def test_frame_round_trip(tmp_path):
    assembled = _mk_assembled()
    path = tmp_path / "metrics.parquet"
    entries_to_frame(assembled).to_parquet(path, index=False)

    restored = frame_to_entries(pd.read_parquet(path))
    assert set(restored.all_entries()) == set(assembled.all_entries())


def test_frame_to_entries_requires_columns():
    with pytest.raises(ValueError, match="missing columns"):
        frame_to_entries(pd.DataFrame({"metric_key": ["typing_speed"]}))


def test_metric_labels():
    assert metric_label("keyboard_fluency") == "Keyboard Fluency Score"
    assert metric_label("b_to_a_ratio") == "B/A Ratio"
    assert metric_label("unknown_metric") == "unknown_metric"


def test_cognitive_metric_value_lookups():
    assert cognitive_metric_value(_mk_tmt(), "b_to_a_ratio") == pytest.approx(2.0)
    assert cognitive_metric_value(_mk_tmt(), "part_b_errors") == pytest.approx(2.0)
    assert cognitive_metric_value(_mk_tmt(0.0, MetricResult.insufficient()), "b_to_a_ratio") is None
    with pytest.raises(KeyError):
        cognitive_metric_value(_mk_tmt(), "highest_span")


def test_result_to_record_flattens_nested_values():
    record = result_to_record(_mk_tmt(0.0, MetricResult.insufficient()))
    assert record["b_to_a_ratio"] is None

    span = DigitSpanResult(
        test_start_time=1.0,
        test_end_time=2.0,
        highest_span_achieved=5,
        total_trials=1,
        correct_trials=1,
        accuracy=1.0,
        stopped_by_rule=False,
        trials=(SpanTrialOutcome(span=5, trial=1, correct=True),),
    )
    span_record = result_to_record(span)
    assert span_record["trials"] == [{"span": 5, "trial": 1, "correct": True}]
    assert cognitive_metric_value(span, "highest_span") == pytest.approx(5.0)
