# ABOUTME: Exercises the full submission flow from raw byte payloads to assembled results.
# ABOUTME: Uses a compressed interaction blob and plain-JSON test logs.

import json

import pytest

from src.common.errors import PayloadError
from src.common.payloads import compress
from src.common.schemas import KEYBOARD_METRIC_KEYS, POINTER_METRIC_KEYS
from src.submission import SubmissionPayloads, process_submission


def _interaction_blob():
    return {
        "movements": [
            {"x": 0, "y": 0, "timestamp": 0, "questionId": "q1"},
            {"x": 100, "y": 0, "timestamp": 1000, "questionId": "q1"},
        ],
        "interactions": [
            {"targetId": "q1-a", "clickX": 100, "clickY": 0, "targetX": 100, "targetY": 0, "timestamp": 1000, "questionId": "q1"}
        ],
        "keyboardEvents": [
            {"type": "keydown", "key": "h", "timestamp": 2000, "questionId": "q2"},
            {"type": "keyup", "key": "h", "timestamp": 2080, "questionId": "q2"},
            {"type": "keydown", "key": "i", "timestamp": 2200, "questionId": "q2"},
            {"type": "keyup", "key": "i", "timestamp": 2290, "questionId": "q2"},
        ],
    }


def _encode(document, gzip_it=False):
    raw = json.dumps(document).encode()
    return compress(raw) if gzip_it else raw


def test_process_submission_end_to_end():
    payloads = SubmissionPayloads.from_interaction_blob(
        _encode(_interaction_blob(), gzip_it=True),
        trail_making=_encode({"testStartTime": 5, "testEndTime": 9, "partACompletionTime": 20000, "partBCompletionTime": 50000}),
        sustained_attention=_encode({"testStartTime": 0, "testEndTime": 0}),
    )
    result = process_submission(payloads)

    scopes = result.metrics.by_scope()
    all_keys = set(POINTER_METRIC_KEYS) | set(KEYBOARD_METRIC_KEYS)
    assert set(scopes) == {None, "q1", "q2"}
    for metrics in scopes.values():
        assert set(metrics) == all_keys

    assert scopes[None]["click_precision"].value == pytest.approx(1.0)
    assert scopes["q1"]["average_velocity"].value == pytest.approx(100.0)
    # Pointer data for q2 is absent but the question still gets entries.
    assert not scopes["q2"]["average_velocity"].calculated
    assert scopes["q2"]["average_key_hold_time"].value == pytest.approx(85.0)
    assert not scopes["q1"]["typing_speed"].calculated

    assert result.trail_making.b_to_a_ratio.value == pytest.approx(2.5)
    assert result.sustained_attention is None
    assert result.digit_span is None


def test_process_submission_with_no_payloads():
    result = process_submission(SubmissionPayloads())
    assert result.metrics.question_entries == ()
    assert len(result.metrics.global_entries) == len(POINTER_METRIC_KEYS) + len(KEYBOARD_METRIC_KEYS)
    assert all(not e.calculated for e in result.metrics.global_entries)


def test_malformed_payload_fails_whole_submission():
    payloads = SubmissionPayloads.from_interaction_blob(
        _encode(_interaction_blob()),
        digit_span=b"\x00\x01 not json",
    )
    with pytest.raises(PayloadError) as excinfo:
        process_submission(payloads)
    assert excinfo.value.kind == "digit_span"
