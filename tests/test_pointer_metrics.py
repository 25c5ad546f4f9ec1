# ABOUTME: Tests pointer metrics on small synthetic trajectories.
# ABOUTME: Checks precision clamping, path efficiency, overshoot, velocity, and question scoping.

import pytest

from src.common.config import PointerConfig
from src.common.schemas import InteractionEvent, MovementSample, PointerTelemetry
from src.interaction_metrics.pointer import (
    build_approach_paths,
    click_precision,
    compute_pointer_metrics,
    normalized_click_distance,
    velocity_series,
)


def _mk_move(x, y, t, question_id=None, target_id=None):
    return MovementSample.model_validate(
        {"x": x, "y": y, "timestamp": t, "questionId": question_id, "targetId": target_id}
    )


def _mk_click(x, y, t, target=(None, None), question_id=None, target_id="opt", **extra):
    tx, ty = target
    payload = {
        "targetId": target_id,
        "clickX": x,
        "clickY": y,
        "targetX": x if tx is None else tx,
        "targetY": y if ty is None else ty,
        "timestamp": t,
        "questionId": question_id,
    }
    payload.update(extra)
    return InteractionEvent.model_validate(payload)


def _telemetry(movements, interactions=()):
    return PointerTelemetry(movements=list(movements), interactions=list(interactions))


def test_straight_move_and_centred_click():
    telemetry = _telemetry(
        [_mk_move(0, 0, 0), _mk_move(100, 0, 1000)],
        [_mk_click(100, 0, 1000)],
    )
    metrics = compute_pointer_metrics(telemetry).global_metrics

    assert metrics["click_precision"].value == pytest.approx(1.0)
    assert metrics["click_precision"].calculated
    assert metrics["average_velocity"].value == pytest.approx(100.0)
    assert metrics["average_velocity"].sample_size == 1
    assert metrics["velocity_variability"].value == pytest.approx(0.0)
    assert metrics["path_efficiency"].value == pytest.approx(1.0)
    assert metrics["overshoot_rate"].value == pytest.approx(0.0)


def test_single_sample_leaves_velocity_uncalculated():
    metrics = compute_pointer_metrics(_telemetry([_mk_move(5, 5, 10)])).global_metrics

    for key in ("average_velocity", "velocity_variability"):
        assert not metrics[key].calculated
        assert metrics[key].sample_size == 0
    assert metrics["average_velocity"].value == pytest.approx(400.0)
    assert metrics["click_precision"].value == pytest.approx(0.7)


def test_velocity_skips_non_increasing_timestamps():
    moves = [_mk_move(0, 0, 0), _mk_move(10, 0, 0), _mk_move(20, 0, 100)]
    assert velocity_series(moves) == [pytest.approx(100.0)]


def test_normalized_distance_is_clamped():
    far = _mk_click(0, 0, 0, normalizedDistance=1.5)
    edge = _mk_click(0, 0, 0, normalizedDistance=1.0)
    assert normalized_click_distance(far) == normalized_click_distance(edge) == 1.0
    assert click_precision([far]).value == pytest.approx(0.0)


def test_normalized_distance_uses_target_half_diagonal():
    # 60 x 80 box has a half-diagonal of 50.
    click = _mk_click(25, 0, 0, target=(0, 0), targetWidth=60, targetHeight=80)
    assert normalized_click_distance(click) == pytest.approx(0.5)


def test_normalized_distance_falls_back_to_reference_distance():
    click = _mk_click(10, 0, 0, target=(0, 0))
    assert normalized_click_distance(click, PointerConfig(click_reference_distance=20.0)) == pytest.approx(0.5)


def test_click_precision_stays_in_unit_interval():
    clicks = [_mk_click(500, 500, i, target=(0, 0)) for i in range(3)]
    result = click_precision(clicks)
    assert 0.0 <= result.value <= 1.0
    assert result.sample_size == 3


def test_overshoot_detected_on_direction_reversal():
    telemetry = _telemetry(
        [_mk_move(0, 0, 0), _mk_move(120, 0, 100), _mk_move(100, 0, 200)],
        [_mk_click(100, 0, 200)],
    )
    metrics = compute_pointer_metrics(telemetry).global_metrics

    assert metrics["overshoot_rate"].value == pytest.approx(1.0)
    assert metrics["path_efficiency"].value == pytest.approx(100.0 / 140.0)
    assert 0.0 <= metrics["path_efficiency"].value <= 1.0


def test_approach_path_starts_at_previous_click():
    moves = [_mk_move(0, 0, 0), _mk_move(50, 0, 50), _mk_move(60, 0, 150), _mk_move(90, 0, 190)]
    clicks = [_mk_click(50, 0, 100), _mk_click(100, 0, 200)]
    paths = build_approach_paths(moves, clicks)

    assert len(paths) == 2
    assert paths[1].points[0] == (50, 0)
    assert paths[1].points[-1] == (100, 0)
    assert paths[1].efficiency == pytest.approx(1.0)


def test_tagged_samples_only_count_for_their_target():
    moves = [
        _mk_move(0, 0, 0, target_id="other"),
        _mk_move(0, 50, 10, target_id="other"),
        _mk_move(10, 0, 20, target_id="opt"),
        _mk_move(20, 0, 30, target_id="opt"),
    ]
    paths = build_approach_paths(moves, [_mk_click(30, 0, 40, target_id="opt")])
    assert len(paths) == 1
    assert paths[0].points[0] == (10, 0)


def test_no_paths_reports_fallbacks():
    metrics = compute_pointer_metrics(_telemetry([], [_mk_click(0, 0, 0)])).global_metrics
    assert not metrics["path_efficiency"].calculated
    assert metrics["path_efficiency"].value == pytest.approx(0.8)
    assert metrics["overshoot_rate"].value == pytest.approx(0.2)
    assert metrics["click_precision"].calculated


def test_metrics_are_computed_per_question():
    telemetry = _telemetry(
        [
            _mk_move(0, 0, 0, question_id="q1"),
            _mk_move(30, 40, 500, question_id="q1"),
            _mk_move(0, 0, 900, question_id="q2"),
        ],
        [_mk_click(30, 40, 500, question_id="q1")],
    )
    scoped = compute_pointer_metrics(telemetry)

    assert set(scoped.question_metrics) == {"q1", "q2"}
    q1 = scoped.question_metrics["q1"]
    q2 = scoped.question_metrics["q2"]
    assert q1["average_velocity"].value == pytest.approx(100.0)
    assert not q2["average_velocity"].calculated
    assert not q2["click_precision"].calculated


def test_explicit_question_ids_include_unseen_questions():
    scoped = compute_pointer_metrics(_telemetry([_mk_move(0, 0, 0)]), question_ids=["q9"])
    assert set(scoped.question_metrics) == {"q9"}
    assert all(not r.calculated for r in scoped.question_metrics["q9"].values())


def test_overshoot_detected_when_pointer_rests_at_turning_point():
    telemetry = _telemetry(
        [_mk_move(0, 0, 0), _mk_move(120, 0, 100), _mk_move(120, 0, 150), _mk_move(100, 0, 200)],
        [_mk_click(100, 0, 200)],
    )
    paths = build_approach_paths(telemetry.movements, telemetry.interactions)

    assert paths[0].direction_changes == 1
    assert compute_pointer_metrics(telemetry).global_metrics["overshoot_rate"].value == pytest.approx(1.0)


def test_approach_path_ends_at_target_centre():
    moves = [_mk_move(0, 0, 0), _mk_move(50, 0, 100)]
    paths = build_approach_paths(moves, [_mk_click(50, 10, 100, target=(50, 0))])

    assert paths[0].points[-1] == (50, 0)
    assert paths[0].efficiency == pytest.approx(1.0)
