# ABOUTME: Verifies the scoring CLI exposes its commands and scores payload files.
# ABOUTME: Runs the Typer app in-process against temporary payload files.

import json

from typer.testing import CliRunner

from scripts import score_submission


def test_score_cli_has_score_and_labels_commands():
    app = score_submission.app
    command_names = {cmd.name or cmd.callback.__name__ for cmd in app.registered_commands}
    assert {"score", "labels"} <= command_names


def test_score_writes_metric_entries(tmp_path):
    interaction = tmp_path / "interaction.json"
    interaction.write_text(
        json.dumps(
            {
                "movements": [{"x": 0, "y": 0, "timestamp": 0}, {"x": 30, "y": 40, "timestamp": 500}],
                "keyboardEvents": [],
            }
        )
    )
    metrics_out = tmp_path / "out" / "metrics.parquet"

    result = CliRunner().invoke(
        score_submission.app,
        ["score", "--interaction", str(interaction), "--metrics-out", str(metrics_out)],
    )
    assert result.exit_code == 0, result.output
    assert metrics_out.exists()


def test_score_rejects_malformed_payload(tmp_path):
    digit_span = tmp_path / "span.json"
    digit_span.write_text("not json")

    result = CliRunner().invoke(score_submission.app, ["score", "--digit-span", str(digit_span)])
    assert result.exit_code != 0
