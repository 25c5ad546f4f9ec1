# ABOUTME: Provides a CLI that scores one captured submission from payload files on disk.
# ABOUTME: Prints metric tables and optionally writes the entries and test results for storage.

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from src.common.config import load_engine_config
from src.common.errors import ContractViolation, PayloadError
from src.submission.export import (
    METRIC_LABELS,
    entries_to_frame,
    metric_label,
    result_to_record,
)
from src.submission.processor import SubmissionPayloads, SubmissionResult, process_submission

console = Console()
app = typer.Typer(help="Score behavioral telemetry and cognitive tests for one submission.")


def _read(path: Optional[Path]) -> Optional[bytes]:
    if path is None:
        return None
    return path.read_bytes()


def _option_for(kind: str) -> str:
    if kind in ("pointer", "keyboard"):
        return "--interaction"
    return "--" + kind.replace("_", "-")


@app.command()
def score(
    interaction: Optional[Path] = typer.Option(None, "--interaction", exists=True, dir_okay=False, help="Combined pointer and keyboard telemetry (JSON or gzip)."),
    sustained_attention: Optional[Path] = typer.Option(None, "--sustained-attention", exists=True, dir_okay=False, help="Sustained-attention test payload."),
    trail_making: Optional[Path] = typer.Option(None, "--trail-making", exists=True, dir_okay=False, help="Trail making test payload."),
    digit_span: Optional[Path] = typer.Option(None, "--digit-span", exists=True, dir_okay=False, help="Digit span test payload."),
    config: Optional[Path] = typer.Option(None, "--config", exists=True, dir_okay=False, help="Engine config YAML; defaults apply when omitted."),
    metrics_out: Optional[Path] = typer.Option(None, "--metrics-out", help="Output parquet for metric entries."),
    tests_out: Optional[Path] = typer.Option(None, "--tests-out", help="Output JSON for cognitive test results."),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    """
    Decode the supplied payloads, compute every metric, and show the results.
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)

    try:
        engine_config = load_engine_config(config)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc

    payloads = SubmissionPayloads.from_interaction_blob(
        _read(interaction),
        sustained_attention=_read(sustained_attention),
        trail_making=_read(trail_making),
        digit_span=_read(digit_span),
    )

    typer.echo("[score] Processing submission")
    try:
        result = process_submission(payloads, engine_config)
    except PayloadError as exc:
        raise typer.BadParameter(str(exc), param_hint=_option_for(exc.kind)) from exc
    except ContractViolation as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    _print_metrics(result)
    _print_tests(result)

    if metrics_out is not None:
        metrics_out.parent.mkdir(parents=True, exist_ok=True)
        entries_to_frame(result.metrics).to_parquet(metrics_out, index=False)
        typer.echo(f"[score] Wrote {len(result.metrics.all_entries())} metric entries to {metrics_out}")

    if tests_out is not None:
        records = {
            name: result_to_record(test_result)
            for name, test_result in (
                ("sustained_attention", result.sustained_attention),
                ("trail_making", result.trail_making),
                ("digit_span", result.digit_span),
            )
            if test_result is not None
        }
        tests_out.parent.mkdir(parents=True, exist_ok=True)
        tests_out.write_text(json.dumps(records, indent=2))
        typer.echo(f"[score] Wrote {len(records)} test results to {tests_out}")


@app.command()
def labels() -> None:
    """
    List every metric key with its display label.
    """
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Key")
    table.add_column("Label")
    for key, label in METRIC_LABELS.items():
        table.add_row(key, label)
    console.print(table)


def _print_metrics(result: SubmissionResult) -> None:
    console.rule("[bold blue]Interaction Metrics[/bold blue]")
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Scope")
    table.add_column("Metric")
    table.add_column("Value")
    table.add_column("Samples")
    for entry in result.metrics.all_entries():
        value = (
            f"[dim]{entry.value:.3f} (fallback)[/dim]" if entry.as_result().is_insufficient else f"{entry.value:.3f}"
        )
        table.add_row(entry.question_id or "global", metric_label(entry.metric_key), value, str(entry.sample_size))
    console.print(table)


def _print_tests(result: SubmissionResult) -> None:
    console.print()
    console.print("[bold green]Cognitive Tests[/bold green]")
    cpt, tmt, span = result.sustained_attention, result.trail_making, result.digit_span
    if cpt is None and tmt is None and span is None:
        console.print("[yellow]No cognitive tests attempted[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Test")
    table.add_column("Score")
    if cpt is not None:
        rt = f"{cpt.average_reaction_time:.0f} ms" if cpt.average_reaction_time is not None else "n/a"
        table.add_row("Sustained attention", f"detection {cpt.detection_rate:.2f}, RT {rt}")
    if tmt is not None:
        ratio = f"{tmt.b_to_a_ratio.value:.2f}" if tmt.b_to_a_ratio.calculated else "n/a"
        table.add_row(
            "Trail making",
            f"A {tmt.part_a_completion_time:.0f} ms, B {tmt.part_b_completion_time:.0f} ms, B/A {ratio}",
        )
    if span is not None:
        table.add_row("Digit span", f"highest {span.highest_span_achieved}, accuracy {span.accuracy:.2f}")
    console.print(table)


if __name__ == "__main__":
    app()
