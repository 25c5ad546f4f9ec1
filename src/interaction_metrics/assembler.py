# ABOUTME: Merges calculator outputs into global and per-question metric entries for storage.
# ABOUTME: Enforces one entry per key within a scope and marks insufficient data explicitly.

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Set, Tuple

from src.common.errors import ContractViolation
from src.common.schemas import MetricEntry, MetricResult, ScopedMetrics


@dataclass(frozen=True)
class AssembledMetrics:
    global_entries: Tuple[MetricEntry, ...] = ()
    question_entries: Tuple[MetricEntry, ...] = ()

    def all_entries(self) -> Tuple[MetricEntry, ...]:
        return self.global_entries + self.question_entries

    def by_scope(self) -> Dict[Optional[str], Dict[str, MetricResult]]:
        """Read entries back as {question_id or None: {metric_key: result}}."""

        scopes: Dict[Optional[str], Dict[str, MetricResult]] = {}
        for entry in self.all_entries():
            scopes.setdefault(entry.question_id, {})[entry.metric_key] = entry.as_result()
        return scopes

    def question_ids(self) -> List[str]:
        return sorted({e.question_id for e in self.question_entries if e.question_id is not None})


def assemble(pointer_metrics: ScopedMetrics, keyboard_metrics: ScopedMetrics) -> AssembledMetrics:
    """
    Tag calculator outputs with their scope and collect them into entry collections.

    Raises ContractViolation when two calculators emit the same key for one scope.
    """

    entries: List[MetricEntry] = []
    for source in (pointer_metrics, keyboard_metrics):
        entries.extend(_scope_entries(None, source.global_metrics))
        for question_id, metrics in source.question_metrics.items():
            entries.extend(_scope_entries(question_id, metrics))
    return assemble_entries(entries)


def assemble_entries(entries: Iterable[MetricEntry]) -> AssembledMetrics:
    global_entries: List[MetricEntry] = []
    question_entries: Dict[str, List[MetricEntry]] = {}
    seen: Set[Tuple[Optional[str], str]] = set()

    for entry in entries:
        _check_entry(entry)
        scope_key = (entry.question_id, entry.metric_key)
        if scope_key in seen:
            scope = "global" if entry.question_id is None else f"question '{entry.question_id}'"
            raise ContractViolation(f"Duplicate metric '{entry.metric_key}' in {scope} scope.")
        seen.add(scope_key)

        if entry.calculated and entry.sample_size == 0:
            entry = replace(entry, calculated=False)

        if entry.question_id is None:
            global_entries.append(entry)
        else:
            question_entries.setdefault(entry.question_id, []).append(entry)

    ordered_questions = [e for qid in sorted(question_entries) for e in question_entries[qid]]
    return AssembledMetrics(global_entries=tuple(global_entries), question_entries=tuple(ordered_questions))


def _scope_entries(question_id: Optional[str], metrics) -> List[MetricEntry]:
    if question_id is not None and not question_id:
        raise ContractViolation("Per-question metrics require a non-empty question id.")
    return [
        MetricEntry(
            question_id=question_id,
            metric_key=key,
            value=result.value,
            sample_size=result.sample_size,
            calculated=result.calculated,
        )
        for key, result in metrics.items()
    ]


def _check_entry(entry: MetricEntry) -> None:
    if not entry.metric_key:
        raise ContractViolation("Metric entry is missing its key.")
    if entry.sample_size < 0:
        raise ContractViolation(
            f"Metric '{entry.metric_key}' has negative sample size {entry.sample_size}."
        )
