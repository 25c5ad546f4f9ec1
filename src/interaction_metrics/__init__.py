# ABOUTME: Exposes the pointer and keyboard calculators plus the entry assembler.
# ABOUTME: Each calculator returns global and per-question results keyed by metric name.

from .assembler import AssembledMetrics, assemble, assemble_entries
from .keyboard import compute_keyboard_metrics
from .pointer import compute_pointer_metrics

__all__ = [
    "AssembledMetrics",
    "assemble",
    "assemble_entries",
    "compute_keyboard_metrics",
    "compute_pointer_metrics",
]
