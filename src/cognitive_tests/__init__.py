# ABOUTME: Exposes the scorers for the three cognitive tests.
# ABOUTME: Each scorer returns None for a test that was never attempted.

from .digit_span import score_digit_span
from .sustained_attention import score_sustained_attention
from .trail_making import score_trail_making

__all__ = ["score_digit_span", "score_sustained_attention", "score_trail_making"]
