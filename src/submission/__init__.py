# ABOUTME: Entry point for scoring a whole submission and exporting its results.
# ABOUTME: Wraps the calculators and scorers behind one call.

from .processor import SubmissionPayloads, SubmissionResult, process_submission

__all__ = ["SubmissionPayloads", "SubmissionResult", "process_submission"]
