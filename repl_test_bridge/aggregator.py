"""Aggregation of the current run's counters and namespace filter."""

from dataclasses import dataclass, field
from typing import Literal

from repl_test_bridge.models.result import TestRunSummary

type Severity = Literal["success", "failure", "error"]


def normalize_filter(expression: str | None) -> str | None:
    """Treat an empty or blank filter as no filter."""
    if expression is None or not expression.strip():
        return None
    return expression


@dataclass(kw_only=True)
class ReportAggregator:
    """Holds the last recorded summary and the filter for the next run.

    The filter outlives runs and counter resets; it only changes through
    ``set_filter``.
    """

    filter_expression: str | None = None
    summary: TestRunSummary = field(default_factory=TestRunSummary)

    def __post_init__(self) -> None:
        self.filter_expression = normalize_filter(self.filter_expression)

    def set_filter(self, expression: str | None) -> None:
        """Replace the namespace filter used by subsequent runs."""
        self.filter_expression = normalize_filter(expression)

    def record_summary(self, summary: TestRunSummary) -> None:
        """Replace the current counters with ``summary``."""
        self.summary = summary

    def reset(self) -> None:
        """Zero the counters, keeping the filter."""
        self.summary = TestRunSummary()

    def classify(self) -> Severity:
        """Errors take precedence over failures."""
        if self.summary.error_count > 0:
            return "error"
        if self.summary.fail_count > 0:
            return "failure"
        return "success"

    def format(self) -> str:
        """Render the summary as a single sentence."""
        summary = self.summary
        scope = (
            f" matching {summary.filter_expression}"
            if normalize_filter(summary.filter_expression)
            else ""
        )
        return (
            f"Ran {summary.test_count} tests{scope} "
            f"in {summary.elapsed_seconds:.2f} seconds. "
            f"{summary.pass_count} passed, {summary.fail_count} failures, "
            f"{summary.error_count} errors."
        )
