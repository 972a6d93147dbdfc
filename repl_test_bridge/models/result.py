"""Models for decoded test run results."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Literal

type AssertionKind = Literal["pass", "fail", "error"]


@dataclass(frozen=True, kw_only=True)
class TestRunSummary:
    """Counters reported by the runtime for one test run."""

    __test__ = False

    filter_expression: str | None = None
    test_count: int = 0
    pass_count: int = 0
    fail_count: int = 0
    error_count: int = 0
    elapsed_seconds: float = 0.0

    @property
    def has_problems(self) -> bool:
        """Whether any assertion failed or errored."""
        return self.fail_count > 0 or self.error_count > 0


@dataclass(frozen=True, kw_only=True)
class AssertionOutcome:
    """Outcome of a single assertion executed by the runtime."""

    kind: AssertionKind
    message: str | None = None
    expected: str | None = None
    actual: str | None = None
    line: int | None = None


@dataclass(frozen=True, kw_only=True)
class TestResultRecord:
    """All assertion outcomes of one test var.

    Assertions keep the order they were decoded in. The runtime collector
    prepends each new outcome, so this is most recent first.
    """

    __test__ = False

    test_id: str
    source_file: str
    line: int | None = None
    name: str | None = None
    assertions: tuple[AssertionOutcome, ...] = ()

    @property
    def problems(self) -> tuple[AssertionOutcome, ...]:
        """Assertions that did not pass."""
        return tuple(a for a in self.assertions if a.kind != "pass")


def index_by_test(
    records: Iterable[TestResultRecord],
) -> Mapping[str, TestResultRecord]:
    """Key records by their qualified test name."""
    return {record.test_id: record for record in records}
