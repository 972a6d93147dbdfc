"""Test factories for generating result data."""

from polyfactory import Use
from polyfactory.factories import DataclassFactory

from repl_test_bridge.models.result import (
    AssertionOutcome,
    TestResultRecord,
    TestRunSummary,
)


class TestRunSummaryFactory(DataclassFactory[TestRunSummary]):
    """Factory for TestRunSummary."""

    __model__ = TestRunSummary

    filter_expression = None


class AssertionOutcomeFactory(DataclassFactory[AssertionOutcome]):
    """Factory for AssertionOutcome."""

    __model__ = AssertionOutcome

    kind = "fail"
    message = None


class TestResultRecordFactory(DataclassFactory[TestResultRecord]):
    """Factory for TestResultRecord."""

    __model__ = TestResultRecord

    source_file = "my/ns.clj"
    assertions = Use(lambda: (AssertionOutcomeFactory.build(),))
