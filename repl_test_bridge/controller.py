"""Run controller coordinating one test run against the remote runtime."""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from functools import partial
from typing import Literal

from repl_test_bridge import forms
from repl_test_bridge.aggregator import ReportAggregator
from repl_test_bridge.annotations import AnnotationStore
from repl_test_bridge.channels.base import EvalChannel, EvalOutcome
from repl_test_bridge.decoder import decode_details, decode_summary
from repl_test_bridge.errors import (
    BridgeError,
    MissingMetadataError,
    NotConnectedError,
)
from repl_test_bridge.models.annotation import ProblemAnnotation, ProblemSeverity
from repl_test_bridge.models.result import AssertionOutcome, TestResultRecord
from repl_test_bridge.paths import ProjectLayout

log = logging.getLogger(__name__)

type RunState = Literal[
    "idle", "running", "decoding", "summarizing", "awaiting_details", "annotating"
]
type NoticeLevel = Literal["success", "failure", "error", "warning", "info"]


@dataclass(frozen=True, kw_only=True)
class Notice:
    """A message for the user, with the level used to style it."""

    level: NoticeLevel
    text: str


def discard_notice(notice: Notice) -> None:
    """Default sink for notices when no editor is attached."""


def describe_problem(outcome: AssertionOutcome) -> str:
    """Text shown for a failing or erroring assertion."""
    if outcome.kind == "error":
        text = f"Error: {outcome.actual}"
    else:
        text = f"Expected {outcome.expected}, got {outcome.actual}"
    return f"{outcome.message}: {text}" if outcome.message else text


@dataclass(kw_only=True)
class RunController:
    """Drives the run lifecycle.

    ``idle -> running -> decoding -> summarizing -> [awaiting_details ->
    annotating ->] idle``. Every start bumps the run generation; responses
    carrying an older generation are dropped.
    """

    channel: EvalChannel
    store: AnnotationStore
    layout: ProjectLayout
    notify: Callable[[Notice], None] = field(default=discard_notice)
    state: RunState = field(default="idle", init=False)
    generation: int = field(default=0, init=False)
    _reporting_installed: bool = field(default=False, init=False, repr=False)
    _pending: asyncio.Task[None] | None = field(default=None, init=False, repr=False)

    @property
    def aggregator(self) -> ReportAggregator:
        return self.store.aggregator

    async def start(self) -> int:
        """Start a new run and return its generation.

        Prior annotations and counters are cleared before the request is sent.

        Raises:
            NotConnectedError: If the channel is unreachable; nothing is changed

        """
        if not await self.channel.is_connected():
            raise NotConnectedError("Not connected to a running runtime")

        self.generation += 1
        generation = self.generation
        if self.state != "idle":
            log.info("Superseding run in state %s", self.state)
        self.store.clear_all()
        self.state = "running"

        try:
            await self.ensure_reporting_installed()
        except BridgeError:
            if generation == self.generation:
                self.state = "idle"
            raise
        if generation != self.generation:
            log.info("Run %d superseded before it was sent", generation)
            return generation

        log.info(
            "Starting test run %d (filter=%s)",
            generation,
            self.aggregator.filter_expression,
        )
        self._pending = self.channel.evaluate_async(
            forms.run_tests_form(self.aggregator.filter_expression),
            partial(self._on_summary, generation),
        )
        return generation

    async def ensure_reporting_installed(self) -> None:
        """Load the reporting namespace into the runtime once."""
        if self._reporting_installed:
            return
        log.info("Installing test reporting into the runtime")
        await self.channel.evaluate(forms.INSTALL_REPORTING)
        self._reporting_installed = True

    async def join(self) -> None:
        """Wait until the remote calls of the current run have completed."""
        while (task := self._pending) is not None and not task.done():
            await task

    def apply_results(
        self, records: Sequence[TestResultRecord | MissingMetadataError]
    ) -> Sequence[ProblemAnnotation]:
        """Annotate every failing or erroring assertion, skipping bad items."""
        annotations: list[ProblemAnnotation] = []

        for record in records:
            if isinstance(record, MissingMetadataError):
                self.notify(Notice(level="warning", text=str(record)))
                continue

            path = self.layout.resolve(record.source_file)
            for outcome in record.problems:
                severity: ProblemSeverity = (
                    "error" if outcome.kind == "error" else "fail"
                )
                try:
                    annotation = self.store.add_annotation(
                        path,
                        outcome.line or record.line or 1,
                        severity,
                        describe_problem(outcome),
                    )
                except (OSError, UnicodeDecodeError) as exc:
                    log.warning("Skipping annotation for %s: %s", record.test_id, exc)
                    self.notify(
                        Notice(level="warning", text=f"Cannot annotate {path}: {exc}")
                    )
                    continue
                annotations.append(annotation)

        log.info("Placed %d annotation(s)", len(annotations))
        return annotations

    def _is_stale(self, generation: int) -> bool:
        if generation != self.generation:
            log.info(
                "Ignoring response of superseded run %d (current %d)",
                generation,
                self.generation,
            )
            return True
        return False

    def _abort(self, exc: Exception) -> None:
        log.error("Test run %d aborted: %s", self.generation, exc, exc_info=exc)
        self.state = "idle"
        self.notify(Notice(level="error", text=str(exc)))

    def _on_summary(self, generation: int, outcome: EvalOutcome) -> None:
        if self._is_stale(generation):
            return
        try:
            self._handle_summary(generation, outcome)
        except Exception as exc:
            self._abort(exc)

    def _on_details(self, generation: int, outcome: EvalOutcome) -> None:
        if self._is_stale(generation):
            return
        try:
            self._handle_details(outcome)
        except Exception as exc:
            self._abort(exc)

    def _handle_summary(self, generation: int, outcome: EvalOutcome) -> None:
        if isinstance(outcome, Exception):
            raise outcome

        self.state = "decoding"
        summary = decode_summary(outcome)

        self.state = "summarizing"
        self.aggregator.record_summary(summary)
        self.notify(
            Notice(level=self.aggregator.classify(), text=self.aggregator.format())
        )

        if not summary.has_problems:
            self.state = "idle"
            return

        self.state = "awaiting_details"
        self._pending = self.channel.evaluate_async(
            forms.fetch_results_form(), partial(self._on_details, generation)
        )

    def _handle_details(self, outcome: EvalOutcome) -> None:
        if isinstance(outcome, Exception):
            raise outcome

        records = decode_details(outcome)
        self.state = "annotating"
        self.apply_results(records)
        self.state = "idle"
