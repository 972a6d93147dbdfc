"""User-facing commands, one method per editor command."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from repl_test_bridge.aggregator import ReportAggregator
from repl_test_bridge.annotations import AnnotationStore
from repl_test_bridge.channels.base import EvalChannel
from repl_test_bridge.config import ProjectConfig
from repl_test_bridge.controller import (
    Notice,
    NoticeLevel,
    RunController,
    discard_notice,
)
from repl_test_bridge.errors import BridgeError, NoProblemFoundError
from repl_test_bridge.paths import PathMapper, namespace_of

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class BridgeCommands:
    """Entry points bound to editor commands.

    Errors never escape these methods; they are turned into notices.
    """

    controller: RunController
    mapper: PathMapper

    @classmethod
    def create(
        cls,
        channel: EvalChannel,
        project_root: Path,
        config: ProjectConfig | None = None,
        notify: Callable[[Notice], None] = discard_notice,
    ) -> "BridgeCommands":
        """Wire a controller, store and aggregator for one project."""
        config = config or ProjectConfig()
        store = AnnotationStore(
            aggregator=ReportAggregator(filter_expression=config.filter)
        )
        controller = RunController(
            channel=channel,
            store=store,
            layout=config.layout(project_root),
            notify=notify,
        )
        return cls(controller=controller, mapper=config.path_mapper())

    @property
    def store(self) -> AnnotationStore:
        return self.controller.store

    @property
    def aggregator(self) -> ReportAggregator:
        return self.controller.store.aggregator

    def _notify(self, level: NoticeLevel, text: str) -> None:
        self.controller.notify(Notice(level=level, text=text))

    async def run_tests(self) -> int | None:
        """Start a run; returns its generation, or None when refused."""
        try:
            return await self.controller.start()
        except BridgeError as exc:
            log.error("Could not start test run: %s", exc)
            self._notify("error", str(exc))
            return None

    def show_result_at_point(self, file: Path, offset: int) -> str | None:
        """Message of the annotation under the cursor, if any."""
        annotation = self.store.find_at_point(file, offset)
        if annotation is None:
            self._notify("info", "No test result at point")
            return None
        level: NoticeLevel = "failure" if annotation.severity == "fail" else "error"
        self._notify(level, annotation.message)
        return annotation.message

    def clear_annotations(self) -> None:
        """Remove every annotation and zero the counters."""
        self.store.clear_all()

    def next_problem(self, file: Path, offset: int) -> int:
        """New cursor offset; unchanged when there is no next problem."""
        try:
            return self.store.navigator_for(file).next_problem(offset)
        except NoProblemFoundError as exc:
            self._notify("info", str(exc))
            return offset

    def previous_problem(self, file: Path, offset: int) -> int:
        """New cursor offset; unchanged when there is no previous problem."""
        try:
            return self.store.navigator_for(file).previous_problem(offset)
        except NoProblemFoundError as exc:
            self._notify("info", str(exc))
            return offset

    def jump_to_implementation(self, file: Path) -> Path | None:
        """Implementation file tested by the test namespace in ``file``."""
        try:
            relative = self.mapper.implementation_path_for(namespace_of(file))
        except BridgeError as exc:
            self._notify("error", str(exc))
            return None
        return self.controller.layout.source_dir / relative

    def jump_to_test(self, file: Path) -> Path | None:
        """Test file for the implementation namespace in ``file``."""
        try:
            relative = self.mapper.test_path_for(namespace_of(file))
        except BridgeError as exc:
            self._notify("error", str(exc))
            return None
        return self.controller.layout.test_dir / relative

    def set_filter(self, expression: str | None) -> None:
        """Restrict subsequent runs to namespaces matching ``expression``."""
        self.aggregator.set_filter(expression)
        log.info("Test filter set to %s", self.aggregator.filter_expression)
