"""Storage of problem annotations placed into source files."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from repl_test_bridge.aggregator import ReportAggregator
from repl_test_bridge.models.annotation import ProblemAnnotation, ProblemSeverity
from repl_test_bridge.navigator import ProblemNavigator

log = logging.getLogger(__name__)


def line_range(text: str, line: int) -> tuple[int, int]:
    """Return the ``[start, end)`` character range of a 1-based line.

    Lines outside the text are clamped to the first or last line. The range
    stops before the line terminator, except on a blank line where it covers
    the terminator so the line can still be pointed at.
    """
    lines = text.splitlines(keepends=True)
    if not lines:
        return 0, 0

    index = min(max(line, 1), len(lines)) - 1
    start = sum(len(previous) for previous in lines[:index])
    content = lines[index].splitlines()
    if not content or not content[0]:
        return start, start + len(lines[index])
    return start, start + len(content[0])


@dataclass(kw_only=True)
class AnnotationStore:
    """Owns every live annotation, indexed by file.

    Clearing the store also resets the attached aggregator so counters never
    outlive the annotations they describe.
    """

    aggregator: ReportAggregator
    _annotations: dict[Path, list[ProblemAnnotation]] = field(
        default_factory=dict, repr=False
    )

    def add_annotation(
        self,
        file: Path | str,
        line: int,
        severity: ProblemSeverity,
        message: str,
    ) -> ProblemAnnotation:
        """Annotate ``line`` of ``file`` with a problem.

        Raises:
            FileNotFoundError: If ``file`` does not exist

        """
        path = _key(file)
        if not path.is_file():
            raise FileNotFoundError(f"Annotation target not found: {path}")

        start, end = line_range(path.read_text(encoding="utf-8"), line)
        annotation = ProblemAnnotation(
            file=path,
            line=line,
            severity=severity,
            message=message,
            start=start,
            end=end,
        )
        self._annotations.setdefault(path, []).append(annotation)
        log.debug("Annotated %s:%d (%s)", path, line, severity)
        return annotation

    def clear_all(self) -> None:
        """Remove all annotations and reset the run counters."""
        if self._annotations:
            log.info("Clearing annotations in %d file(s)", len(self._annotations))
        self._annotations.clear()
        self.aggregator.reset()

    def find_at_point(self, file: Path | str, offset: int) -> ProblemAnnotation | None:
        """Most recently added annotation of ``file`` covering ``offset``."""
        for annotation in reversed(self._annotations.get(_key(file), [])):
            if annotation.contains(offset):
                return annotation
        return None

    def annotations_for(self, file: Path | str) -> Sequence[ProblemAnnotation]:
        """Annotations of ``file`` ordered by position, then insertion."""
        return sorted(self._annotations.get(_key(file), []), key=lambda a: a.start)

    def files(self) -> Sequence[Path]:
        """Files that currently carry annotations."""
        return list(self._annotations)

    def navigator_for(self, file: Path | str) -> ProblemNavigator:
        """Navigator over the annotations of a single file."""
        return ProblemNavigator(annotations=self.annotations_for(file))


def _key(file: Path | str) -> Path:
    return Path(file).resolve()
