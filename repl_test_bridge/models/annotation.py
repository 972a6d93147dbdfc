"""Models for annotations placed into source files."""

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

type ProblemSeverity = Literal["fail", "error"]


@dataclass(frozen=True, kw_only=True)
class ProblemAnnotation:
    """A failing or erroring assertion attached to a line of a file.

    The range ``[start, end)`` covers the line from its first character up to,
    but excluding, the line terminator. Blank lines cover their terminator. An
    empty range (empty file) still contains its own start.
    """

    file: Path
    line: int
    severity: ProblemSeverity
    message: str
    start: int
    end: int

    def contains(self, offset: int) -> bool:
        """Whether ``offset`` falls inside the annotated range."""
        if self.start == self.end:
            return offset == self.start
        return self.start <= offset < self.end
