"""Mapping between test namespaces, implementation namespaces and files.

A test namespace mirrors its implementation namespace with one extra marker
segment, e.g. ``my.project.test.frob`` tests ``my.project.frob``. The marker
position is configurable; negative positions count from the end of the test
namespace.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from repl_test_bridge.errors import NamespaceError

_NS_FORM = re.compile(r"\(\s*ns\s+(?:\^\S+\s+)*([^\s()\[\]{}\"]+)")


@dataclass(frozen=True)
class NamespacePath:
    """A dotted namespace name split into segments."""

    segments: tuple[str, ...]

    @classmethod
    def parse(cls, namespace: "str | NamespacePath") -> "NamespacePath":
        """Split a dotted name, rejecting empty segments."""
        if isinstance(namespace, NamespacePath):
            return namespace
        segments = tuple(namespace.strip().split("."))
        if not all(segments):
            raise NamespaceError(f"Invalid namespace: {namespace!r}")
        return cls(segments)

    def __str__(self) -> str:
        return ".".join(self.segments)


@dataclass(frozen=True, kw_only=True)
class PathMapper:
    """Derives implementation and test counterparts of a namespace."""

    segment_position: int = -1
    marker: str = "test"
    extension: str = ".clj"

    def pivot_index(self, namespace: NamespacePath) -> int:
        """Index of the marker segment within a test namespace."""
        count = len(namespace.segments)
        index = (
            count + self.segment_position - 1
            if self.segment_position < 0
            else self.segment_position
        )
        if not 0 <= index < count:
            raise NamespaceError(
                f"Segment position {self.segment_position} is out of range "
                f"for {namespace}"
            )
        return index

    def insertion_index(self, namespace: NamespacePath) -> int:
        """Index at which the marker is inserted into an implementation namespace."""
        count = len(namespace.segments)
        index = (
            count + self.segment_position
            if self.segment_position < 0
            else self.segment_position
        )
        if not 0 <= index <= count:
            raise NamespaceError(
                f"Segment position {self.segment_position} is out of range "
                f"for {namespace}"
            )
        return index

    def implementation_namespace_for(
        self, namespace: str | NamespacePath
    ) -> NamespacePath:
        """Drop the marker segment from a test namespace."""
        test_ns = NamespacePath.parse(namespace)
        index = self.pivot_index(test_ns)
        return NamespacePath(test_ns.segments[:index] + test_ns.segments[index + 1 :])

    def test_namespace_for(self, namespace: str | NamespacePath) -> NamespacePath:
        """Insert the marker segment into an implementation namespace."""
        impl_ns = NamespacePath.parse(namespace)
        index = self.insertion_index(impl_ns)
        return NamespacePath(
            impl_ns.segments[:index] + (self.marker,) + impl_ns.segments[index:]
        )

    def implementation_path_for(self, namespace: str | NamespacePath) -> PurePosixPath:
        """Relative file path of the implementation a test namespace covers."""
        return self.path_for(self.implementation_namespace_for(namespace))

    def test_path_for(self, namespace: str | NamespacePath) -> PurePosixPath:
        """Relative file path of the tests for an implementation namespace."""
        return self.path_for(self.test_namespace_for(namespace))

    def path_for(self, namespace: str | NamespacePath) -> PurePosixPath:
        """Relative file path of a namespace, hyphens written as underscores."""
        segments = [
            s.replace("-", "_") for s in NamespacePath.parse(namespace).segments
        ]
        return PurePosixPath(*segments[:-1], segments[-1] + self.extension)


@dataclass(frozen=True, kw_only=True)
class ProjectLayout:
    """Where implementation and test trees live under a project root."""

    root: Path
    source_root: str = "src"
    test_root: str = "test"

    @property
    def source_dir(self) -> Path:
        return self.root / self.source_root

    @property
    def test_dir(self) -> Path:
        return self.root / self.test_root

    def candidates(self, file: str | Path) -> Sequence[Path]:
        """Places a file reported by the runtime may live, in lookup order."""
        path = Path(file)
        if path.is_absolute():
            return [path]
        return [self.test_dir / path, self.source_dir / path, self.root / path]

    def resolve(self, file: str | Path) -> Path:
        """First existing candidate, or the first candidate when none exists."""
        candidates = self.candidates(file)
        return next((c for c in candidates if c.is_file()), candidates[0])


def namespace_of(file: Path) -> NamespacePath:
    """Read the namespace declared by the ``(ns ...)`` form of ``file``."""
    match = _NS_FORM.search(file.read_text(encoding="utf-8"))
    if match is None:
        raise NamespaceError(f"No namespace declaration in {file}")
    return NamespacePath.parse(match.group(1))
