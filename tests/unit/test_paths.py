"""Tests for namespace to path mapping."""

from pathlib import Path, PurePosixPath

import pytest

from repl_test_bridge.errors import NamespaceError
from repl_test_bridge.paths import NamespacePath, PathMapper, ProjectLayout, namespace_of


@pytest.fixture
def mapper() -> PathMapper:
    return PathMapper()


class TestNamespacePath:
    """Tests for NamespacePath."""

    def test_parse_and_str(self) -> None:
        namespace = NamespacePath.parse("my.project.frob")

        assert namespace.segments == ("my", "project", "frob")
        assert str(namespace) == "my.project.frob"

    @pytest.mark.parametrize("raw", ["", "my..frob", ".frob", "frob."])
    def test_rejects_empty_segments(self, raw: str) -> None:
        with pytest.raises(NamespaceError):
            NamespacePath.parse(raw)


class TestDefaultPosition:
    """Marker as second-to-last segment."""

    def test_pivot_of_four_segment_test_namespace(self, mapper: PathMapper) -> None:
        assert mapper.pivot_index(NamespacePath.parse("my.project.test.frob")) == 2

    def test_implementation_path(self, mapper: PathMapper) -> None:
        assert mapper.implementation_path_for("my.project.test.frob") == PurePosixPath(
            "my/project/frob.clj"
        )

    def test_test_path(self, mapper: PathMapper) -> None:
        assert mapper.test_path_for("my.project.frob") == PurePosixPath(
            "my/project/test/frob.clj"
        )

    def test_hyphens_become_underscores(self, mapper: PathMapper) -> None:
        assert mapper.implementation_path_for("my-project.test.frob-core") == PurePosixPath(
            "my_project/frob_core.clj"
        )
        assert mapper.test_path_for("my-project.frob") == PurePosixPath(
            "my_project/test/frob.clj"
        )

    def test_single_segment_implementation(self, mapper: PathMapper) -> None:
        assert mapper.test_namespace_for("frob") == NamespacePath(("test", "frob"))

    def test_rejects_namespace_without_room_for_marker(self, mapper: PathMapper) -> None:
        with pytest.raises(NamespaceError, match="out of range"):
            mapper.implementation_namespace_for("frob")


class TestConfiguredPosition:
    """Non-default marker positions and markers."""

    def test_leading_marker(self) -> None:
        mapper = PathMapper(segment_position=0)

        assert mapper.implementation_path_for("test.my.frob") == PurePosixPath(
            "my/frob.clj"
        )
        assert mapper.test_namespace_for("my.frob") == NamespacePath(
            ("test", "my", "frob")
        )

    def test_marker_further_from_the_end(self) -> None:
        mapper = PathMapper(segment_position=-2, marker="spec", extension=".cljc")

        assert mapper.test_namespace_for("a.b.c") == NamespacePath(
            ("a", "spec", "b", "c")
        )
        assert mapper.implementation_path_for("a.spec.b.c") == PurePosixPath(
            "a/b/c.cljc"
        )

    def test_resolution_follows_segment_count(self) -> None:
        """The same negative position resolves per namespace length."""
        mapper = PathMapper()

        assert mapper.pivot_index(NamespacePath.parse("a.test.b")) == 1
        assert mapper.pivot_index(NamespacePath.parse("a.b.c.d.test.e")) == 4

    def test_rejects_position_past_the_end(self) -> None:
        mapper = PathMapper(segment_position=5)

        with pytest.raises(NamespaceError):
            mapper.test_namespace_for("a.b")


@pytest.mark.parametrize(
    ("segment_position", "namespace"),
    [
        (-1, "my.project.frob"),
        (-1, "frob"),
        (-2, "a.b.c.d"),
        (0, "a.b"),
        (1, "a.b.c"),
        (3, "a.b.c"),
    ],
)
def test_marker_insertion_and_removal_are_inverse(
    segment_position: int, namespace: str
) -> None:
    """Removing the inserted marker restores the original segments."""
    mapper = PathMapper(segment_position=segment_position)
    original = NamespacePath.parse(namespace)

    test_ns = mapper.test_namespace_for(original)

    assert len(test_ns.segments) == len(original.segments) + 1
    assert test_ns.segments[mapper.pivot_index(test_ns)] == "test"
    assert mapper.implementation_namespace_for(test_ns) == original


class TestProjectLayout:
    """Tests for ProjectLayout."""

    def test_resolves_against_test_tree_first(self, tmp_path: Path) -> None:
        for tree in ("test", "src"):
            (tmp_path / tree / "my").mkdir(parents=True)
            (tmp_path / tree / "my" / "ns.clj").write_text("")
        layout = ProjectLayout(root=tmp_path)

        assert layout.resolve("my/ns.clj") == tmp_path / "test" / "my" / "ns.clj"

    def test_falls_back_to_source_tree(self, tmp_path: Path) -> None:
        (tmp_path / "lib" / "my").mkdir(parents=True)
        (tmp_path / "lib" / "my" / "ns.clj").write_text("")
        layout = ProjectLayout(root=tmp_path, source_root="lib")

        assert layout.resolve("my/ns.clj") == tmp_path / "lib" / "my" / "ns.clj"

    def test_returns_first_candidate_when_nothing_exists(self, tmp_path: Path) -> None:
        layout = ProjectLayout(root=tmp_path)

        assert layout.resolve("my/ns.clj") == tmp_path / "test" / "my" / "ns.clj"

    def test_keeps_absolute_paths(self, tmp_path: Path) -> None:
        layout = ProjectLayout(root=tmp_path)
        absolute = tmp_path / "elsewhere.clj"

        assert layout.resolve(absolute) == absolute


class TestNamespaceOf:
    """Tests for namespace_of."""

    def test_reads_ns_form(self, tmp_path: Path) -> None:
        path = tmp_path / "frob_test.clj"
        path.write_text(
            ";; tests\n"
            "(ns my.project.test.frob\n"
            "  (:require [clojure.test :refer :all]))\n"
        )

        assert namespace_of(path) == NamespacePath(("my", "project", "test", "frob"))

    def test_skips_metadata(self, tmp_path: Path) -> None:
        path = tmp_path / "frob.clj"
        path.write_text("(ns ^:no-doc my-project.frob)\n")

        assert str(namespace_of(path)) == "my-project.frob"

    def test_raises_without_ns_form(self, tmp_path: Path) -> None:
        path = tmp_path / "script.clj"
        path.write_text("(println :hi)\n")

        with pytest.raises(NamespaceError, match="No namespace declaration"):
            namespace_of(path)
