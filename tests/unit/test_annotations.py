"""Tests for the annotation store."""

from pathlib import Path

import pytest

from repl_test_bridge.aggregator import ReportAggregator
from repl_test_bridge.annotations import AnnotationStore, line_range
from repl_test_bridge.models.result import TestRunSummary

SOURCE = "(ns my.ns-test)\n\n(deftest t1\n  (is (= 1 2)))\n"


@pytest.fixture
def aggregator() -> ReportAggregator:
    return ReportAggregator(filter_expression="my.*")


@pytest.fixture
def store(aggregator: ReportAggregator) -> AnnotationStore:
    return AnnotationStore(aggregator=aggregator)


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    path = tmp_path / "ns_test.clj"
    path.write_text(SOURCE)
    return path


class TestLineRange:
    """Tests for line_range."""

    def test_first_line(self) -> None:
        assert line_range(SOURCE, 1) == (0, 15)

    def test_line_after_blank_line(self) -> None:
        assert line_range(SOURCE, 3) == (17, 28)

    def test_blank_line_covers_terminator(self) -> None:
        assert line_range(SOURCE, 2) == (16, 17)

    def test_blank_crlf_line_covers_terminator(self) -> None:
        assert line_range("a\r\n\r\nb", 2) == (3, 5)

    def test_clamps_out_of_range_lines(self) -> None:
        assert line_range(SOURCE, 0) == line_range(SOURCE, 1)
        assert line_range(SOURCE, 99) == line_range(SOURCE, 4)

    def test_empty_text(self) -> None:
        assert line_range("", 3) == (0, 0)

    def test_last_line_without_newline(self) -> None:
        assert line_range("a\nbcd", 2) == (2, 5)


class TestAddAnnotation:
    """Tests for add_annotation."""

    def test_annotates_whole_line(self, store: AnnotationStore, source_file: Path) -> None:
        annotation = store.add_annotation(source_file, 4, "fail", "Expected 1, got 2")

        assert (annotation.start, annotation.end) == (29, 44)
        assert SOURCE[annotation.start : annotation.end] == "  (is (= 1 2)))"
        assert annotation.file == source_file.resolve()
        assert annotation.severity == "fail"

    def test_raises_for_missing_file(self, store: AnnotationStore, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Annotation target not found"):
            store.add_annotation(tmp_path / "missing.clj", 1, "error", "boom")

        assert store.files() == []

    def test_keeps_duplicates_on_same_line(
        self, store: AnnotationStore, source_file: Path
    ) -> None:
        store.add_annotation(source_file, 4, "fail", "first")
        store.add_annotation(source_file, 4, "error", "second")

        assert [a.message for a in store.annotations_for(source_file)] == [
            "first",
            "second",
        ]

    def test_annotations_are_ordered_by_position(
        self, store: AnnotationStore, source_file: Path
    ) -> None:
        store.add_annotation(source_file, 4, "fail", "late")
        store.add_annotation(source_file, 1, "fail", "early")

        assert [a.line for a in store.annotations_for(source_file)] == [1, 4]


class TestFindAtPoint:
    """Tests for find_at_point."""

    def test_finds_covering_annotation(
        self, store: AnnotationStore, source_file: Path
    ) -> None:
        added = store.add_annotation(source_file, 3, "fail", "t1 failed")

        assert store.find_at_point(source_file, 20) == added
        assert store.find_at_point(str(source_file), 17) == added

    def test_prefers_most_recent(self, store: AnnotationStore, source_file: Path) -> None:
        store.add_annotation(source_file, 3, "fail", "older")
        newer = store.add_annotation(source_file, 3, "error", "newer")

        assert store.find_at_point(source_file, 20) == newer

    def test_returns_none_outside_annotations(
        self, store: AnnotationStore, source_file: Path
    ) -> None:
        store.add_annotation(source_file, 3, "fail", "t1 failed")

        assert store.find_at_point(source_file, 28) is None
        assert store.find_at_point(source_file, 0) is None

    def test_finds_annotation_on_blank_line(
        self, store: AnnotationStore, source_file: Path
    ) -> None:
        """Assertions reported on a blank line stay reachable."""
        added = store.add_annotation(source_file, 2, "error", "Error: boom")

        assert store.find_at_point(source_file, 16) == added
        assert store.navigator_for(source_file).next_problem(0) == 16

    def test_finds_annotation_in_empty_file(
        self, store: AnnotationStore, tmp_path: Path
    ) -> None:
        empty = tmp_path / "empty.clj"
        empty.write_text("")
        added = store.add_annotation(empty, 1, "fail", "Expected 1, got 2")

        assert (added.start, added.end) == (0, 0)
        assert store.find_at_point(empty, 0) == added

    def test_is_file_local(
        self, store: AnnotationStore, source_file: Path, tmp_path: Path
    ) -> None:
        other = tmp_path / "other.clj"
        other.write_text(SOURCE)
        store.add_annotation(source_file, 1, "fail", "here")

        assert store.find_at_point(other, 3) is None


class TestClearAll:
    """Tests for clear_all."""

    def test_clearing_is_total(
        self,
        store: AnnotationStore,
        aggregator: ReportAggregator,
        source_file: Path,
        tmp_path: Path,
    ) -> None:
        other = tmp_path / "other.clj"
        other.write_text(SOURCE)
        annotations = [
            store.add_annotation(source_file, 1, "fail", "a"),
            store.add_annotation(source_file, 4, "error", "b"),
            store.add_annotation(other, 3, "fail", "c"),
        ]
        aggregator.record_summary(
            TestRunSummary(test_count=3, pass_count=1, fail_count=1, error_count=1)
        )

        store.clear_all()

        for annotation in annotations:
            for offset in range(annotation.start, annotation.end):
                assert store.find_at_point(annotation.file, offset) is None
        assert store.files() == []
        assert aggregator.summary == TestRunSummary()
        assert aggregator.filter_expression == "my.*"

    def test_navigator_is_empty_after_clear(
        self, store: AnnotationStore, source_file: Path
    ) -> None:
        store.add_annotation(source_file, 1, "fail", "a")
        store.clear_all()

        assert store.navigator_for(source_file).next_boundary(0) is None
