"""Navigation between annotated regions of a single file."""

import bisect
from collections.abc import Sequence
from dataclasses import dataclass, field

from repl_test_bridge.errors import NoProblemFoundError
from repl_test_bridge.models.annotation import ProblemAnnotation


@dataclass(frozen=True, kw_only=True)
class ProblemNavigator:
    """Finds the next or previous annotated region from a cursor offset.

    A region is a maximal run of positions covered by the same set of
    annotations. Movement scans away from the cursor until the covering set
    changes to a different, non-empty set, so the region under the cursor is
    never returned.

    Between two consecutive range boundaries the covering set is constant,
    which lets the scan visit boundaries instead of every character.
    """

    annotations: Sequence[ProblemAnnotation]
    _boundaries: Sequence[int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        points = {a.start for a in self.annotations} | {a.end for a in self.annotations}
        object.__setattr__(self, "_boundaries", sorted(points))

    def covering(self, offset: int) -> frozenset[int]:
        """Identify the annotations covering ``offset`` by their index."""
        return frozenset(
            index
            for index, annotation in enumerate(self.annotations)
            if annotation.contains(offset)
        )

    def next_boundary(self, offset: int) -> int | None:
        """Start of the next region after ``offset``, or None."""
        current = self.covering(offset)
        start = bisect.bisect_right(self._boundaries, offset)
        for point in self._boundaries[start:]:
            covering = self.covering(point)
            if covering and covering != current:
                return point
        return None

    def previous_boundary(self, offset: int) -> int | None:
        """Start of the closest region before the one at ``offset``, or None."""
        current = self.covering(offset)
        # Segment starts strictly before the cursor, closest first. The segment
        # holding the cursor shares its covering set and is skipped below.
        starts = self._boundaries[: bisect.bisect_right(self._boundaries, offset - 1)]
        found: frozenset[int] | None = None
        region_start: int | None = None
        for point in reversed(starts):
            covering = self.covering(point)
            if found is None:
                if covering and covering != current:
                    found, region_start = covering, point
            elif covering == found:
                region_start = point
            else:
                break
        return region_start

    def next_problem(self, offset: int) -> int:
        """Like ``next_boundary`` but raises when nothing follows."""
        if (point := self.next_boundary(offset)) is None:
            raise NoProblemFoundError("next")
        return point

    def previous_problem(self, offset: int) -> int:
        """Like ``previous_boundary`` but raises when nothing precedes."""
        if (point := self.previous_boundary(offset)) is None:
            raise NoProblemFoundError("previous")
        return point
