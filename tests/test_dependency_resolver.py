"""Tests for dependency graph ordering and cycle detection."""

from collections.abc import Callable

from dayplan.models import parse_time
from dayplan.scheduler import DependencyResolver, Occurrence, ScheduledTask

MakeOccurrence = Callable[..., Occurrence]


def _ids(occurrences: list[Occurrence]) -> list[str]:
    return [occ.id for occ in occurrences]


class TestOrdering:
    """Topological order with priority inside each wave."""

    def test_prerequisites_come_first(self, make_occurrence: MakeOccurrence) -> None:
        occurrences = [
            make_occurrence("c", depends_on=("a", "b")),
            make_occurrence("b", depends_on=("a",)),
            make_occurrence("a"),
        ]

        resolution = DependencyResolver().resolve(occurrences)

        assert not resolution.cycle_detected
        assert _ids(resolution.order) == ["a", "b", "c"]

    def test_every_dependency_precedes_dependents(self, make_occurrence: MakeOccurrence) -> None:
        occurrences = [
            make_occurrence("deploy", depends_on=("test", "review")),
            make_occurrence("review", depends_on=("code",)),
            make_occurrence("test", depends_on=("code",)),
            make_occurrence("code"),
            make_occurrence("lunch"),
        ]

        resolution = DependencyResolver().resolve(occurrences)
        position = {task_id: i for i, task_id in enumerate(_ids(resolution.order))}

        assert len(resolution.order) == len(occurrences)
        for occ in occurrences:
            for dep_id in occ.depends_on:
                assert position[dep_id] < position[occ.id]

    def test_priority_breaks_ties_within_wave(self, make_occurrence: MakeOccurrence) -> None:
        occurrences = [
            make_occurrence("low", priority=1),
            make_occurrence("high", priority=5),
            make_occurrence("mid", priority=3),
            make_occurrence("also_mid", priority=3),
        ]

        resolution = DependencyResolver().resolve(occurrences)

        assert _ids(resolution.order) == ["high", "mid", "also_mid", "low"]

    def test_priority_never_overrides_dependencies(self, make_occurrence: MakeOccurrence) -> None:
        occurrences = [
            make_occurrence("urgent", priority=5, depends_on=("prep",)),
            make_occurrence("prep", priority=1),
        ]

        resolution = DependencyResolver().resolve(occurrences)

        assert _ids(resolution.order) == ["prep", "urgent"]

    def test_duplicate_dependencies_create_one_edge(self, make_occurrence: MakeOccurrence) -> None:
        occurrences = [make_occurrence("a"), make_occurrence("b", depends_on=("a", "a"))]

        resolution = DependencyResolver().resolve(occurrences)

        assert resolution.prerequisites["b"] == ["a"]
        assert resolution.dependents["a"] == ["b"]


class TestMissingDependencies:
    """Dependencies on tasks with no occurrence today."""

    def test_missing_dependency_creates_no_edge(self, make_occurrence: MakeOccurrence) -> None:
        occurrences = [make_occurrence("report", depends_on=("weekly_sync",))]

        resolution = DependencyResolver().resolve(occurrences)

        assert not resolution.cycle_detected
        assert _ids(resolution.order) == ["report"]
        assert resolution.prerequisites["report"] == []
        assert resolution.missing == {"report": ["weekly_sync"]}


class TestCycles:
    """Cycles are reported, never dropped."""

    def test_two_node_cycle(self, make_occurrence: MakeOccurrence) -> None:
        occurrences = [
            make_occurrence("a", depends_on=("b",)),
            make_occurrence("b", depends_on=("a",)),
        ]

        resolution = DependencyResolver().resolve(occurrences)

        assert resolution.cycle_detected
        assert resolution.cycle_members == ["a", "b"]
        assert _ids(resolution.order) == ["a", "b"]

    def test_cycle_members_follow_acyclic_prefix(self, make_occurrence: MakeOccurrence) -> None:
        occurrences = [
            make_occurrence("x", depends_on=("z",)),
            make_occurrence("free"),
            make_occurrence("y", depends_on=("x",)),
            make_occurrence("z", depends_on=("y",)),
        ]

        resolution = DependencyResolver().resolve(occurrences)

        assert resolution.cycle_detected
        assert _ids(resolution.order) == ["free", "x", "y", "z"]
        assert set(resolution.cycle_members) == {"x", "y", "z"}

    def test_downstream_of_cycle_is_blocked_not_member(
        self, make_occurrence: MakeOccurrence
    ) -> None:
        occurrences = [
            make_occurrence("a", depends_on=("b",)),
            make_occurrence("b", depends_on=("a",)),
            make_occurrence("c", depends_on=("a",)),
            make_occurrence("d", depends_on=("c",)),
        ]

        resolution = DependencyResolver().resolve(occurrences)

        assert resolution.cycle_detected
        assert resolution.cycle_members == ["a", "b"]
        assert resolution.cycle_blocked == ["c", "d"]
        assert _ids(resolution.order) == ["a", "b", "c", "d"]

    def test_self_dependency(self, make_occurrence: MakeOccurrence) -> None:
        occurrences = [make_occurrence("loop", depends_on=("loop",)), make_occurrence("ok")]

        resolution = DependencyResolver().resolve(occurrences)

        assert resolution.cycle_members == ["loop"]
        assert resolution.cycle_blocked == []


class TestEarliestStart:
    """Earliest start is derived from placed prerequisites."""

    def test_uses_latest_prerequisite_end_plus_buffer(
        self, make_occurrence: MakeOccurrence
    ) -> None:
        a = make_occurrence("a", at="08:00")
        b = make_occurrence("b", at="09:00")
        c = make_occurrence("c", depends_on=("a", "b"))
        resolution = DependencyResolver(buffer_minutes=5).resolve([a, b, c])

        placed = {
            "a": ScheduledTask(a, parse_time("08:00"), 30, is_anchor=True),
            "b": ScheduledTask(b, parse_time("09:00"), 30, is_anchor=True),
        }

        assert resolution.earliest_start == {"c": None}
        assert resolution.earliest_start_for("c", placed) == parse_time("09:35")
        assert resolution.earliest_start == {"c": parse_time("09:35")}

    def test_unplaced_prerequisites_impose_nothing(self, make_occurrence: MakeOccurrence) -> None:
        a = make_occurrence("a")
        c = make_occurrence("c", depends_on=("a",))
        resolution = DependencyResolver().resolve([a, c])

        assert resolution.earliest_start_for("c", {}) is None
        assert resolution.earliest_start_for("a", {}) is None

    def test_latest_end_from_dependent_anchor(self, make_occurrence: MakeOccurrence) -> None:
        prep = make_occurrence("prep")
        meeting = make_occurrence("meeting", at="10:00", depends_on=("prep",))
        resolution = DependencyResolver(buffer_minutes=5).resolve([prep, meeting])

        placed = {"meeting": ScheduledTask(meeting, parse_time("10:00"), 60, is_anchor=True)}

        assert resolution.latest_end_for("prep", placed) == parse_time("09:55")
