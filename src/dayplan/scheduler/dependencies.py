"""Dependency graph construction and topological ordering."""

from dayplan.logger import get_logger

from .core import DependencyResolution, Occurrence

logger = get_logger()


class DependencyResolver:
    """Orders a day's occurrences so prerequisites come before dependents.

    Uses Kahn's algorithm, releasing zero-in-degree nodes wave by wave.
    Within a wave, higher priority goes first and input order breaks ties.
    """

    def __init__(self, buffer_minutes: int = 5):
        """Initialize the resolver.

        Args:
            buffer_minutes: Gap required between a prerequisite's end and its
                dependent's start
        """
        self.buffer_minutes = buffer_minutes

    def resolve(self, occurrences: list[Occurrence]) -> DependencyResolution:
        """Build the graph and compute the evaluation order.

        Dependency ids with no occurrence today create no edge; they are
        reported in ``missing``. Nodes that never become ready are appended
        after the acyclic prefix (input order), never dropped. Those on a
        cycle are ``cycle_members``; those that only depend on one are
        ``cycle_blocked``.
        """
        by_id = {occ.id: occ for occ in occurrences}
        position = {occ.id: index for index, occ in enumerate(occurrences)}

        prerequisites: dict[str, list[str]] = {occ.id: [] for occ in occurrences}
        dependents: dict[str, list[str]] = {occ.id: [] for occ in occurrences}
        missing: dict[str, list[str]] = {}

        for occ in occurrences:
            for dep_id in occ.depends_on:
                if dep_id not in by_id:
                    missing.setdefault(occ.id, []).append(dep_id)
                    logger.checks(f"  {occ.id}: dependency '{dep_id}' has no occurrence today")
                    continue
                if dep_id in prerequisites[occ.id]:
                    continue
                prerequisites[occ.id].append(dep_id)
                dependents[dep_id].append(occ.id)

        in_degree = {task_id: len(deps) for task_id, deps in prerequisites.items()}

        def by_priority(task_id: str) -> tuple[int, int]:
            return (-by_id[task_id].priority, position[task_id])

        wave = sorted((tid for tid, degree in in_degree.items() if degree == 0), key=by_priority)
        ordered_ids: list[str] = []

        while wave:
            next_wave: list[str] = []
            for task_id in wave:
                ordered_ids.append(task_id)
                for dependent_id in dependents[task_id]:
                    in_degree[dependent_id] -= 1
                    if in_degree[dependent_id] == 0:
                        next_wave.append(dependent_id)
            wave = sorted(next_wave, key=by_priority)

        placed_ids = set(ordered_ids)
        unordered = [occ.id for occ in occurrences if occ.id not in placed_ids]
        cycle_members = [
            task_id for task_id in unordered if self._on_cycle(task_id, prerequisites)
        ]
        cycle_blocked = [task_id for task_id in unordered if task_id not in cycle_members]
        if cycle_members:
            logger.changes(f"Dependency cycle among: {', '.join(cycle_members)}")
        if cycle_blocked:
            logger.changes(f"Blocked behind the cycle: {', '.join(cycle_blocked)}")

        return DependencyResolution(
            order=[by_id[task_id] for task_id in ordered_ids + unordered],
            cycle_detected=bool(cycle_members),
            cycle_members=cycle_members,
            cycle_blocked=cycle_blocked,
            prerequisites=prerequisites,
            dependents=dependents,
            missing=missing,
            buffer_minutes=self.buffer_minutes,
            earliest_start={task_id: None for task_id, deps in prerequisites.items() if deps},
        )

    @staticmethod
    def _on_cycle(task_id: str, prerequisites: dict[str, list[str]]) -> bool:
        """True if ``task_id`` can reach itself through its prerequisites."""
        seen: set[str] = set()
        stack = list(prerequisites.get(task_id, []))
        while stack:
            current = stack.pop()
            if current == task_id:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(prerequisites.get(current, []))
        return False
