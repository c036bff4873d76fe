"""Dependency resolution for bundle selections.

Resolution happens in two passes:

1. Expansion: a depth-first walk from every requested id collects the
   transitive closure in post-order, so each dependency precedes its
   dependents. A tri-state visited map detects cycles.
2. Ordering: a priority topological sort keyed on (order, post-order
   position). When ``order`` values agree with the dependency graph this is
   exactly a stable sort by ``order``. When they disagree the dependency
   edge wins and the inversion is logged.
"""

import heapq
import logging
from collections.abc import Iterable, Sequence
from enum import Enum

from dotbundle.core.registry import BundleRegistry
from dotbundle.errors import CycleError

logger = logging.getLogger(__name__)


class _Visit(Enum):
    IN_PROGRESS = "in-progress"
    DONE = "done"


class DependencyResolver:
    """Expands bundle requests into a safe execution order.

    Pure with respect to its registry: the same registry and input order
    always produce the same output, and nothing is mutated.
    """

    def __init__(self, registry: BundleRegistry) -> None:
        self._registry = registry

    def resolve(self, requested: Sequence[str]) -> list[str]:
        """Resolve requested ids into the ordered transitive closure.

        Args:
            requested: Bundle ids in request order; repeats are collapsed

        Returns:
            Every requested id plus its dependencies, exactly once each,
            dependencies first

        Raises:
            NotFoundError: If any reachable id is unknown or disabled
            CycleError: If a cycle is reachable from the request
        """
        expanded = self.expand(requested)
        ordered = self._order(expanded)
        logger.debug("Resolved %s -> %s", list(requested), ordered)
        return ordered

    def expand(self, requested: Iterable[str]) -> list[str]:
        """Transitive closure of requested, in dependency post-order."""
        state: dict[str, _Visit] = {}
        output: list[str] = []

        for root in requested:
            if state.get(root) is _Visit.DONE:
                continue
            stack = [(root, iter(self._enter(root, state)))]
            while stack:
                node, pending = stack[-1]
                dep = next(pending, None)
                if dep is None:
                    stack.pop()
                    state[node] = _Visit.DONE
                    output.append(node)
                    continue
                mark = state.get(dep)
                if mark is _Visit.DONE:
                    continue
                if mark is _Visit.IN_PROGRESS:
                    raise CycleError(dep)
                stack.append((dep, iter(self._enter(dep, state))))

        return output

    def closure(self, bundle_id: str) -> set[str]:
        """Every bundle that bundle_id depends on, directly or transitively."""
        return set(self.expand([bundle_id])) - {bundle_id}

    def _enter(self, bundle_id: str, state: dict[str, _Visit]) -> tuple[str, ...]:
        # Availability is checked when a node is first entered, after the
        # cycle check, so a cycle through a disabled bundle reports the cycle.
        descriptor = self._registry.get(bundle_id)
        state[bundle_id] = _Visit.IN_PROGRESS
        return descriptor.dependencies

    def _order(self, topological: list[str]) -> list[str]:
        position = {bundle_id: i for i, bundle_id in enumerate(topological)}
        order = {bundle_id: self._registry.get(bundle_id).order for bundle_id in topological}

        blocking: dict[str, set[str]] = {}
        dependents: dict[str, list[str]] = {bundle_id: [] for bundle_id in topological}
        for bundle_id in topological:
            deps = set(self._registry.get(bundle_id).dependencies)
            blocking[bundle_id] = deps
            for dep in deps:
                dependents[dep].append(bundle_id)
                if order[dep] > order[bundle_id]:
                    logger.warning(
                        "Bundle '%s' (order %d) requires '%s' (order %d); "
                        "dependency order takes precedence",
                        bundle_id,
                        order[bundle_id],
                        dep,
                        order[dep],
                    )

        ready = [(order[b], position[b], b) for b in topological if not blocking[b]]
        heapq.heapify(ready)
        result: list[str] = []
        while ready:
            _, _, bundle_id = heapq.heappop(ready)
            result.append(bundle_id)
            for child in dependents[bundle_id]:
                blocking[child].discard(bundle_id)
                if not blocking[child]:
                    heapq.heappush(ready, (order[child], position[child], child))
        return result
