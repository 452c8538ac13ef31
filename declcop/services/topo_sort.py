"""
Dependency-aware canonical ordering.

Declarations that name another declaration through `through:` must come after
it; everything else is ordered alphabetically. The order is computed with
Kahn's algorithm, always taking the lexicographically smallest ready name so
that the result does not depend on the input order.
"""

import heapq
from collections import defaultdict
from typing import Dict, List, Sequence, Tuple

from declcop.services.declarations import Declaration


class DependencyGraph:
    """
    Edges run from a `through` target to the declarations depending on it.

    References to names outside the candidate set are unresolved and add no
    edge. Nodes are indexed by position in `declarations` so duplicate names
    are kept apart.
    """

    def __init__(self, declarations: Sequence[Declaration]) -> None:
        self.declarations = list(declarations)
        self.dependents: Dict[int, List[int]] = defaultdict(list)
        self.in_degree: List[int] = [0] * len(self.declarations)

        indexes_by_name: Dict[str, List[int]] = defaultdict(list)
        for index, declaration in enumerate(self.declarations):
            indexes_by_name[declaration.name].append(index)

        for index, declaration in enumerate(self.declarations):
            target = declaration.through
            if not target or target == declaration.name:
                continue
            for target_index in indexes_by_name.get(target, ()):
                self.dependents[target_index].append(index)
                self.in_degree[index] += 1

    def canonical_order(self) -> List[Declaration]:
        """
        Lexicographic-min topological order.

        Nodes caught in a dependency cycle never reach in-degree zero; they are
        appended after the resolved prefix in their original order.
        """
        in_degree = list(self.in_degree)
        frontier: List[Tuple[str, int]] = [
            (d.name, i) for i, d in enumerate(self.declarations) if in_degree[i] == 0
        ]
        heapq.heapify(frontier)
        ordered: List[int] = []

        while frontier:
            _, index = heapq.heappop(frontier)
            ordered.append(index)
            for dependent in self.dependents.get(index, ()):
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(frontier, (self.declarations[dependent].name, dependent))

        if len(ordered) < len(self.declarations):
            placed = set(ordered)
            ordered.extend(i for i in range(len(self.declarations)) if i not in placed)

        return [self.declarations[i] for i in ordered]


def canonical_order(declarations: Sequence[Declaration], dependency_aware: bool = True) -> List[Declaration]:
    """Expected order of one sorting group"""
    if not dependency_aware:
        return sorted(declarations, key=lambda d: d.name)
    return DependencyGraph(declarations).canonical_order()


def canonical_names(declarations: Sequence[Declaration], dependency_aware: bool = True) -> List[str]:
    return [d.name for d in canonical_order(declarations, dependency_aware)]
