"""
Convention Checks

Each check looks at the declarations of one container and reports the
statements that break a layout convention. Checks are pure: they read the
container, never modify it, and do not depend on one another, so the engine
may run them in any order.

The generic checks (grouping, separation, scattering, sorting, spacing) are
written once and bound to a family by small subclasses carrying the rule id
and message.
"""

from typing import Callable, Dict, List, Sequence

from declcop.services.containers import Container
from declcop.services.declarations import (
    OTHER_CATEGORY,
    Declaration,
    by_position,
    governed,
    group_by_context,
)
from declcop.services.reporter import Diagnostic, DiagnosticReporter, insert_after
from declcop.services.topo_sort import canonical_names


class ConventionCheck:
    """Base class for convention checks"""

    id: str = "base"
    family: str = ""
    message: str = ""
    description: str = ""

    def detect(self, container: Container, reporter: DiagnosticReporter) -> List[Diagnostic]:
        """
        Inspect one container.

        Returns:
            Diagnostics in source order, empty when the container complies
        """
        raise NotImplementedError


def _contiguous_runs(sequence: Sequence[Declaration]) -> List[List[Declaration]]:
    """Split a position-ordered sequence into maximal same-category runs"""
    runs: List[List[Declaration]] = []
    for declaration in sequence:
        if runs and runs[-1][0].category == declaration.category:
            runs[-1].append(declaration)
        else:
            runs.append([declaration])
    return runs


def _unique(names: Sequence[str]) -> List[str]:
    seen = set()
    result = []
    for name in names:
        if name not in seen:
            seen.add(name)
            result.append(name)
    return result


# ─── Generic checks ──────────────────────────────────────────────────

class GroupingCheck(ConventionCheck):
    """
    Declarations of one category must form a single contiguous run within
    their scope. The first declaration of every run after the first is
    reported.
    """

    def detect(self, container: Container, reporter: DiagnosticReporter) -> List[Diagnostic]:
        flagged: List[Declaration] = []
        for sequence in group_by_context(governed(container.declarations)).values():
            runs_by_category: Dict[str, List[List[Declaration]]] = {}
            for run in _contiguous_runs(sequence):
                runs_by_category.setdefault(run[0].category, []).append(run)
            for runs in runs_by_category.values():
                flagged.extend(run[0] for run in runs[1:])
        return [reporter.report(d) for d in by_position(flagged)]


class SeparationCheck(ConventionCheck):
    """
    Neighbouring declarations of different categories need a blank line
    between them. A one-line gap only counts when that line is blank.
    """

    def detect(self, container: Container, reporter: DiagnosticReporter) -> List[Diagnostic]:
        diagnostics: List[Diagnostic] = []
        for sequence in group_by_context(governed(container.declarations)).values():
            for previous, current in zip(sequence, sequence[1:]):
                if previous.category == current.category:
                    continue
                if self._separated(container, previous, current):
                    continue
                edit = insert_after(previous.node, "\n") if previous.node is not None else None
                diagnostics.append(reporter.report(current, edit=edit))
        return sorted(diagnostics, key=lambda d: (d.line, d.column))

    @staticmethod
    def _separated(container: Container, previous: Declaration, current: Declaration) -> bool:
        lines_between = current.start_line - previous.end_line - 1
        if lines_between >= 2:
            return True
        if lines_between == 1:
            return container.is_blank(previous.end_line + 1)
        return False


class ScatteringCheck(ConventionCheck):
    """
    Consecutive members of a scatter group must not have a statement from
    outside the group between them. With scatter_by=family the whole family
    is one group and only unmatched statements interrupt it; with
    scatter_by=category every category is its own group.
    """

    def detect(self, container: Container, reporter: DiagnosticReporter) -> List[Diagnostic]:
        key = self._scatter_key(container)
        flagged: List[Declaration] = []

        for sequence in group_by_context(container.declarations).values():
            members: Dict[str, List[Declaration]] = {}
            for declaration in sequence:
                if declaration.is_governed:
                    members.setdefault(key(declaration), []).append(declaration)

            for group_key, group in members.items():
                if len(group) < 2:
                    continue
                for previous, current in zip(group, group[1:]):
                    if current in flagged:
                        continue
                    interrupted = any(
                        previous.start_line < other.start_line < current.start_line
                        and key(other) != group_key
                        for other in sequence
                    )
                    if interrupted:
                        flagged.append(current)

        return [reporter.report(d) for d in by_position(flagged)]

    @staticmethod
    def _scatter_key(container: Container) -> Callable[[Declaration], str]:
        if container.family.scatter_by == "family":
            return lambda d: d.family if d.is_governed else OTHER_CATEGORY
        return lambda d: d.category


class SortingCheck(ConventionCheck):
    """
    Declarations sharing category and scope must be in canonical order:
    alphabetical, with dependency-capable categories placing a declaration
    after the one it goes through. Names listed in the family's sort_exclude
    (`root`) are left out. The group's first declaration is reported with
    the expected order.
    """

    def detect(self, container: Container, reporter: DiagnosticReporter) -> List[Diagnostic]:
        family = container.family
        excluded = set(family.sort_exclude)
        groups: Dict[tuple, List[Declaration]] = {}
        for declaration in by_position(governed(container.declarations)):
            if declaration.name in excluded:
                continue
            groups.setdefault((declaration.category, declaration.context), []).append(declaration)

        diagnostics: List[Diagnostic] = []
        for (category_name, _), group in groups.items():
            if len(group) < 2:
                continue
            category = family.category(category_name)
            dependency_aware = bool(category and category.supports_through)
            observed = [d.name for d in group]
            expected = canonical_names(group, dependency_aware=dependency_aware)
            if observed == expected:
                continue
            diagnostics.append(reporter.report(group[0], expected=", ".join(_unique(expected))))
        return sorted(diagnostics, key=lambda d: (d.line, d.column))


class ConsistentSpacingCheck(ConventionCheck):
    """
    Neighbouring declarations of the same category must not be split by blank
    lines. A declaration that opens a block with a body ends a spacing run:
    its nested declarations sit between it and its next sibling.
    """

    def detect(self, container: Container, reporter: DiagnosticReporter) -> List[Diagnostic]:
        diagnostics: List[Diagnostic] = []
        for sequence in group_by_context(governed(container.declarations)).values():
            for previous, current in zip(sequence, sequence[1:]):
                if previous.category != current.category:
                    continue
                if self._opens_body(previous):
                    continue
                gap = range(previous.end_line + 1, current.start_line)
                if any(container.is_blank(line_no) for line_no in gap):
                    diagnostics.append(reporter.report(current))
        return sorted(diagnostics, key=lambda d: (d.line, d.column))

    @staticmethod
    def _opens_body(declaration: Declaration) -> bool:
        node = declaration.node
        return node is not None and node.is_block and node.body is not None


# ─── Association checks ──────────────────────────────────────────────

class AssociationGroupingCheck(GroupingCheck):
    id = "association_grouping"
    family = "association"
    message = "Group associations of the same type together."
    description = "belongs_to, has_one, has_many, ... each form one block"


class AssociationSeparationCheck(SeparationCheck):
    id = "association_separation"
    family = "association"
    message = "Separate different association types with a blank line."
    description = "Blank line between blocks of different association types"


class AssociationScatteringCheck(ScatteringCheck):
    id = "association_scattering"
    family = "association"
    message = "Group all associations together without non-association code scattered between them."
    description = "No validations, scopes or methods between associations"


class AssociationSortingCheck(SortingCheck):
    id = "association_sorting"
    family = "association"
    message = "Sort associations of the same type alphabetically. Expected order: {expected}."
    description = "Alphabetical within a type, `through` targets first"


class AssociationConsistentSpacingCheck(ConsistentSpacingCheck):
    id = "association_consistent_spacing"
    family = "association"
    message = "Do not leave blank lines between associations of the same type."
    description = "No blank lines inside a block of one association type"


class AssociationMissingThroughCheck(ConventionCheck):
    """
    A `through:` option must name an association defined in the same model.
    """

    id = "association_missing_through"
    family = "association"
    message = (
        "Association {association} references through {through}, "
        "but {through} is not defined in this model."
    )
    description = "`through:` targets must be declared in the model"

    def detect(self, container: Container, reporter: DiagnosticReporter) -> List[Diagnostic]:
        associations = by_position(governed(container.declarations))
        defined = {d.name for d in associations}
        return [
            reporter.report(d, association=d.name, through=d.through)
            for d in associations
            if d.through and d.through not in defined
        ]


# ─── Route checks ────────────────────────────────────────────────────

class RouteGroupingCheck(GroupingCheck):
    id = "route_grouping"
    family = "route"
    message = "Group routes by type. Keep simple routes, resources, and namespaces grouped together."
    description = "Route types form one block per namespace level"


class RouteSeparationCheck(SeparationCheck):
    id = "route_separation"
    family = "route"
    message = "Separate different route types with a blank line."
    description = "Blank line between blocks of different route types"


class RouteSortingCheck(SortingCheck):
    id = "route_sorting"
    family = "route"
    message = (
        "Sort routes of the same type alphabetically within the same namespace level. "
        "Expected order: {expected}."
    )
    description = "Alphabetical within a route type and namespace"


class RouteConsistentSpacingCheck(ConsistentSpacingCheck):
    id = "route_consistent_spacing"
    family = "route"
    message = "Do not leave blank lines between routes of the same type at the same namespace level."
    description = "No blank lines inside a block of one route type"


class RouteRootPositionCheck(ConventionCheck):
    """
    `root` comes before every other simple route of its namespace. Only the
    first misplaced root of a scope is reported.
    """

    id = "route_root_position"
    family = "route"
    message = "The root route should be positioned at the top of routes within the same namespace level."
    description = "root is the first simple route of its scope"

    root_method = "root"
    simple_category = "simple"

    def detect(self, container: Container, reporter: DiagnosticReporter) -> List[Diagnostic]:
        diagnostics: List[Diagnostic] = []
        for sequence in group_by_context(governed(container.declarations)).values():
            if len(sequence) < 2:
                continue
            roots = [d for d in sequence if d.method == self.root_method]
            simple_routes = [
                d for d in sequence
                if d.category == self.simple_category and d.method != self.root_method
            ]
            if not roots or not simple_routes:
                continue
            for root in roots:
                if any(root.start_line > route.start_line for route in simple_routes):
                    diagnostics.append(reporter.report(root))
                    break
        return diagnostics


# Registry of all checks
CHECK_REGISTRY = [
    AssociationGroupingCheck(),
    AssociationSeparationCheck(),
    AssociationScatteringCheck(),
    AssociationSortingCheck(),
    AssociationConsistentSpacingCheck(),
    AssociationMissingThroughCheck(),
    RouteGroupingCheck(),
    RouteSeparationCheck(),
    RouteSortingCheck(),
    RouteConsistentSpacingCheck(),
    RouteRootPositionCheck(),
]
