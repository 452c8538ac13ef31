"""
Tests for the route convention checks
"""

from declcop.models import ContainerKind
from declcop.services.collector import DeclarationCollector
from declcop.services.containers import Container
from declcop.services.convention_checks import (
    RouteConsistentSpacingCheck,
    RouteGroupingCheck,
    RouteRootPositionCheck,
    RouteSeparationCheck,
    RouteSortingCheck,
    ScatteringCheck,
)
from declcop.services.reporter import DiagnosticReporter
from declcop.utils.syntax_tree import begin, block, send, string, sym


def _get(path, line, column=2):
    return send("get", string(path, line=line), line=line, column=column)


def _resources(name, line, column=2):
    return send("resources", sym(name, line=line), line=line, column=column)


def _root(line, column=2):
    return send("root", string("home#index", line=line), line=line, column=column)


def _namespace(name, line, *statements, end_line):
    return block(send("namespace", sym(name, line=line), line=line, column=2), *statements, end_line=end_line)


def _container(family, statements, lines=()):
    body = begin(*statements) if len(statements) > 1 else statements[0]
    container = Container(
        kind=ContainerKind.ROUTES_DRAW,
        family=family,
        node=body,
        body=body,
        lines=lines,
        path="config/routes.rb",
    )
    container.declarations = DeclarationCollector(family).collect(body)
    return container


def _run(check, container):
    return check.detect(container, DiagnosticReporter(check.id, check.message))


def _source(*lines):
    """Source lines; line 1 opens the draw block"""
    return ["Rails.application.routes.draw do", *lines, "end"]


# ─── Grouping ────────────────────────────────────────────────────────

def test_grouping_flags_split_route_type(route_family):
    container = _container(route_family, [
        _get("about", 2),
        _resources("users", 3),
        _get("contact", 4),
    ])
    diagnostics = _run(RouteGroupingCheck(), container)

    assert [d.line for d in diagnostics] == [4]
    assert diagnostics[0].message == (
        "Group routes by type. Keep simple routes, resources, and namespaces grouped together."
    )


def test_grouping_is_evaluated_per_namespace(route_family):
    container = _container(route_family, [
        _resources("users", 2),
        _namespace("admin", 4, _resources("posts", 5, column=4), end_line=6),
        _namespace("api", 8, _resources("keys", 9, column=4), end_line=10),
    ])

    assert _run(RouteGroupingCheck(), container) == []


def test_grouping_flags_resource_after_namespace(route_family):
    container = _container(route_family, [
        _resources("users", 2),
        _namespace("admin", 4, _resources("posts", 5, column=4), end_line=6),
        _resources("zebras", 8),
    ])

    assert [d.line for d in _run(RouteGroupingCheck(), container)] == [8]


# ─── Separation ──────────────────────────────────────────────────────

def test_separation_between_route_types(route_family):
    about = _get("about", 2)
    container = _container(
        route_family,
        [about, _resources("users", 3)],
        _source('  get "about"', "  resources :users"),
    )
    diagnostics = _run(RouteSeparationCheck(), container)

    assert [d.line for d in diagnostics] == [3]
    assert diagnostics[0].edit.node is about


def test_separation_uses_closing_line_of_blocks(route_family):
    container = _container(
        route_family,
        [
            _namespace("admin", 2, _resources("posts", 3, column=4), end_line=4),
            _resources("users", 5),
        ],
        _source("  namespace :admin do", "    resources :posts", "  end", "  resources :users"),
    )
    diagnostics = _run(RouteSeparationCheck(), container)

    assert [d.line for d in diagnostics] == [5]
    assert diagnostics[0].edit.node.is_block


def test_separation_inside_namespace(route_family):
    container = _container(
        route_family,
        [
            _namespace(
                "admin", 2,
                _get("stats", 3, column=4),
                _resources("posts", 4, column=4),
                end_line=5,
            ),
        ],
        _source("  namespace :admin do", '    get "stats"', "    resources :posts", "  end"),
    )

    assert [d.line for d in _run(RouteSeparationCheck(), container)] == [4]


def test_separation_blank_line_passes(route_family):
    container = _container(
        route_family,
        [_get("about", 2), _resources("users", 4)],
        _source('  get "about"', "", "  resources :users"),
    )

    assert _run(RouteSeparationCheck(), container) == []


# ─── Sorting ─────────────────────────────────────────────────────────

def test_sorting_flags_unsorted_resources(route_family):
    container = _container(route_family, [_resources("users", 2), _resources("posts", 3)])
    diagnostics = _run(RouteSortingCheck(), container)

    assert len(diagnostics) == 1
    assert diagnostics[0].line == 2
    assert diagnostics[0].message == (
        "Sort routes of the same type alphabetically within the same namespace level. "
        "Expected order: posts, users."
    )


def test_sorting_excludes_root(route_family):
    container = _container(route_family, [_root(2), _get("about", 3), _get("contact", 4)])

    assert _run(RouteSortingCheck(), container) == []


def test_sorting_does_not_compare_across_namespaces(route_family):
    container = _container(route_family, [
        _resources("zebras", 2),
        _namespace("admin", 4, _resources("apples", 5, column=4), end_line=6),
    ])

    assert _run(RouteSortingCheck(), container) == []


def test_sorting_lists_repeated_names_once(route_family):
    container = _container(route_family, [_get("b", 2), _get("a", 3), _get("b", 4)])
    diagnostics = _run(RouteSortingCheck(), container)

    assert diagnostics[0].message.endswith("Expected order: a, b.")


# ─── Root position ───────────────────────────────────────────────────

def test_root_after_simple_route(route_family):
    container = _container(route_family, [_get("about", 2), _root(3)])
    diagnostics = _run(RouteRootPositionCheck(), container)

    assert [d.line for d in diagnostics] == [3]
    assert diagnostics[0].rule == "route_root_position"


def test_root_first_is_clean(route_family):
    container = _container(route_family, [_root(2), _get("about", 3)])

    assert _run(RouteRootPositionCheck(), container) == []


def test_only_first_misplaced_root_reported(route_family):
    container = _container(route_family, [_get("about", 2), _root(3), _root(4)])

    assert [d.line for d in _run(RouteRootPositionCheck(), container)] == [3]


def test_root_without_simple_routes(route_family):
    container = _container(route_family, [_resources("users", 2), _root(4)])

    assert _run(RouteRootPositionCheck(), container) == []


def test_root_position_inside_namespace(route_family):
    container = _container(route_family, [
        _namespace("admin", 2, _get("stats", 3, column=4), _root(4, column=4), end_line=5),
    ])

    assert [d.line for d in _run(RouteRootPositionCheck(), container)] == [4]


# ─── Consistent spacing ──────────────────────────────────────────────

def test_consistent_spacing_between_resources(route_family):
    container = _container(
        route_family,
        [_resources("posts", 2), _resources("users", 4)],
        _source("  resources :posts", "", "  resources :users"),
    )

    assert [d.line for d in _run(RouteConsistentSpacingCheck(), container)] == [4]


def test_consistent_spacing_ignores_other_levels(route_family):
    container = _container(
        route_family,
        [
            _resources("posts", 2),
            _namespace("admin", 4, _resources("users", 5, column=4), end_line=6),
        ],
        _source("  resources :posts", "", "  namespace :admin do", "    resources :users", "  end"),
    )

    assert _run(RouteConsistentSpacingCheck(), container) == []


# ─── Multi-line blocks ───────────────────────────────────────────────

def test_consistent_spacing_between_sibling_namespaces(route_family):
    container = _container(
        route_family,
        [
            _namespace("admin", 2, _resources("users", 3, column=4), end_line=4),
            _namespace("api", 6, _resources("posts", 7, column=4), end_line=8),
        ],
        _source(
            "  namespace :admin do", "    resources :users", "  end",
            "",
            "  namespace :api do", "    resources :posts", "  end",
        ),
    )

    assert _run(RouteConsistentSpacingCheck(), container) == []


def test_consistent_spacing_after_resource_block(route_family):
    users = block(
        send("resources", sym("users", line=2), line=2, column=2),
        _get("search", 3, column=4),
        end_line=4,
    )
    container = _container(
        route_family,
        [users, _resources("posts", 6)],
        _source("  resources :users do", '    get "search"', "  end", "", "  resources :posts"),
    )

    assert _run(RouteConsistentSpacingCheck(), container) == []


def test_consistent_spacing_still_flags_empty_blocks(route_family):
    container = _container(
        route_family,
        [_namespace("admin", 2, end_line=3), _namespace("api", 5, end_line=6)],
        _source("  namespace :admin do", "  end", "", "  namespace :api do", "  end"),
    )

    assert [d.line for d in _run(RouteConsistentSpacingCheck(), container)] == [5]


def test_separation_after_namespace_block_with_blank_line(route_family):
    container = _container(
        route_family,
        [
            _namespace("admin", 2, _resources("posts", 3, column=4), end_line=4),
            _resources("users", 6),
        ],
        _source("  namespace :admin do", "    resources :posts", "  end", "", "  resources :users"),
    )

    assert _run(RouteSeparationCheck(), container) == []


def test_separation_between_adjacent_blocks_of_different_types(route_family):
    users = block(
        send("resources", sym("users", line=2), line=2, column=2),
        _get("search", 3, column=4),
        end_line=4,
    )
    container = _container(
        route_family,
        [users, _namespace("admin", 5, _resources("posts", 6, column=4), end_line=7)],
        _source(
            "  resources :users do", '    get "search"', "  end",
            "  namespace :admin do", "    resources :posts", "  end",
        ),
    )
    diagnostics = _run(RouteSeparationCheck(), container)

    assert [d.line for d in diagnostics] == [5]
    assert diagnostics[0].edit.node is users


# ─── Scattering by category ──────────────────────────────────────────

class _RouteScatteringCheck(ScatteringCheck):
    id = "route_scattering"
    family = "route"
    message = "Keep routes of one type together."


def test_scattering_by_category(route_family):
    container = _container(route_family, [
        _resources("posts", 2),
        _get("about", 3),
        _resources("users", 4),
    ])

    assert [d.line for d in _run(_RouteScatteringCheck(), container)] == [4]
