"""
Declaration records produced by the collector and consumed by the checks.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from declcop.utils.syntax_tree import SyntaxNode, Span

# Category given to statements recorded only so scattering can see them
OTHER_CATEGORY = "other"


@dataclass(frozen=True)
class ScopeContext:
    """Lexical position of a declaration: nesting depth and enclosing scope names"""
    nesting_level: int = 0
    namespace_path: Tuple[str, ...] = ()

    def descend(self, segment: str) -> "ScopeContext":
        return ScopeContext(self.nesting_level + 1, self.namespace_path + (segment,))


@dataclass(frozen=True)
class Declaration:
    """One recognized statement"""
    family: str
    category: str
    method: str
    name: str
    span: Span
    context: ScopeContext = ScopeContext()
    through: Optional[str] = None
    node: Optional[SyntaxNode] = field(default=None, compare=False, repr=False)

    @property
    def nesting_level(self) -> int:
        return self.context.nesting_level

    @property
    def namespace_path(self) -> Tuple[str, ...]:
        return self.context.namespace_path

    @property
    def start_line(self) -> int:
        return self.span.start_line

    @property
    def end_line(self) -> int:
        return self.span.end_line

    @property
    def is_governed(self) -> bool:
        """False for unmatched statements recorded under OTHER_CATEGORY"""
        return self.category != OTHER_CATEGORY

    @property
    def sort_key(self) -> Tuple[int, int]:
        return (self.span.start_line, self.span.start_column)


def by_position(declarations: Iterable[Declaration]) -> List[Declaration]:
    return sorted(declarations, key=lambda d: d.sort_key)


def governed(declarations: Iterable[Declaration]) -> List[Declaration]:
    return [d for d in declarations if d.is_governed]


def group_by_context(declarations: Iterable[Declaration]) -> Dict[ScopeContext, List[Declaration]]:
    """Position-ordered declarations per (nesting_level, namespace_path), in first-seen order"""
    groups: Dict[ScopeContext, List[Declaration]] = {}
    for declaration in by_position(declarations):
        groups.setdefault(declaration.context, []).append(declaration)
    return groups
