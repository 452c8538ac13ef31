"""
Declaration Collector

Walks a container body and turns every statement belonging to one of a
family's categories into a Declaration, descending into scope-introducing
blocks (`namespace :admin do ... end`) with the nesting context extended by
one segment.

The traversal is structural recursion: each call receives an immutable
ScopeContext and returns a fresh list, so the collector holds no state
between calls beyond the family's lookup tables.
"""

import logging
from typing import Dict, List, Optional

from declcop.models import CategoryConfig, FamilyConfig
from declcop.services.declarations import OTHER_CATEGORY, Declaration, ScopeContext
from declcop.utils.syntax_tree import NodeKind, SyntaxNode

logger = logging.getLogger("declcop.collector")

UNKNOWN_NAME = "unknown"
PLACEHOLDER_SEGMENT = "unknown"


class DeclarationCollector:
    """Collects the declarations of one family from a syntax tree body."""

    def __init__(self, family: FamilyConfig) -> None:
        self.family = family
        self._categories: Dict[str, CategoryConfig] = family.category_lookup()
        self._scope_methods = set(family.scope_methods) | set(self._categories)

    def collect(self, body: Optional[SyntaxNode], context: Optional[ScopeContext] = None) -> List[Declaration]:
        """
        Collect declarations from `body` in source order.

        An absent body (empty class or block) yields an empty list.
        """
        if body is None:
            return []
        declarations = self._visit(body, context or ScopeContext(), top_level=True)
        logger.debug(f"[Collector] {self.family.name}: {len(declarations)} declarations")
        return declarations

    # ── Traversal ─────────────────────────────────────────────────────

    def _visit(self, node: SyntaxNode, context: ScopeContext, top_level: bool) -> List[Declaration]:
        kind = node.kind

        if kind is NodeKind.BEGIN:
            found: List[Declaration] = []
            for child in node.children:
                found.extend(self._visit(child, context, top_level))
            return found

        if kind is NodeKind.SEND:
            declaration = self._declaration_for(node, context)
            if declaration is not None:
                return [declaration]
            return self._unmatched(node, context, top_level)

        if kind is NodeKind.BLOCK:
            return self._visit_block(node, context, top_level)

        return self._unmatched(node, context, top_level)

    def _visit_block(self, node: SyntaxNode, context: ScopeContext, top_level: bool) -> List[Declaration]:
        head = node.send_node
        if head is None or not head.is_send or not self._accepts_receiver(head):
            return self._unmatched(node, context, top_level)
        if head.method_name not in self._scope_methods:
            return self._unmatched(node, context, top_level)

        found: List[Declaration] = []
        # The block as a whole is the declaration so adjacency sees its closing line
        declaration = self._declaration_for(head, context, anchor=node)
        if declaration is not None:
            found.append(declaration)

        body = node.body
        if body is not None:
            nested = context.descend(self._segment_for(head))
            found.extend(self._visit(body, nested, top_level=False))
        return found

    def _unmatched(self, node: SyntaxNode, context: ScopeContext, top_level: bool) -> List[Declaration]:
        # Only direct statements of the container are interesting as interlopers
        if not (self.family.include_unmatched and top_level):
            return []
        return [Declaration(
            family=self.family.name,
            category=OTHER_CATEGORY,
            method=node.method_name or node.kind.value,
            name=UNKNOWN_NAME,
            span=node.span,
            context=context,
            node=node,
        )]

    # ── Matching ──────────────────────────────────────────────────────

    def _accepts_receiver(self, node: SyntaxNode) -> bool:
        receiver = node.receiver
        if receiver is None:
            return True
        if self.family.receiverless_only:
            return False
        return receiver.is_send

    def _declaration_for(
        self,
        node: SyntaxNode,
        context: ScopeContext,
        anchor: Optional[SyntaxNode] = None,
    ) -> Optional[Declaration]:
        category = self._categories.get(node.method_name or "")
        if category is None or not self._accepts_receiver(node):
            return None

        through = None
        if category.supports_through:
            through = self._through_for(node)

        return Declaration(
            family=self.family.name,
            category=category.name,
            method=node.method_name,
            name=self._name_for(node, category),
            span=(anchor or node).span,
            context=context,
            through=through,
            node=anchor or node,
        )

    # ── Field extraction ──────────────────────────────────────────────

    def _name_for(self, node: SyntaxNode, category: CategoryConfig) -> str:
        fixed = category.fixed_names.get(node.method_name)
        if fixed is not None:
            return fixed

        first_arg = node.first_argument
        if first_arg is None:
            return category.default_name
        if first_arg.is_literal and first_arg.value:
            return first_arg.value
        if category.name_from_hash_key and first_arg.kind is NodeKind.HASH:
            # get "profile" => "users#show"
            for item in first_arg.children:
                if item.kind is NodeKind.PAIR and item.children and item.children[0].is_literal:
                    return item.children[0].value or category.default_name
        return category.default_name

    def _through_for(self, node: SyntaxNode) -> Optional[str]:
        value = node.option(self.family.through_option)
        if value is not None and value.is_literal and value.value:
            return value.value
        return None

    def _segment_for(self, head: SyntaxNode) -> str:
        for option_name in self.family.path_options:
            value = head.option(option_name)
            if value is not None and value.is_literal and value.value:
                return value.value

        first_arg = head.first_argument
        if first_arg is not None and first_arg.is_literal and first_arg.value:
            return first_arg.value

        # member/collection blocks are named after their head
        if head.method_name not in self._categories:
            return head.method_name or PLACEHOLDER_SEGMENT
        return PLACEHOLDER_SEGMENT
