"""
Syntax Tree Model for Declaration Analysis

This module provides the node representation the checks read. Trees are
produced by an external parser, either constructed directly with the builder
helpers at the bottom of this module or deserialized from the parser's
dict/JSON dump with SyntaxNode.from_dict().

The node set is closed: every node carries a NodeKind tag and consumers
dispatch on that tag. Anything the parser emits that has no dedicated kind
(method definitions, local variables, literals we never inspect) becomes
NodeKind.OTHER and keeps its span so positional checks still see it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple

from declcop.utils.errors import InvalidSyntaxTreeError


class NodeKind(str, Enum):
    BEGIN = "begin"
    SEND = "send"
    BLOCK = "block"
    CLASS = "class"
    MODULE = "module"
    SYM = "sym"
    STR = "str"
    HASH = "hash"
    PAIR = "pair"
    ARRAY = "array"
    CONST = "const"
    OTHER = "other"


_KIND_LOOKUP = {kind.value: kind for kind in NodeKind}


@dataclass(frozen=True)
class Span:
    """Source range of a node (1-indexed lines, 0-indexed columns)"""
    start_line: int
    end_line: int
    start_column: int = 0
    end_column: int = 0

    def contains_line(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line


@dataclass(eq=False)
class SyntaxNode:
    """
    One node of the parsed tree.

    Field usage per kind:
      SEND    name = method name, receiver = receiver node, children = arguments
      BLOCK   children = (send_node, body) with body omitted for empty blocks
      CLASS   name = class name, superclass = parent node, children = (body,)
      MODULE  name = module name, children = (body,)
      BEGIN   children = statements
      HASH    children = pairs
      PAIR    children = (key, value)
      ARRAY   children = elements
      SYM/STR value = literal text
      CONST   name = fully qualified constant ("ActiveRecord::Base")

    Nodes compare by identity so they can be used as diagnostic anchors.
    """
    kind: NodeKind
    span: Span
    children: Tuple["SyntaxNode", ...] = ()
    name: Optional[str] = None
    value: Optional[str] = None
    receiver: Optional["SyntaxNode"] = None
    superclass: Optional["SyntaxNode"] = None
    source: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    # ── Kind predicates ───────────────────────────────────────────────

    @property
    def is_send(self) -> bool:
        return self.kind is NodeKind.SEND

    @property
    def is_block(self) -> bool:
        return self.kind is NodeKind.BLOCK

    @property
    def is_literal(self) -> bool:
        """True for symbol and string literals"""
        return self.kind in (NodeKind.SYM, NodeKind.STR)

    # ── Positions ─────────────────────────────────────────────────────

    @property
    def line(self) -> int:
        return self.span.start_line

    @property
    def last_line(self) -> int:
        return self.span.end_line

    @property
    def column(self) -> int:
        return self.span.start_column

    # ── Send accessors ────────────────────────────────────────────────

    @property
    def method_name(self) -> Optional[str]:
        return self.name if self.kind is NodeKind.SEND else None

    @property
    def arguments(self) -> Tuple["SyntaxNode", ...]:
        return self.children if self.kind is NodeKind.SEND else ()

    @property
    def first_argument(self) -> Optional["SyntaxNode"]:
        args = self.arguments
        return args[0] if args else None

    @property
    def options(self) -> Optional["SyntaxNode"]:
        """Trailing options hash of a send (`has_many :x, through: :y`)"""
        args = self.arguments
        if args and args[-1].kind is NodeKind.HASH:
            return args[-1]
        return None

    def option(self, key: str) -> Optional["SyntaxNode"]:
        """Value node of a symbol key in the trailing options hash"""
        options = self.options
        if options is None:
            return None
        for item in options.children:
            if item.kind is not NodeKind.PAIR or len(item.children) != 2:
                continue
            pair_key, pair_value = item.children
            if pair_key.is_literal and pair_key.value == key:
                return pair_value
        return None

    # ── Block / class accessors ───────────────────────────────────────

    @property
    def send_node(self) -> Optional["SyntaxNode"]:
        if self.kind is NodeKind.BLOCK and self.children:
            return self.children[0]
        return None

    @property
    def body(self) -> Optional["SyntaxNode"]:
        if self.kind is NodeKind.BLOCK:
            return self.children[1] if len(self.children) > 1 else None
        if self.kind in (NodeKind.CLASS, NodeKind.MODULE):
            return self.children[0] if self.children else None
        return None

    def statements(self) -> Tuple["SyntaxNode", ...]:
        """Top-level statements when this node is used as a body"""
        if self.kind is NodeKind.BEGIN:
            return self.children
        return (self,)

    # ── Text ──────────────────────────────────────────────────────────

    @property
    def text(self) -> str:
        """Source text, or a rendering of it when the parser gave none"""
        if self.source is not None:
            return self.source
        if self.kind is NodeKind.SYM:
            return f":{self.value}"
        if self.kind is NodeKind.STR:
            return f'"{self.value}"'
        if self.kind is NodeKind.CONST:
            return self.name or ""
        if self.kind is NodeKind.SEND:
            if self.receiver is not None:
                return f"{self.receiver.text}.{self.name}"
            return self.name or ""
        return self.name or ""

    # ── Traversal ─────────────────────────────────────────────────────

    def walk(self) -> Iterator["SyntaxNode"]:
        """Depth-first pre-order iteration over this node and its descendants"""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            nested = list(node.children)
            if node.superclass is not None:
                nested.insert(0, node.superclass)
            if node.receiver is not None:
                nested.insert(0, node.receiver)
            stack.extend(reversed(nested))

    # ── Deserialization ───────────────────────────────────────────────

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyntaxNode":
        """
        Build a tree from an external parser dump.

        Expected shape (children/receiver/superclass nest the same shape):
            {"type": "send", "name": "has_many",
             "loc": {"line": 3, "last_line": 3, "column": 2, "last_column": 20},
             "children": [...], "receiver": {...}, "value": "...", "source": "..."}

        Unknown node types map to NodeKind.OTHER. A missing location or a
        non-mapping entry raises InvalidSyntaxTreeError.
        """
        if not isinstance(data, dict):
            raise InvalidSyntaxTreeError(f"Expected a node mapping, got {type(data).__name__}")

        raw_kind = str(data.get("type") or data.get("kind") or "")
        if not raw_kind:
            raise InvalidSyntaxTreeError("Node is missing its 'type'")
        kind = _KIND_LOOKUP.get(raw_kind, NodeKind.OTHER)

        loc = data.get("loc")
        if not isinstance(loc, dict) or "line" not in loc:
            raise InvalidSyntaxTreeError(f"Node '{raw_kind}' is missing 'loc.line'")
        try:
            start_line = int(loc["line"])
            span = Span(
                start_line=start_line,
                end_line=int(loc.get("last_line", start_line)),
                start_column=int(loc.get("column", 0)),
                end_column=int(loc.get("last_column", 0)),
            )
        except (TypeError, ValueError) as e:
            raise InvalidSyntaxTreeError(f"Node '{raw_kind}' has a malformed location: {e}") from e

        receiver = data.get("receiver")
        superclass = data.get("superclass")
        meta = {} if kind is not NodeKind.OTHER else {"type": raw_kind}

        return cls(
            kind=kind,
            span=span,
            children=tuple(cls.from_dict(child) for child in data.get("children") or ()),
            name=data.get("name"),
            value=None if data.get("value") is None else str(data["value"]),
            receiver=cls.from_dict(receiver) if receiver else None,
            superclass=cls.from_dict(superclass) if superclass else None,
            source=data.get("source"),
            meta=meta,
        )


# ─── Builder helpers ─────────────────────────────────────────────────
# Used by parser adapters and tests to assemble trees by hand. Spans are
# derived from the given lines when an explicit end line is not provided.

def _last_line(line: int, nodes) -> int:
    return max([line] + [n.last_line for n in nodes if n is not None])


def sym(value: str, line: int = 1, column: int = 0) -> SyntaxNode:
    return SyntaxNode(NodeKind.SYM, Span(line, line, column), value=value)


def string(value: str, line: int = 1, column: int = 0) -> SyntaxNode:
    return SyntaxNode(NodeKind.STR, Span(line, line, column), value=value)


def const(name: str, line: int = 1, column: int = 0) -> SyntaxNode:
    return SyntaxNode(NodeKind.CONST, Span(line, line, column), name=name)


def pair(key: SyntaxNode, value: SyntaxNode) -> SyntaxNode:
    span = Span(key.line, _last_line(key.line, [value]), key.column)
    return SyntaxNode(NodeKind.PAIR, span, children=(key, value))


def hash_node(*pairs: SyntaxNode, line: Optional[int] = None) -> SyntaxNode:
    start = line if line is not None else (pairs[0].line if pairs else 1)
    return SyntaxNode(NodeKind.HASH, Span(start, _last_line(start, pairs)), children=tuple(pairs))


def array(*elements: SyntaxNode, line: Optional[int] = None) -> SyntaxNode:
    start = line if line is not None else (elements[0].line if elements else 1)
    return SyntaxNode(NodeKind.ARRAY, Span(start, _last_line(start, elements)), children=tuple(elements))


def options(line: int = 1, **values: Any) -> SyntaxNode:
    """Options hash with symbol keys; plain string values become symbols"""
    pairs = []
    for key, value in values.items():
        value_node = value if isinstance(value, SyntaxNode) else sym(str(value), line=line)
        pairs.append(pair(sym(key, line=line), value_node))
    return hash_node(*pairs, line=line)


def send(
    method: str,
    *args: SyntaxNode,
    receiver: Optional[SyntaxNode] = None,
    line: int = 1,
    end_line: Optional[int] = None,
    column: int = 0,
) -> SyntaxNode:
    last = end_line if end_line is not None else _last_line(line, args)
    return SyntaxNode(
        NodeKind.SEND,
        Span(line, last, column),
        children=tuple(args),
        name=method,
        receiver=receiver,
    )


def begin(*statements: SyntaxNode) -> SyntaxNode:
    start = statements[0].line if statements else 1
    span = Span(start, _last_line(start, statements), statements[0].column if statements else 0)
    return SyntaxNode(NodeKind.BEGIN, span, children=tuple(statements))


def _body(statements) -> Optional[SyntaxNode]:
    if not statements:
        return None
    if len(statements) == 1:
        return statements[0]
    return begin(*statements)


def block(head: SyntaxNode, *statements: SyntaxNode, end_line: Optional[int] = None) -> SyntaxNode:
    body = _body(statements)
    last = end_line if end_line is not None else _last_line(head.line, [body]) + 1
    children = (head,) if body is None else (head, body)
    return SyntaxNode(NodeKind.BLOCK, Span(head.line, last, head.column), children=children)


def class_node(
    name: str,
    superclass: Optional[SyntaxNode],
    *statements: SyntaxNode,
    line: int = 1,
    end_line: Optional[int] = None,
) -> SyntaxNode:
    body = _body(statements)
    last = end_line if end_line is not None else _last_line(line, [body]) + 1
    return SyntaxNode(
        NodeKind.CLASS,
        Span(line, last),
        children=(body,) if body is not None else (),
        name=name,
        superclass=superclass,
    )


def module_node(name: str, *statements: SyntaxNode, line: int = 1, end_line: Optional[int] = None) -> SyntaxNode:
    body = _body(statements)
    last = end_line if end_line is not None else _last_line(line, [body]) + 1
    return SyntaxNode(
        NodeKind.MODULE,
        Span(line, last),
        children=(body,) if body is not None else (),
        name=name,
    )


def other(line: int, end_line: Optional[int] = None, column: int = 0, name: Optional[str] = None) -> SyntaxNode:
    """A statement of no interest to the collector (method definition, constant assignment)"""
    return SyntaxNode(NodeKind.OTHER, Span(line, end_line if end_line is not None else line, column), name=name)
