"""
Container discovery.

A container is one syntactic body whose declarations are checked together:
the body of a model class, the body of a `Rails.application.routes.draw`
block, or a whole routes file that holds route declarations without a draw
block (files pulled in with `draw :admin`).
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from declcop.models import ContainerConfig, ContainerKind, FamilyConfig, LintConfig
from declcop.services.declarations import Declaration
from declcop.utils.syntax_tree import NodeKind, SyntaxNode

logger = logging.getLogger("declcop.containers")


@dataclass
class Container:
    """A checked body together with its collected declarations"""
    kind: ContainerKind
    family: FamilyConfig
    node: SyntaxNode
    body: Optional[SyntaxNode]
    lines: Sequence[str] = ()
    path: str = ""
    declarations: List[Declaration] = field(default_factory=list)

    def line_text(self, line_no: int) -> Optional[str]:
        """Source text of a 1-indexed line, None when the source is unavailable"""
        if 1 <= line_no <= len(self.lines):
            return self.lines[line_no - 1]
        return None

    def is_blank(self, line_no: int) -> bool:
        # Without source text every gap line is taken to be blank
        text = self.line_text(line_no)
        return text is None or not text.strip()


def _is_model_class(node: SyntaxNode, config: ContainerConfig) -> bool:
    if node.kind is not NodeKind.CLASS or node.superclass is None:
        return False
    parent_name = node.superclass.text.lstrip(":")
    return any(
        parent_name == parent or parent_name.endswith(f"::{parent}")
        for parent in config.model_parents
    )


def _is_routes_draw(node: SyntaxNode, config: ContainerConfig) -> bool:
    if node.kind is not NodeKind.BLOCK:
        return False
    head = node.send_node
    if head is None or not head.is_send or head.receiver is None:
        return False
    return head.method_name == config.routes_method and head.receiver.text == config.routes_receiver


def find_container_nodes(
    tree: SyntaxNode, path: str, config: ContainerConfig
) -> List[Tuple[ContainerKind, SyntaxNode, Optional[SyntaxNode]]]:
    """(kind, container node, body) for every container in the tree, in source order"""
    found: List[Tuple[ContainerKind, SyntaxNode, Optional[SyntaxNode]]] = []

    for node in tree.walk():
        if _is_model_class(node, config):
            found.append((ContainerKind.MODEL_CLASS, node, node.body))
        elif _is_routes_draw(node, config):
            found.append((ContainerKind.ROUTES_DRAW, node, node.body))

    has_draw = any(kind is ContainerKind.ROUTES_DRAW for kind, _, _ in found)
    if path.endswith(config.routes_file_suffix) and not has_draw:
        found.append((ContainerKind.ROUTES_FILE, tree, tree))

    return found


def find_containers(tree: SyntaxNode, lines: Sequence[str], path: str, config: LintConfig) -> List[Container]:
    """Pair every container node with each family checked in that kind of container"""
    containers: List[Container] = []
    for kind, node, body in find_container_nodes(tree, path, config.containers):
        for family in config.families:
            if kind in family.containers:
                containers.append(Container(
                    kind=kind,
                    family=family,
                    node=node,
                    body=body,
                    lines=lines,
                    path=path,
                ))
    logger.debug(f"[Containers] {path or '<memory>'}: {len(containers)} containers")
    return containers
