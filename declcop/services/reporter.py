"""
Diagnostic Reporter

Turns a check's findings into positioned diagnostics. A diagnostic keeps a
reference to the offending node so the host engine can resolve the source
location itself; checks that know how to correct a finding attach an Edit,
which only describes the change. Applying it is the host's job.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from declcop.models import DiagnosticDetail, EditDetail, LocationDetail, Severity
from declcop.services.declarations import Declaration
from declcop.utils.syntax_tree import SyntaxNode

INSERT_AFTER = "insert_after"
REPLACE = "replace"


def _location(node: SyntaxNode) -> LocationDetail:
    return LocationDetail(line=node.line, column=node.column, end_line=node.last_line)


@dataclass(frozen=True)
class Edit:
    """Proposed text change anchored on a node"""
    action: str  # "insert_after" | "replace"
    node: SyntaxNode
    text: str

    def to_detail(self) -> EditDetail:
        return EditDetail(action=self.action, text=self.text, location=_location(self.node))


def insert_after(node: SyntaxNode, text: str) -> Edit:
    return Edit(action=INSERT_AFTER, node=node, text=text)


def replace(node: SyntaxNode, text: str) -> Edit:
    return Edit(action=REPLACE, node=node, text=text)


@dataclass
class Diagnostic:
    """A convention violation"""
    rule: str
    message: str
    node: SyntaxNode
    severity: Severity = Severity.CONVENTION
    edit: Optional[Edit] = None

    @property
    def line(self) -> int:
        return self.node.line

    @property
    def column(self) -> int:
        return self.node.column

    def to_detail(self) -> DiagnosticDetail:
        return DiagnosticDetail(
            rule=self.rule,
            message=self.message,
            severity=self.severity,
            location=_location(self.node),
            edit=self.edit.to_detail() if self.edit else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.to_detail().model_dump(mode="json")


class DiagnosticReporter:
    """Builds the diagnostics of one rule from its message template."""

    def __init__(self, rule: str, template: str, severity: Severity = Severity.CONVENTION) -> None:
        self.rule = rule
        self.template = template
        self.severity = severity

    def report(
        self,
        target: Union[Declaration, SyntaxNode],
        edit: Optional[Edit] = None,
        **values: Any,
    ) -> Diagnostic:
        """
        Diagnostic for a declaration or a bare node.

        `values` fill the `{placeholders}` of the rule's template.
        """
        node = target.node if isinstance(target, Declaration) else target
        if node is None:
            raise ValueError(f"[{self.rule}] Cannot report a declaration without a node")
        message = self.template.format(**values) if values else self.template
        return Diagnostic(rule=self.rule, message=message, node=node, severity=self.severity, edit=edit)
