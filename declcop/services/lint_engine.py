"""
Lint Engine

Runs one file through the whole analysis:

    tree → containers → declarations → convention checks → diagnostics

Key Principles:
1. One file in, one ordered diagnostic list out - nothing is kept between calls
2. Checks are independent - a failing check is logged and skipped, it never
   aborts the pass or hides the findings of the others
3. Configuration decides which checks run and at what severity
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from declcop.models import LintConfig, LintResult
from declcop.services.collector import DeclarationCollector
from declcop.services.config_loader import get_lint_config
from declcop.services.containers import find_containers
from declcop.services.convention_checks import CHECK_REGISTRY, ConventionCheck
from declcop.services.reporter import Diagnostic, DiagnosticReporter
from declcop.utils.errors import InvalidSyntaxTreeError
from declcop.utils.syntax_tree import SyntaxNode

logger = logging.getLogger("declcop.lint_engine")


class LintEngine:
    """
    Applies every enabled convention check to the containers of a file.

    The engine only holds configuration and stateless check objects, so one
    instance can serve any number of files, including concurrently.
    """

    def __init__(self, config: Optional[LintConfig] = None, checks: Optional[List[ConventionCheck]] = None):
        self.config = config or get_lint_config()
        self.checks = list(checks) if checks is not None else list(CHECK_REGISTRY)
        self._collectors = {family.name: DeclarationCollector(family) for family in self.config.families}

    def enabled_checks(self, family: str) -> List[ConventionCheck]:
        return [
            check for check in self.checks
            if check.family == family and self.config.rule_settings(check.id).enabled
        ]

    def describe_rules(self) -> List[Dict[str, Any]]:
        """Registered checks with their configured state"""
        return [
            {
                "id": check.id,
                "family": check.family,
                "enabled": self.config.rule_settings(check.id).enabled,
                "severity": self.config.rule_settings(check.id).severity.value,
                "description": check.description,
            }
            for check in self.checks
        ]

    def lint(self, tree: SyntaxNode, lines: Sequence[str] = (), path: str = "") -> List[Diagnostic]:
        """
        Lint one parsed file.

        Args:
            tree:  Root node from the external parser
            lines: Source lines of the file (used for blank-line checks)
            path:  File path, used to recognize route files

        Returns:
            Diagnostics ordered by position, then rule id

        Raises:
            InvalidSyntaxTreeError: when no tree is given
        """
        if not isinstance(tree, SyntaxNode):
            raise InvalidSyntaxTreeError(f"Expected a SyntaxNode, got {type(tree).__name__}")

        diagnostics: List[Diagnostic] = []
        for container in find_containers(tree, lines, path, self.config):
            collector = self._collectors[container.family.name]
            container.declarations = collector.collect(container.body)

            for check in self.enabled_checks(container.family.name):
                settings = self.config.rule_settings(check.id)
                reporter = DiagnosticReporter(check.id, check.message, settings.severity)
                try:
                    diagnostics.extend(check.detect(container, reporter))
                except Exception as e:
                    logger.exception(f"Check {check.id} failed on {path or '<memory>'}: {e}")

        diagnostics = self._ordered(diagnostics)
        for d in diagnostics:
            logger.warning(f"[Lint] {path} {d.rule} L{d.line}: {d.message}")
        logger.info(f"[Lint] {path or '<memory>'}: {len(diagnostics)} diagnostics")
        return diagnostics

    def lint_dict(self, tree: Optional[Dict[str, Any]], source: str = "", path: str = "") -> LintResult:
        """Lint a tree in its serialized form and return the serializable result"""
        if tree is None:
            raise InvalidSyntaxTreeError("No syntax tree supplied")
        diagnostics = self.lint(SyntaxNode.from_dict(tree), source.splitlines(), path)
        return LintResult(
            path=path,
            passed=not diagnostics,
            diagnostics=[d.to_detail() for d in diagnostics],
        )

    @staticmethod
    def _ordered(diagnostics: List[Diagnostic]) -> List[Diagnostic]:
        # The same node can only be reported once per rule
        unique: Dict[tuple, Diagnostic] = {}
        for d in diagnostics:
            unique.setdefault((d.rule, id(d.node)), d)
        return sorted(unique.values(), key=lambda d: (d.line, d.column, d.rule))


# Singleton instance
_engine_instance: Optional[LintEngine] = None


def get_lint_engine() -> LintEngine:
    """Get singleton instance of the lint engine"""
    global _engine_instance
    if _engine_instance is None:
        _engine_instance = LintEngine()
    return _engine_instance
