"""
Lint Controller: runs a lint request through the engine.

Handles: lint (one file per request), rules (registry listing)
"""

import logging
from typing import Any, Dict

from declcop.models import LintPayload, LintRequest
from declcop.services.lint_engine import LintEngine, get_lint_engine
from declcop.utils.errors import InvalidSyntaxTreeError, error_response

logger = logging.getLogger("declcop.lint_controller")


class LintController:
    """Validates lint payloads and turns engine results into responses."""

    def __init__(self, engine: LintEngine | None = None) -> None:
        self.engine = engine or get_lint_engine()

    def _engine_for(self, req: LintRequest) -> LintEngine:
        """Engine honoring per-request rule overrides in context.rules"""
        overrides = (req.context or {}).get("rules")
        if not overrides:
            return self.engine
        config = self.engine.config.with_rule_overrides(overrides)
        return LintEngine(config=config, checks=self.engine.checks)

    def lint(self, req: LintRequest) -> Dict[str, Any]:
        payload = LintPayload(**req.payload)
        if payload.tree is None:
            return error_response(req.request_id, "INVALID_TREE", "payload.tree is required")

        try:
            result = self._engine_for(req).lint_dict(payload.tree, payload.source, payload.path)
        except InvalidSyntaxTreeError as e:
            logger.error(f"Invalid tree for {payload.path or req.request_id}: {e}")
            return error_response(req.request_id, "INVALID_TREE", str(e))

        return {
            "request_id": req.request_id,
            "type": "diagnostics",
            "data": result.model_dump(mode="json"),
            "error": None,
        }

    def rules(self, req: LintRequest) -> Dict[str, Any]:
        return {
            "request_id": req.request_id,
            "type": "rules",
            "data": {"rules": self._engine_for(req).describe_rules()},
            "error": None,
        }


_controller_instance: LintController | None = None


def get_lint_controller() -> LintController:
    global _controller_instance
    if _controller_instance is None:
        _controller_instance = LintController()
    return _controller_instance
