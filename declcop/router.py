from .models import LintRequest
from .controllers.lint_controller import get_lint_controller
from .utils.errors import error_response
import logging
import os

# Configure logging
logging.basicConfig(level=os.getenv("DECLCOP_LOG_LEVEL", "INFO").upper())
logger = logging.getLogger("declcop.router")


def route_request(raw_msg: dict) -> dict:
    try:
        # Validate request structure
        req = LintRequest(**raw_msg)

        logger.info(f"Routing request: {req.request_id} Action: {req.action}")

        controller = get_lint_controller()
        if req.action == "lint":
            return controller.lint(req)
        if req.action == "rules":
            return controller.rules(req)

        # Default fallback for unknown actions
        return error_response(
            req.request_id,
            "UNKNOWN_ACTION",
            f"Unsupported action: {req.action}"
        )

    except Exception as e:
        logger.error(f"Routing error: {str(e)}")
        # If we can't parse the request_id, use "unknown" or try to retrieve it safely
        req_id = raw_msg.get("request_id", "unknown") if isinstance(raw_msg, dict) else "unknown"
        return error_response(
            req_id,
            "INTERNAL_ERROR",
            str(e)
        )
