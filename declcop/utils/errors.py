from typing import Any, Dict


class DeclcopError(Exception):
    """Base class for errors raised by declcop"""


class InvalidSyntaxTreeError(DeclcopError):
    """The tree handed in by the external parser is absent or malformed"""


class ConfigError(DeclcopError):
    """The lint configuration could not be read or failed validation"""


def error_response(request_id: str, code: str, message: str) -> Dict[str, Any]:
    return {
        "request_id": request_id,
        "type": "error",
        "data": None, # Explicitly null for error responses
        "error": {
            "code": code,
            "message": message
        }
    }
