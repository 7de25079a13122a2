"""Map client exceptions to the safe error payloads returned by tools."""

from __future__ import annotations

from typing import Dict

from otterscan_mcp.otterscan_api import (
    NodeUnreachableError,
    OtterscanApiError,
    RetryExhaustedError,
)

NODE_UNREACHABLE = {"error": "Node unreachable"}
API_ERROR = {"error": "Otterscan API error."}
UNEXPECTED_RESPONSE = {"error": "Unexpected response from node."}


def api_error_response(exc: OtterscanApiError) -> Dict[str, str]:
    """Classify by the last attempt's failure when retries were exhausted."""
    cause = exc.last_error if isinstance(exc, RetryExhaustedError) else exc
    if isinstance(cause, NodeUnreachableError):
        return dict(NODE_UNREACHABLE)
    if isinstance(cause, OtterscanApiError) and str(cause) == UNEXPECTED_RESPONSE["error"]:
        return dict(UNEXPECTED_RESPONSE)
    return dict(API_ERROR)
