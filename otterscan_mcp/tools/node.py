"""Node capability tools."""

from __future__ import annotations

import logging
from typing import Any, Dict

from otterscan_mcp.otterscan_api import OtterscanApiError, default_client
from otterscan_mcp.tools.errors import UNEXPECTED_RESPONSE, api_error_response

logger = logging.getLogger(__name__)


async def get_api_level(*, client=default_client) -> Dict[str, Any]:
    """Report the Otterscan API level the node implements."""
    try:
        level = await client.get_api_level()
    except OtterscanApiError as exc:
        return api_error_response(exc)
    except Exception:
        logger.exception("Unexpected error fetching API level")
        return {"error": "Unexpected error while retrieving API level."}
    if isinstance(level, bool) or not isinstance(level, int):
        return dict(UNEXPECTED_RESPONSE)
    return {"apiLevel": level}
