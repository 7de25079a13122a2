"""Block-related tools."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from otterscan_mcp.config import OtterscanConfig, default_config
from otterscan_mcp.otterscan_api import OtterscanApiError, default_client
from otterscan_mcp.tools.errors import api_error_response
from otterscan_mcp.tools.validators import clamp_limit, is_valid_hash, parse_block_param

logger = logging.getLogger(__name__)


def _parse_int(value: Any, field: str) -> Optional[int]:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        logger.debug("Invalid %s: %s", field, value)
        return None
    return parsed


async def get_block_details(block: Any, *, client=default_client) -> Dict[str, Any]:
    """Block header with issuance and fee totals, by number, tag or hash."""
    if is_valid_hash(block):
        fetch = client.get_block_details_by_hash(block.strip())
    else:
        parsed = parse_block_param(block)
        if parsed is None:
            return {"error": "Invalid block."}
        fetch = client.get_block_details(parsed)
    try:
        details = await fetch
    except OtterscanApiError as exc:
        return api_error_response(exc)
    except Exception:
        logger.exception("Unexpected error fetching block details for %s", block)
        return {"error": "Unexpected error while retrieving block details."}
    if details is None:
        return {"error": "Block not found."}
    return details


async def get_block_transactions(
    block: Any,
    *,
    page: Any = 0,
    page_size: Optional[int] = None,
    client=default_client,
    config: OtterscanConfig = default_config,
) -> Dict[str, Any]:
    """One page of a block's transactions and receipts."""
    parsed = parse_block_param(block)
    if parsed is None:
        return {"error": "Invalid block."}
    page_number = _parse_int(page, "page")
    if page_number is None or page_number < 0:
        return {"error": "Invalid page."}
    effective_page_size = clamp_limit(
        page_size, default=config.default_page_size, max_value=config.max_page_size
    )
    try:
        result = await client.get_block_transactions(parsed, page_number, effective_page_size)
    except OtterscanApiError as exc:
        return api_error_response(exc)
    except Exception:
        logger.exception("Unexpected error fetching block transactions for %s", block)
        return {"error": "Unexpected error while retrieving block transactions."}
    return result.to_dict()


async def get_block_with_transactions(block: Any, *, client=default_client) -> Dict[str, Any]:
    """Block details plus every transaction in the block, in block order."""
    parsed = parse_block_param(block)
    if parsed is None:
        return {"error": "Invalid block."}
    try:
        result = await client.get_block_with_transactions(parsed)
    except OtterscanApiError as exc:
        return api_error_response(exc)
    except Exception:
        logger.exception("Unexpected error fetching full block %s", block)
        return {"error": "Unexpected error while retrieving block with transactions."}
    return result.to_dict()
