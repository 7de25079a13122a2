"""Address history tools backed by Otterscan's paged search endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from otterscan_mcp.config import OtterscanConfig, default_config
from otterscan_mcp.otterscan_api import OtterscanApiError, default_client
from otterscan_mcp.otterscan_api.encoding import parse_quantity
from otterscan_mcp.tools.errors import UNEXPECTED_RESPONSE, api_error_response
from otterscan_mcp.tools.validators import clamp_limit, is_valid_address, parse_block_param

logger = logging.getLogger(__name__)


def _as_number(block: Any) -> Optional[int]:
    try:
        return parse_quantity(block)
    except ValueError:
        return None


def validate_address(address: str) -> Dict[str, bool]:
    """Format check only; never touches the node."""
    return {"isValid": is_valid_address(address)}


async def list_address_transactions(
    address: str,
    *,
    from_block: Any = "earliest",
    to_block: Any = "latest",
    page_size: Optional[int] = None,
    client=default_client,
    config: OtterscanConfig = default_config,
) -> Dict[str, Any]:
    """Full transaction history for an address in a block range, oldest first."""
    if not is_valid_address(address):
        return {"error": "Invalid address."}
    lower = parse_block_param(from_block)
    upper = parse_block_param(to_block)
    if lower is None or upper is None or lower in ("latest", "pending", "safe", "finalized"):
        return {"error": "Invalid block range."}
    lower_n, upper_n = _as_number(lower), _as_number(upper)
    if lower_n is not None and upper_n is not None and lower_n > upper_n:
        return {"error": "Invalid block range."}
    effective_page_size = clamp_limit(
        page_size, default=config.default_page_size, max_value=config.max_page_size
    )

    try:
        transactions = await client.get_all_transactions_for_address(
            address.strip(), from_block=lower, to_block=upper, page_size=effective_page_size
        )
    except OtterscanApiError as exc:
        return api_error_response(exc)
    except ValueError:
        logger.warning("Malformed block number in history for %s", address)
        return dict(UNEXPECTED_RESPONSE)
    except Exception:
        logger.exception("Unexpected error walking history for %s", address)
        return {"error": "Unexpected error while retrieving address transactions."}
    return {
        "address": address.strip(),
        "fromBlock": lower,
        "toBlock": upper,
        "count": len(transactions),
        "transactions": transactions,
    }


async def _search(
    direction: str,
    address: str,
    block: Any,
    page_size: Optional[int],
    client,
    config: OtterscanConfig,
) -> Dict[str, Any]:
    if not is_valid_address(address):
        return {"error": "Invalid address."}
    parsed_block = parse_block_param(block)
    if parsed_block is None:
        return {"error": "Invalid block."}
    effective_page_size = clamp_limit(
        page_size, default=config.default_page_size, max_value=config.max_page_size
    )
    search = client.search_transactions_before if direction == "before" else client.search_transactions_after
    try:
        page = await search(address.strip(), parsed_block, effective_page_size)
    except OtterscanApiError as exc:
        return api_error_response(exc)
    except Exception:
        logger.exception("Unexpected error searching transactions %s block for %s", direction, address)
        return {"error": "Unexpected error while searching transactions."}
    return page.to_dict()


async def search_transactions_before(
    address: str,
    *,
    block: Any = "latest",
    page_size: Optional[int] = None,
    client=default_client,
    config: OtterscanConfig = default_config,
) -> Dict[str, Any]:
    """One page of an address's transactions older than ``block``."""
    return await _search("before", address, block, page_size, client, config)


async def search_transactions_after(
    address: str,
    *,
    block: Any = 0,
    page_size: Optional[int] = None,
    client=default_client,
    config: OtterscanConfig = default_config,
) -> Dict[str, Any]:
    """One page of an address's transactions newer than ``block``."""
    return await _search("after", address, block, page_size, client, config)
