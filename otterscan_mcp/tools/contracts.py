"""Contract inspection tools."""

from __future__ import annotations

import logging
from typing import Any, Dict

from otterscan_mcp.otterscan_api import OtterscanApiError, default_client
from otterscan_mcp.tools.errors import api_error_response
from otterscan_mcp.tools.validators import is_valid_address, parse_block_param

logger = logging.getLogger(__name__)


async def get_contract_creator(address: str, *, client=default_client) -> Dict[str, Any]:
    if not is_valid_address(address):
        return {"error": "Invalid address."}
    try:
        creator = await client.get_contract_creator(address.strip())
    except OtterscanApiError as exc:
        return api_error_response(exc)
    except Exception:
        logger.exception("Unexpected error fetching contract creator for %s", address)
        return {"error": "Unexpected error while retrieving contract creator."}
    if not creator:
        return {"error": "Contract creator not found."}
    return {"address": address.strip(), **creator}


async def is_contract(address: str, *, block: Any = "latest", client=default_client) -> Dict[str, Any]:
    """Whether the address has code. Node failures read as not a contract."""
    if not is_valid_address(address):
        return {"error": "Invalid address."}
    parsed_block = parse_block_param(block)
    if parsed_block is None:
        return {"error": "Invalid block."}
    result = await client.is_contract(address.strip(), parsed_block)
    return {"address": address.strip(), "isContract": bool(result)}


async def get_contract_deployment(address: str, *, client=default_client) -> Dict[str, Any]:
    """Creator, creation transaction and trace; missing follow-ups land in ``failures``."""
    if not is_valid_address(address):
        return {"error": "Invalid address."}
    try:
        deployment = await client.get_contract_deployment(address.strip())
    except OtterscanApiError as exc:
        return api_error_response(exc)
    except Exception:
        logger.exception("Unexpected error fetching deployment for %s", address)
        return {"error": "Unexpected error while retrieving contract deployment."}
    if deployment.creator is None:
        return {"error": "Contract creator not found."}
    return deployment.to_dict()
