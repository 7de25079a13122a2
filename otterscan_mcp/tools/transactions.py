"""Transaction inspection tools: traces, internal operations and revert data."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from otterscan_mcp.otterscan_api import OtterscanApiError, default_client
from otterscan_mcp.tools.errors import UNEXPECTED_RESPONSE, api_error_response
from otterscan_mcp.tools.validators import is_valid_address, is_valid_hash, parse_nonce

logger = logging.getLogger(__name__)

INVALID_HASH = {"error": "Invalid transaction hash."}


async def get_transaction_trace(tx_hash: str, *, client=default_client) -> Any:
    if not is_valid_hash(tx_hash):
        return dict(INVALID_HASH)
    try:
        trace = await client.trace_transaction(tx_hash.strip())
    except OtterscanApiError as exc:
        return api_error_response(exc)
    except Exception:
        logger.exception("Unexpected error tracing transaction %s", tx_hash)
        return {"error": "Unexpected error while tracing transaction."}
    if trace is None:
        return {"error": "Transaction not found."}
    return {"hash": tx_hash.strip(), "trace": trace}


async def get_internal_operations(tx_hash: str, *, client=default_client) -> List[Dict[str, Any]] | Dict[str, Any]:
    if not is_valid_hash(tx_hash):
        return dict(INVALID_HASH)
    try:
        operations = await client.get_internal_operations(tx_hash.strip())
    except OtterscanApiError as exc:
        return api_error_response(exc)
    except Exception:
        logger.exception("Unexpected error fetching internal operations for %s", tx_hash)
        return {"error": "Unexpected error while retrieving internal operations."}
    if operations is None:
        return []
    if isinstance(operations, list):
        return operations
    return dict(UNEXPECTED_RESPONSE)


async def get_transaction_error(tx_hash: str, *, client=default_client) -> Dict[str, Any]:
    if not is_valid_hash(tx_hash):
        return dict(INVALID_HASH)
    try:
        revert_data = await client.get_transaction_error(tx_hash.strip())
    except OtterscanApiError as exc:
        return api_error_response(exc)
    except Exception:
        logger.exception("Unexpected error fetching transaction error for %s", tx_hash)
        return {"error": "Unexpected error while retrieving transaction error."}
    return {"hash": tx_hash.strip(), "revertData": revert_data}


async def get_transaction_analysis(tx_hash: str, *, client=default_client) -> Dict[str, Any]:
    """
    Combined trace, internal operations and revert data.

    Sub-reads that fail are listed under ``failures`` rather than turning the
    whole result into an error.
    """
    if not is_valid_hash(tx_hash):
        return dict(INVALID_HASH)
    try:
        analysis = await client.get_transaction_analysis(tx_hash.strip())
    except OtterscanApiError as exc:
        return api_error_response(exc)
    except Exception:
        logger.exception("Unexpected error analysing transaction %s", tx_hash)
        return {"error": "Unexpected error while analysing transaction."}
    return analysis.to_dict()


async def get_transaction_by_sender_and_nonce(
    sender: str, nonce: Any, *, client=default_client
) -> Dict[str, Any]:
    if not is_valid_address(sender):
        return {"error": "Invalid address."}
    parsed_nonce = parse_nonce(nonce)
    if parsed_nonce is None:
        return {"error": "Invalid nonce."}
    try:
        tx_hash = await client.get_transaction_by_sender_and_nonce(sender.strip(), parsed_nonce)
    except OtterscanApiError as exc:
        return api_error_response(exc)
    except Exception:
        logger.exception("Unexpected error looking up %s nonce %s", sender, nonce)
        return {"error": "Unexpected error while looking up transaction."}
    return {"sender": sender.strip(), "nonce": parsed_nonce, "hash": tx_hash}
