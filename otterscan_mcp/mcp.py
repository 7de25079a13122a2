"""
Lightweight JSON-RPC surface for MCP-style tooling.

This keeps a minimal, safe mapping of tool names to existing implementations.
It is intentionally small and stateless; caller must handle authentication to
the HTTP server hosting this adapter.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from otterscan_mcp.config import default_config
from otterscan_mcp.tools import (
    get_api_level,
    get_block_details,
    get_block_transactions,
    get_block_with_transactions,
    get_contract_creator,
    get_contract_deployment,
    get_internal_operations,
    get_transaction_analysis,
    get_transaction_by_sender_and_nonce,
    get_transaction_error,
    get_transaction_trace,
    is_contract,
    list_address_transactions,
    search_transactions_after,
    search_transactions_before,
    validate_address,
)
from otterscan_mcp.tools.validators import ADDRESS_REGEX, HASH_REGEX

ADDRESS_PATTERN = ADDRESS_REGEX.pattern
HASH_PATTERN = HASH_REGEX.pattern

BLOCK_SCHEMA: Dict[str, Any] = {
    "anyOf": [
        {"type": "integer", "minimum": 0},
        {"type": "string", "description": "Hex number or tag (earliest, latest, ...)"},
    ]
}
ADDRESS_SCHEMA: Dict[str, Any] = {"type": "string", "pattern": ADDRESS_PATTERN}
HASH_SCHEMA: Dict[str, Any] = {"type": "string", "pattern": HASH_PATTERN}


def _page_size_schema(max_value: int) -> Dict[str, Any]:
    return {
        "type": "integer",
        "minimum": 1,
        "maximum": max_value,
        "description": f"Optional page size (1-{max_value})",
    }


def _object_schema(properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": required,
        "additionalProperties": False,
    }


ToolCallable = Callable[..., Awaitable[Any]] | Callable[..., Any]


@dataclass(slots=True)
class ToolDefinition:
    name: str
    description: str
    params: Dict[str, Any]
    input_schema: Dict[str, Any]
    callable: ToolCallable


def _tool(
    name: str,
    description: str,
    callable: ToolCallable,
    properties: Optional[Dict[str, Any]] = None,
    required: Optional[List[str]] = None,
) -> ToolDefinition:
    properties = properties or {}
    required = required or []
    params = {
        key: ("required" if key in required else "optional") for key in properties
    }
    return ToolDefinition(
        name=name,
        description=description,
        params=params,
        input_schema=_object_schema(properties, required),
        callable=callable,
    )


_PAGE_SIZE = _page_size_schema(default_config.max_page_size)

TOOL_REGISTRY: Dict[str, ToolDefinition] = {
    tool.name: tool
    for tool in (
        _tool("get_api_level", "Return the Otterscan API level of the node.", get_api_level),
        _tool(
            "validate_address",
            "Check whether a string is a well-formed EVM address (no network call).",
            validate_address,
            {"address": {"type": "string"}},
            ["address"],
        ),
        _tool(
            "list_address_transactions",
            "Every transaction touching an address within a block range, oldest first.",
            list_address_transactions,
            {
                "address": ADDRESS_SCHEMA,
                "from_block": BLOCK_SCHEMA,
                "to_block": BLOCK_SCHEMA,
                "page_size": _PAGE_SIZE,
            },
            ["address"],
        ),
        _tool(
            "search_transactions_before",
            "One page of an address's transactions older than a block.",
            search_transactions_before,
            {"address": ADDRESS_SCHEMA, "block": BLOCK_SCHEMA, "page_size": _PAGE_SIZE},
            ["address"],
        ),
        _tool(
            "search_transactions_after",
            "One page of an address's transactions newer than a block.",
            search_transactions_after,
            {"address": ADDRESS_SCHEMA, "block": BLOCK_SCHEMA, "page_size": _PAGE_SIZE},
            ["address"],
        ),
        _tool(
            "get_block_details",
            "Block header with issuance and total fees, by number, tag or hash.",
            get_block_details,
            {"block": {"anyOf": [*BLOCK_SCHEMA["anyOf"], HASH_SCHEMA]}},
            ["block"],
        ),
        _tool(
            "get_block_transactions",
            "One page of a block's transactions and receipts.",
            get_block_transactions,
            {
                "block": BLOCK_SCHEMA,
                "page": {"type": "integer", "minimum": 0},
                "page_size": _PAGE_SIZE,
            },
            ["block"],
        ),
        _tool(
            "get_block_with_transactions",
            "Block details plus every transaction in the block.",
            get_block_with_transactions,
            {"block": BLOCK_SCHEMA},
            ["block"],
        ),
        _tool(
            "get_contract_creator",
            "Creator address and creation transaction hash of a contract.",
            get_contract_creator,
            {"address": ADDRESS_SCHEMA},
            ["address"],
        ),
        _tool(
            "is_contract",
            "Whether an address has deployed code.",
            is_contract,
            {"address": ADDRESS_SCHEMA, "block": BLOCK_SCHEMA},
            ["address"],
        ),
        _tool(
            "get_contract_deployment",
            "Contract creator with the creation transaction and its trace (best effort).",
            get_contract_deployment,
            {"address": ADDRESS_SCHEMA},
            ["address"],
        ),
        _tool(
            "get_transaction_trace",
            "Execution trace of a transaction.",
            get_transaction_trace,
            {"tx_hash": HASH_SCHEMA},
            ["tx_hash"],
        ),
        _tool(
            "get_internal_operations",
            "Internal ETH transfers, creations and self-destructs of a transaction.",
            get_internal_operations,
            {"tx_hash": HASH_SCHEMA},
            ["tx_hash"],
        ),
        _tool(
            "get_transaction_error",
            "Raw revert data of a failed transaction.",
            get_transaction_error,
            {"tx_hash": HASH_SCHEMA},
            ["tx_hash"],
        ),
        _tool(
            "get_transaction_analysis",
            "Trace, internal operations and revert data together (best effort).",
            get_transaction_analysis,
            {"tx_hash": HASH_SCHEMA},
            ["tx_hash"],
        ),
        _tool(
            "get_transaction_by_sender_and_nonce",
            "Transaction hash for a sender address and nonce.",
            get_transaction_by_sender_and_nonce,
            {"sender": ADDRESS_SCHEMA, "nonce": {"type": "integer", "minimum": 0}},
            ["sender", "nonce"],
        ),
    )
}


def list_tools() -> List[Dict[str, Any]]:
    """Return a simple list of available tools."""
    return [
        {
            "name": tool.name,
            "description": tool.description,
            "params": tool.params,
            "inputSchema": tool.input_schema,
        }
        for tool in TOOL_REGISTRY.values()
    ]


async def call_tool(tool_name: str, params: Optional[Dict[str, Any]] = None) -> Any:
    """Dispatch to a tool by name."""
    params = params or {}
    tool = TOOL_REGISTRY.get(tool_name)
    if tool is None:
        return {"error": f"Unknown tool: {tool_name}"}

    # Match parameters by name; tools already handle validation and error shaping.
    try:
        result = tool.callable(**params)
        if inspect.isawaitable(result):
            return await result
        return result
    except TypeError:
        return {"error": "Invalid parameters."}
    except Exception:
        return {"error": "Unexpected error while calling tool."}
