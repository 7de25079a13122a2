"""Minimal sanity checks for the Otterscan MCP tools against a live node."""

from __future__ import annotations

import asyncio
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from otterscan_mcp.otterscan_api import default_client  # noqa: E402
from otterscan_mcp.tools import (  # noqa: E402
    get_api_level,
    get_block_details,
    get_contract_deployment,
    get_transaction_analysis,
    is_contract,
    list_address_transactions,
    validate_address,
)

# Optional samples; checks that need them are skipped when unset.
SAMPLE_ADDRESS = os.getenv("OTTERSCAN_SAMPLE_ADDRESS")
SAMPLE_TX_HASH = os.getenv("OTTERSCAN_SAMPLE_TX_HASH")
SAMPLE_BLOCK = os.getenv("OTTERSCAN_SAMPLE_BLOCK", "latest")
# Opt-in to the full history walk (can issue many requests).
RUN_HISTORY = os.getenv("RUN_HISTORY_SANITY", "false").lower() in {"1", "true", "yes"}


async def main() -> None:
    print("API level:", await get_api_level())
    print("Block details:", await get_block_details(SAMPLE_BLOCK))

    if SAMPLE_ADDRESS:
        print("Validate address:", validate_address(SAMPLE_ADDRESS))
        print("Is contract:", await is_contract(SAMPLE_ADDRESS))
        print("Deployment:", await get_contract_deployment(SAMPLE_ADDRESS))
        if RUN_HISTORY:
            history = await list_address_transactions(SAMPLE_ADDRESS, page_size=25)
            print("History count:", history.get("count", history))

    if SAMPLE_TX_HASH:
        print("Transaction analysis:", await get_transaction_analysis(SAMPLE_TX_HASH))

    await default_client.aclose()


if __name__ == "__main__":
    asyncio.run(main())
