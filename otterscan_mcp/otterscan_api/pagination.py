"""
Cursor-driven traversals over Otterscan's paged search endpoints.

Otterscan has no range query for address history: it only answers "N
transactions before block B". The backward walk below starts at the newest
end of the requested window and stops as soon as a page reaches below the
lower bound. Block transactions are paged by index and walked forward.

Both traversals take the page fetcher as a callable so they never touch the
transport directly; every request goes through the client's retrying
``call``. Pages are fetched strictly one after another because each cursor
depends on the previous page.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Tuple

from .encoding import BlockParam, parse_quantity, resolve_lower_bound
from .models import TransactionPage

logger = logging.getLogger(__name__)

AddressPageFetcher = Callable[[str, BlockParam, int], Awaitable[TransactionPage]]
BlockPageFetcher = Callable[[BlockParam, int, int], Awaitable[TransactionPage]]


def _block_number(tx: Dict[str, Any]) -> int:
    return parse_quantity(tx.get("blockNumber"))


async def collect_address_transactions(
    fetch_page: AddressPageFetcher,
    address: str,
    *,
    from_block: BlockParam = "earliest",
    to_block: BlockParam = "latest",
    page_size: int = 25,
) -> List[Dict[str, Any]]:
    """
    Walk an address's history backward from ``to_block`` down to ``from_block``.

    Each page is filtered against the lower bound before it is kept. A page
    that loses any record to the filter has crossed ``from_block`` and is the
    last one requested. The result is sorted ascending by block number.
    """
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    lower = resolve_lower_bound(from_block)
    cursor: BlockParam = to_block
    collected: List[Tuple[int, Dict[str, Any]]] = []

    while True:
        page = await fetch_page(address, cursor, page_size)
        if not page.txs:
            logger.debug("address=%s cursor=%s empty page, stopping", address, cursor)
            break

        numbered = [(_block_number(tx), tx) for tx in page.txs]
        kept = [(number, tx) for number, tx in numbered if number >= lower]
        collected.extend(kept)
        dropped = len(numbered) - len(kept)
        logger.debug(
            "address=%s cursor=%s page_size=%d kept=%d dropped=%d first_page=%s",
            address,
            cursor,
            len(numbered),
            len(kept),
            dropped,
            page.first_page,
        )

        if page.first_page or dropped:
            break
        next_cursor = min(number for number, _ in numbered) - 1
        if next_cursor < lower:
            # Older blocks are all below from_block; another request could only
            # return out-of-range records, and the cursor may go negative at block 0.
            break
        cursor = next_cursor

    collected.sort(key=lambda item: item[0])
    return [tx for _, tx in collected]


async def collect_block_transactions(
    fetch_page: BlockPageFetcher,
    block: BlockParam,
    *,
    page_size: int = 100,
) -> List[Dict[str, Any]]:
    """Concatenate every page of a block's transactions in server order."""
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    collected: List[Dict[str, Any]] = []
    page_number = 0

    while True:
        page = await fetch_page(block, page_number, page_size)
        collected.extend(page.txs)
        if page.last_page:
            break
        if not page.txs:
            logger.warning(
                "block=%s page=%d empty but not flagged lastPage, stopping", block, page_number
            )
            break
        page_number += 1

    logger.debug("block=%s pages=%d transactions=%d", block, page_number + 1, len(collected))
    return collected
