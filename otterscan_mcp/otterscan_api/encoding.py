"""Hex quantity helpers shared by the client and the traversal engine."""

from __future__ import annotations

from typing import Any, Union

BlockParam = Union[int, str]

BLOCK_TAGS = frozenset({"earliest", "latest", "pending", "safe", "finalized"})


def to_quantity(value: int) -> str:
    """Encode a non-negative integer as a JSON-RPC hex quantity."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected int, got {type(value).__name__}")
    if value < 0:
        raise ValueError("quantities must be non-negative")
    return hex(value)


def to_block_param(block: BlockParam) -> str:
    """Ints are hex-encoded; strings (tags or hex) are passed through unchanged."""
    if isinstance(block, str):
        return block
    return to_quantity(block)


def parse_quantity(value: Any) -> int:
    """
    Parse a block number or other quantity returned by the node.

    Accepts ints, ``0x``-prefixed hex strings and plain decimal strings.
    """
    if isinstance(value, bool):
        raise ValueError(f"not a quantity: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.lower().startswith("0x"):
            return int(text, 16)
        if text.isascii() and text.isdigit():
            return int(text)
    raise ValueError(f"not a quantity: {value!r}")


def resolve_lower_bound(block: BlockParam) -> int:
    """Resolve ``from_block`` to the number used for range filtering."""
    if isinstance(block, str) and block.strip().lower() == "earliest":
        return 0
    return parse_quantity(block)
