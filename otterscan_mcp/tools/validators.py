"""Shared validation helpers for Otterscan MCP tools."""

from __future__ import annotations

import re
from typing import Any, Optional

from otterscan_mcp.otterscan_api.encoding import BLOCK_TAGS, BlockParam

# EVM addresses are 20 bytes, hashes 32 bytes, both 0x-prefixed hex.
ADDRESS_REGEX = re.compile(r"^0x[0-9a-fA-F]{40}$")
HASH_REGEX = re.compile(r"^0x[0-9a-fA-F]{64}$")
HEX_QUANTITY_REGEX = re.compile(r"^0x[0-9a-fA-F]+$")
DECIMAL_REGEX = re.compile(r"^[0-9]+$")


def is_valid_address(address: Optional[str]) -> bool:
    """Basic format validation for EVM addresses (checksum is not verified)."""
    if not address or not isinstance(address, str):
        return False
    return bool(ADDRESS_REGEX.fullmatch(address.strip()))


def is_valid_hash(value: Optional[str]) -> bool:
    """Validate a transaction or block hash."""
    if not value or not isinstance(value, str):
        return False
    return bool(HASH_REGEX.fullmatch(value.strip()))


def parse_block_param(value: Any, *, allow_tags: bool = True) -> Optional[BlockParam]:
    """
    Normalize a caller-supplied block reference.

    Non-negative ints and decimal strings become ints, hex strings are kept as
    hex, and known tags are lowercased. Returns None when the value is invalid.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if not isinstance(value, str):
        return None
    text = value.strip()
    if allow_tags and text.lower() in BLOCK_TAGS:
        return text.lower()
    if HEX_QUANTITY_REGEX.fullmatch(text):
        return text.lower()
    if DECIMAL_REGEX.fullmatch(text):
        return int(text)
    return None


def parse_nonce(value: Any) -> Optional[int]:
    parsed = parse_block_param(value, allow_tags=False)
    if parsed is None:
        return None
    if isinstance(parsed, str):
        return int(parsed, 16)
    return parsed


def clamp_limit(value: Optional[int], *, default: int, max_value: int) -> int:
    """Clamp page-size style integers to configured bounds."""
    if value is None:
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    if parsed <= 0:
        return default
    return min(parsed, max_value)
