"""
Configuration helpers for the Otterscan MCP server.

This module centralizes the node RPC URL, the retry policy, default timeouts,
and paging limits. Values are read once from the environment; invalid values
fall back to safe defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

# Default connection settings
DEFAULT_RPC_URL = os.getenv("OTTERSCAN_RPC_URL", "http://localhost:8545")

FALLBACK_TIMEOUT = 30.0
FALLBACK_MAX_ATTEMPTS = 3
FALLBACK_RETRY_DELAY = 1.0


def _load_timeout() -> float:
    raw_timeout = os.getenv("OTTERSCAN_HTTP_TIMEOUT")
    if raw_timeout:
        try:
            return float(raw_timeout)
        except ValueError:
            return FALLBACK_TIMEOUT
    return FALLBACK_TIMEOUT


def _load_max_attempts() -> int:
    raw_attempts = os.getenv("OTTERSCAN_MAX_ATTEMPTS")
    if raw_attempts:
        try:
            return int(raw_attempts)
        except ValueError:
            return FALLBACK_MAX_ATTEMPTS
    return FALLBACK_MAX_ATTEMPTS


def _load_retry_delay() -> float:
    raw_delay = os.getenv("OTTERSCAN_RETRY_DELAY")
    if raw_delay:
        try:
            return float(raw_delay)
        except ValueError:
            return FALLBACK_RETRY_DELAY
    return FALLBACK_RETRY_DELAY


DEFAULT_TIMEOUT = _load_timeout()
DEFAULT_MAX_ATTEMPTS = _load_max_attempts()
DEFAULT_RETRY_DELAY = _load_retry_delay()

# Paging limits
DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 100
BLOCK_PAGE_SIZE = 100
DEFAULT_RATE_LIMIT_QPS = 5
LOG_LEVEL = os.getenv("OTTERSCAN_MCP_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("OTTERSCAN_MCP_LOG_FORMAT", "json")  # json or plain


@dataclass(frozen=True, slots=True)
class OtterscanConfig:
    """
    Runtime configuration for Otterscan node access.

    The retry policy (``max_attempts``, ``retry_delay``, ``timeout``) is
    normalized here, once. Instances are frozen, so a client built from one
    keeps that policy for its whole lifetime.
    """

    rpc_url: str = DEFAULT_RPC_URL
    timeout: float = DEFAULT_TIMEOUT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY
    default_page_size: int = DEFAULT_PAGE_SIZE
    max_page_size: int = MAX_PAGE_SIZE
    block_page_size: int = BLOCK_PAGE_SIZE
    rate_limit_qps: float = DEFAULT_RATE_LIMIT_QPS
    log_level: str = LOG_LEVEL
    log_format: str = LOG_FORMAT
    per_tool_rate_limits: dict[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        max_page_size = max(1, int(self.max_page_size))
        timeout = self.timeout
        if timeout is None or timeout <= 0:
            timeout = FALLBACK_TIMEOUT
        normalized = {
            "max_attempts": max(1, int(self.max_attempts)),
            "retry_delay": max(0.0, float(self.retry_delay)),
            "timeout": timeout,
            "block_page_size": max(1, int(self.block_page_size)),
            "max_page_size": max_page_size,
            "default_page_size": min(max(1, int(self.default_page_size)), max_page_size),
        }
        for name, value in normalized.items():
            object.__setattr__(self, name, value)


default_config = OtterscanConfig()
