"""LLM-facing tool implementations."""

from .node import get_api_level
from .address import (
    list_address_transactions,
    search_transactions_after,
    search_transactions_before,
    validate_address,
)
from .blocks import get_block_details, get_block_transactions, get_block_with_transactions
from .contracts import get_contract_creator, get_contract_deployment, is_contract
from .transactions import (
    get_internal_operations,
    get_transaction_analysis,
    get_transaction_by_sender_and_nonce,
    get_transaction_error,
    get_transaction_trace,
)
from . import validators

__all__ = [
    "get_api_level",
    "validate_address",
    "list_address_transactions",
    "search_transactions_before",
    "search_transactions_after",
    "get_block_details",
    "get_block_transactions",
    "get_block_with_transactions",
    "get_contract_creator",
    "get_contract_deployment",
    "is_contract",
    "get_transaction_trace",
    "get_internal_operations",
    "get_transaction_error",
    "get_transaction_analysis",
    "get_transaction_by_sender_and_nonce",
    "validators",
]
