"""JSON-RPC client wrappers for the Otterscan API."""

from .client import (
    NodeUnreachableError,
    OtterscanApiError,
    OtterscanClient,
    RetryExhaustedError,
    RpcError,
    RpcTimeoutError,
    default_client,
)
from .models import (
    BlockWithTransactions,
    ContractDeployment,
    SubResult,
    TransactionAnalysis,
    TransactionPage,
)

__all__ = [
    "OtterscanClient",
    "OtterscanApiError",
    "RpcError",
    "NodeUnreachableError",
    "RpcTimeoutError",
    "RetryExhaustedError",
    "default_client",
    "TransactionPage",
    "SubResult",
    "TransactionAnalysis",
    "ContractDeployment",
    "BlockWithTransactions",
]
