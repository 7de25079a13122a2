"""Result containers for paged and composite Otterscan reads."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class TransactionPage:
    """One page from ``ots_searchTransactions*`` or ``ots_getBlockTransactions``."""

    txs: List[Dict[str, Any]]
    receipts: List[Dict[str, Any]] = field(default_factory=list)
    first_page: bool = False
    last_page: bool = False

    @classmethod
    def from_payload(cls, payload: Any) -> "TransactionPage":
        if not isinstance(payload, dict):
            raise ValueError("page payload must be an object")
        txs = payload.get("txs")
        if not isinstance(txs, list):
            raise ValueError("page payload is missing a txs list")
        receipts = payload.get("receipts")
        return cls(
            txs=txs,
            receipts=receipts if isinstance(receipts, list) else [],
            first_page=bool(payload.get("firstPage", False)),
            last_page=bool(payload.get("lastPage", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "txs": self.txs,
            "receipts": self.receipts,
            "firstPage": self.first_page,
            "lastPage": self.last_page,
        }


@dataclass(frozen=True)
class SubResult(Generic[T]):
    """Outcome of one best-effort read: a value, or the default plus why it is missing."""

    value: T
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _failures(**fields: SubResult[Any]) -> Dict[str, str]:
    return {name: sub.error for name, sub in fields.items() if sub.error is not None}


@dataclass(frozen=True, slots=True)
class TransactionAnalysis:
    tx_hash: str
    trace: SubResult[Optional[Any]]
    internal_operations: SubResult[List[Dict[str, Any]]]
    transaction_error: SubResult[Optional[str]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.tx_hash,
            "trace": self.trace.value,
            "internalOperations": self.internal_operations.value,
            "transactionError": self.transaction_error.value,
            "failures": _failures(
                trace=self.trace,
                internalOperations=self.internal_operations,
                transactionError=self.transaction_error,
            ),
        }


@dataclass(frozen=True, slots=True)
class ContractDeployment:
    address: str
    creator: Optional[Dict[str, Any]]
    transaction: SubResult[Optional[Dict[str, Any]]]
    trace: SubResult[Optional[Any]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "creator": self.creator,
            "transaction": self.transaction.value,
            "trace": self.trace.value,
            "failures": _failures(transaction=self.transaction, trace=self.trace),
        }


@dataclass(frozen=True, slots=True)
class BlockWithTransactions:
    block: Dict[str, Any]
    transactions: List[Dict[str, Any]]

    def to_dict(self) -> Dict[str, Any]:
        return {"block": self.block, "transactions": self.transactions}
