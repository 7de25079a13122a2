"""
Async JSON-RPC client for the Otterscan (``ots_*``) API exposed by Erigon.

Every remote read goes through :meth:`OtterscanClient.call`, which retries a
failed attempt a fixed number of times with a fixed delay and then raises a
single :class:`RetryExhaustedError`. Paged history and block listings are
built on top of it by :mod:`otterscan_mcp.otterscan_api.pagination`.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from otterscan_mcp.config import OtterscanConfig, default_config
from otterscan_mcp.metrics import default_metrics

from .encoding import BlockParam, to_block_param, to_quantity
from .models import (
    BlockWithTransactions,
    ContractDeployment,
    SubResult,
    TransactionAnalysis,
    TransactionPage,
)
from .pagination import collect_address_transactions, collect_block_transactions

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[Any]]


class OtterscanApiError(Exception):
    """Base exception for Otterscan API errors."""

    def __init__(
        self,
        message: str,
        *,
        code: Optional[int] = None,
        status_code: Optional[int] = None,
        data: Any = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code
        self.data = data


class RpcError(OtterscanApiError):
    """Raised when the node answers with a JSON-RPC error object."""


class NodeUnreachableError(OtterscanApiError):
    """Raised when the node cannot be reached."""


class RpcTimeoutError(NodeUnreachableError):
    """Raised when a single attempt exceeds the configured timeout."""


class RetryExhaustedError(OtterscanApiError):
    """Raised once every attempt of a call has failed; only the last failure is kept."""

    def __init__(self, *, method: str, attempts: int, last_error: Optional[BaseException]) -> None:
        super().__init__(
            f"RPC call failed after {attempts} attempts: {last_error}",
            code=getattr(last_error, "code", None),
            status_code=getattr(last_error, "status_code", None),
        )
        self.method = method
        self.attempts = attempts
        self.last_error = last_error


def _unexpected(status_code: Optional[int] = None) -> OtterscanApiError:
    return OtterscanApiError("Unexpected response from node.", status_code=status_code)


class OtterscanClient:
    """Async client for the Otterscan JSON-RPC extension."""

    def __init__(
        self,
        config: OtterscanConfig | None = None,
        *,
        async_client: Optional[httpx.AsyncClient] = None,
        sleep: Optional[Sleeper] = None,
    ) -> None:
        self.config = config or default_config
        self._client: Optional[httpx.AsyncClient] = async_client
        self._owns_client = async_client is None
        self._sleep: Sleeper = sleep or asyncio.sleep
        self._request_ids = itertools.count(1)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _process_response(self, response: httpx.Response) -> Any:
        try:
            data = response.json()
        except ValueError:
            data = None

        if response.status_code >= 400:
            raise OtterscanApiError(
                f"HTTP {response.status_code} from node.", status_code=response.status_code
            )
        if not isinstance(data, dict):
            raise _unexpected(response.status_code)

        error = data.get("error")
        if error is not None:
            if isinstance(error, dict):
                raise RpcError(
                    str(error.get("message") or "RPC error"),
                    code=error.get("code"),
                    data=error.get("data"),
                )
            raise RpcError(str(error))

        if "result" not in data:
            raise _unexpected(response.status_code)
        return data["result"]

    async def _send(self, method: str, params: List[Any]) -> Any:
        client = await self._get_client()
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": method,
            "params": params,
        }
        try:
            response = await client.post(self.config.rpc_url, json=payload)
        except httpx.TimeoutException as exc:
            raise RpcTimeoutError(f"Request timed out after {self.config.timeout}s") from exc
        except httpx.RequestError as exc:
            raise NodeUnreachableError(f"Node unreachable: {exc}") from exc
        return self._process_response(response)

    async def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Issue one logical RPC call under the configured retry policy.

        A failed attempt is followed by ``retry_delay`` seconds of sleep unless
        it was the last one. Timeouts are ordinary failures.

        Raises:
            RetryExhaustedError: After ``max_attempts`` failed attempts.
        """
        params = list(params or [])
        attempts = self.config.max_attempts
        default_metrics.record_rpc_call(method)
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            try:
                return await self._send(method, params)
            except Exception as exc:
                last_error = exc
                logger.warning(
                    "rpc method=%s attempt=%d/%d failed: %s", method, attempt, attempts, exc
                )
            if attempt < attempts:
                default_metrics.incr_rpc_retry()
                await self._sleep(self.config.retry_delay)

        default_metrics.record_rpc_failure(method)
        logger.error("rpc method=%s exhausted %d attempts", method, attempts)
        raise RetryExhaustedError(
            method=method, attempts=attempts, last_error=last_error
        ) from last_error

    @staticmethod
    def _to_page(payload: Any) -> TransactionPage:
        try:
            return TransactionPage.from_payload(payload)
        except ValueError as exc:
            raise _unexpected() from exc

    async def get_api_level(self) -> int:
        """Return the Otterscan API level implemented by the node."""
        return await self.call("ots_getApiLevel")

    async def get_internal_operations(self, tx_hash: str) -> List[Dict[str, Any]]:
        """Internal ETH transfers, creations and self-destructs of a transaction."""
        return await self.call("ots_getInternalOperations", [tx_hash])

    async def has_code(self, address: str, block_tag: BlockParam = "latest") -> bool:
        return await self.call("ots_hasCode", [address, to_block_param(block_tag)])

    async def is_contract(self, address: str, block_tag: BlockParam = "latest") -> bool:
        """Like :meth:`has_code`, but any API failure reads as ``False``."""
        try:
            return bool(await self.has_code(address, block_tag))
        except OtterscanApiError:
            logger.debug("has_code failed for %s, treating as not a contract", address)
            return False

    async def trace_transaction(self, tx_hash: str) -> Any:
        return await self.call("ots_traceTransaction", [tx_hash])

    async def get_transaction_error(self, tx_hash: str) -> Optional[str]:
        """Raw revert data (hex) for a failed transaction."""
        return await self.call("ots_getTransactionError", [tx_hash])

    async def get_block_details(self, block: BlockParam) -> Dict[str, Any]:
        """Block header plus issuance and total fees."""
        return await self.call("ots_getBlockDetails", [to_block_param(block)])

    async def get_block_details_by_hash(self, block_hash: str) -> Dict[str, Any]:
        return await self.call("ots_getBlockDetailsByHash", [block_hash])

    async def get_block_transactions(
        self, block: BlockParam, page_number: int = 0, page_size: int = 25
    ) -> TransactionPage:
        """Fetch one zero-indexed page of a block's transactions and receipts."""
        payload = await self.call(
            "ots_getBlockTransactions", [to_block_param(block), page_number, page_size]
        )
        return self._to_page(payload)

    async def search_transactions_before(
        self, address: str, block: BlockParam, page_size: int = 25
    ) -> TransactionPage:
        """Up to ``page_size`` transactions touching ``address`` strictly before ``block``."""
        payload = await self.call(
            "ots_searchTransactionsBefore", [address, to_block_param(block), page_size]
        )
        return self._to_page(payload)

    async def search_transactions_after(
        self, address: str, block: BlockParam, page_size: int = 25
    ) -> TransactionPage:
        """Up to ``page_size`` transactions touching ``address`` strictly after ``block``."""
        payload = await self.call(
            "ots_searchTransactionsAfter", [address, to_block_param(block), page_size]
        )
        return self._to_page(payload)

    async def get_transaction_by_sender_and_nonce(self, sender: str, nonce: int | str) -> Optional[str]:
        """Transaction hash for a sender/nonce pair, or ``None``."""
        nonce_param = nonce if isinstance(nonce, str) else to_quantity(nonce)
        return await self.call("ots_getTransactionBySenderAndNonce", [sender, nonce_param])

    async def get_contract_creator(self, address: str) -> Optional[Dict[str, Any]]:
        """``{"hash", "creator"}`` for a contract, or ``None`` if not found."""
        return await self.call("ots_getContractCreator", [address])

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self.call("eth_getTransactionByHash", [tx_hash])

    async def get_all_transactions_for_address(
        self,
        address: str,
        from_block: BlockParam = "earliest",
        to_block: BlockParam = "latest",
        page_size: int = 25,
    ) -> List[Dict[str, Any]]:
        """Every transaction for ``address`` in the block range, oldest first."""
        return await collect_address_transactions(
            self.search_transactions_before,
            address,
            from_block=from_block,
            to_block=to_block,
            page_size=page_size,
        )

    async def get_all_block_transactions(
        self, block: BlockParam, page_size: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        return await collect_block_transactions(
            self.get_block_transactions,
            block,
            page_size=page_size or self.config.block_page_size,
        )

    async def get_block_with_transactions(self, block: BlockParam) -> BlockWithTransactions:
        """Block details plus its full transaction list. Any failure aborts."""
        details = await self.get_block_details(block)
        transactions = await self.get_all_block_transactions(block)
        return BlockWithTransactions(block=details, transactions=transactions)

    async def get_transaction_analysis(self, tx_hash: str) -> TransactionAnalysis:
        """
        Trace, internal operations and revert data for one transaction.

        The three reads run concurrently. Each one that fails is reported in
        its :class:`SubResult` instead of failing the whole analysis.
        """
        trace, internal_ops, tx_error = await asyncio.gather(
            self.trace_transaction(tx_hash),
            self.get_internal_operations(tx_hash),
            self.get_transaction_error(tx_hash),
            return_exceptions=True,
        )
        internal = _settle("internal_operations", internal_ops, [])
        if internal.ok and internal.value is None:
            internal = SubResult([])
        return TransactionAnalysis(
            tx_hash=tx_hash,
            trace=_settle("trace", trace, None),
            internal_operations=internal,
            transaction_error=_settle("transaction_error", tx_error, None),
        )

    async def get_contract_deployment(self, address: str) -> ContractDeployment:
        """
        Creator, creation transaction and creation trace for a contract.

        The creator lookup is required and its failure propagates. The two
        follow-up reads are best-effort.
        """
        creator = await self.get_contract_creator(address)
        if not creator or not creator.get("hash"):
            return ContractDeployment(
                address=address, creator=None, transaction=SubResult(None), trace=SubResult(None)
            )
        tx_hash = creator["hash"]
        transaction, trace = await asyncio.gather(
            self.get_transaction(tx_hash),
            self.trace_transaction(tx_hash),
            return_exceptions=True,
        )
        return ContractDeployment(
            address=address,
            creator=creator,
            transaction=_settle("transaction", transaction, None),
            trace=_settle("trace", trace, None),
        )


def _settle(name: str, outcome: Any, default: Any) -> SubResult[Any]:
    if isinstance(outcome, Exception):
        logger.warning("best-effort read %s failed: %s", name, outcome)
        return SubResult(default, error=str(outcome))
    if isinstance(outcome, BaseException):
        raise outcome
    return SubResult(outcome)


default_client = OtterscanClient()
