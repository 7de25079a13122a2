"""FastAPI application wiring Otterscan MCP tools to HTTP routes."""

from __future__ import annotations

import inspect
import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, Response

from otterscan_mcp import mcp
from otterscan_mcp.config import default_config
from otterscan_mcp.metrics import default_metrics
from otterscan_mcp.otterscan_api import default_client
from otterscan_mcp.rate_limiter import PerKeyRateLimiter
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

logger = logging.getLogger(__name__)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "message": record.getMessage(),
            "name": record.name,
        }
        for key in ("tool", "request_id", "error"):
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload)


def configure_logging(log_level: str, log_format: str) -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)
    if log_format.lower() == "json":
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logging.basicConfig(level=level, handlers=[handler])
    else:
        logging.basicConfig(level=level)


configure_logging(default_config.log_level, default_config.log_format)
rate_limiter = PerKeyRateLimiter(
    rate_per_sec=default_config.rate_limit_qps,
    per_tool=default_config.per_tool_rate_limits,
)
HEALTH_STATUS = {"status": "ok"}
APP_VERSION = "0.1.0"
MCP_SERVER_NAME = "otterscan-mcp-server"
MCP_SERVER_VERSION = APP_VERSION


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    await default_client.aclose()


app = FastAPI(
    title="Otterscan MCP Server",
    description="Read-only Otterscan tool surface for LLM agents.",
    version=APP_VERSION,
    lifespan=lifespan,
)


@app.middleware("http")
async def add_request_context(request: Request, call_next):
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    start = time.time()
    default_metrics.incr_request()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000
    default_metrics.record_duration(request_id, duration_ms)
    response.headers["X-Request-ID"] = request_id
    return response


def _log_tool_result(tool_name: str, result: Any, request_id: Optional[str] = None) -> None:
    if isinstance(result, dict) and result.get("error"):
        logger.warning(
            "tool=%s outcome=error error=%s request_id=%s",
            tool_name,
            result.get("error"),
            request_id,
            extra={"tool": tool_name, "request_id": request_id, "error": result.get("error")},
        )
        default_metrics.record_tool(tool_name, success=False)
    else:
        logger.info(
            "tool=%s outcome=success request_id=%s",
            tool_name,
            request_id,
            extra={"tool": tool_name, "request_id": request_id},
        )
        default_metrics.record_tool(tool_name, success=True)


async def _enforce_rate_limit(tool_name: str) -> Optional[JSONResponse]:
    allowed = await rate_limiter.allow(tool_name)
    if not allowed:
        logger.warning("tool=%s outcome=rate_limited", tool_name)
        default_metrics.incr_rate_limited()
        # Return a JSON-RPC style error envelope for MCP clients.
        return JSONResponse(
            status_code=429,
            content={"jsonrpc": "2.0", "error": {"code": 429, "message": "Rate limit exceeded"}},
        )
    return None


async def _run_tool(request: Request, tool_name: str, invoke) -> JSONResponse:
    limited = await _enforce_rate_limit(tool_name)
    if limited:
        return limited
    result = invoke()
    if inspect.isawaitable(result):
        result = await result
    _log_tool_result(tool_name, result, getattr(request.state, "request_id", None))
    return JSONResponse(content=result)


@app.get("/health")
async def health() -> JSONResponse:
    """Lightweight health endpoint for monitoring."""
    return JSONResponse(content=HEALTH_STATUS)


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Return in-process metrics snapshot."""
    return JSONResponse(content=default_metrics.snapshot())


@app.get("/tools/api_level")
async def api_level(request: Request) -> JSONResponse:
    return await _run_tool(request, "get_api_level", lambda: get_api_level())


@app.get("/tools/validate_address/{address}")
async def validate_address_route(address: str, request: Request) -> JSONResponse:
    return await _run_tool(request, "validate_address", lambda: validate_address(address))


@app.get("/tools/address/{address}/transactions")
async def address_transactions(
    address: str,
    request: Request,
    from_block: str = Query("earliest"),
    to_block: str = Query("latest"),
    page_size: int | None = Query(None, ge=1),
) -> JSONResponse:
    """Proxy for list_address_transactions (full backward walk)."""
    return await _run_tool(
        request,
        "list_address_transactions",
        lambda: list_address_transactions(
            address, from_block=from_block, to_block=to_block, page_size=page_size
        ),
    )


@app.get("/tools/address/{address}/search_before")
async def address_search_before(
    address: str,
    request: Request,
    block: str = Query("latest"),
    page_size: int | None = Query(None, ge=1),
) -> JSONResponse:
    return await _run_tool(
        request,
        "search_transactions_before",
        lambda: search_transactions_before(address, block=block, page_size=page_size),
    )


@app.get("/tools/address/{address}/search_after")
async def address_search_after(
    address: str,
    request: Request,
    block: str = Query("0"),
    page_size: int | None = Query(None, ge=1),
) -> JSONResponse:
    return await _run_tool(
        request,
        "search_transactions_after",
        lambda: search_transactions_after(address, block=block, page_size=page_size),
    )


@app.get("/tools/address/{address}/contract_creator")
async def contract_creator(address: str, request: Request) -> JSONResponse:
    return await _run_tool(request, "get_contract_creator", lambda: get_contract_creator(address))


@app.get("/tools/address/{address}/is_contract")
async def is_contract_route(address: str, request: Request, block: str = Query("latest")) -> JSONResponse:
    return await _run_tool(request, "is_contract", lambda: is_contract(address, block=block))


@app.get("/tools/address/{address}/deployment")
async def contract_deployment(address: str, request: Request) -> JSONResponse:
    return await _run_tool(
        request, "get_contract_deployment", lambda: get_contract_deployment(address)
    )


@app.get("/tools/sender/{sender}/nonce/{nonce}")
async def sender_nonce(sender: str, nonce: str, request: Request) -> JSONResponse:
    return await _run_tool(
        request,
        "get_transaction_by_sender_and_nonce",
        lambda: get_transaction_by_sender_and_nonce(sender, nonce),
    )


@app.get("/tools/transaction/{tx_hash}/trace")
async def transaction_trace(tx_hash: str, request: Request) -> JSONResponse:
    return await _run_tool(request, "get_transaction_trace", lambda: get_transaction_trace(tx_hash))


@app.get("/tools/transaction/{tx_hash}/internal_operations")
async def transaction_internal_operations(tx_hash: str, request: Request) -> JSONResponse:
    return await _run_tool(
        request, "get_internal_operations", lambda: get_internal_operations(tx_hash)
    )


@app.get("/tools/transaction/{tx_hash}/error")
async def transaction_error(tx_hash: str, request: Request) -> JSONResponse:
    return await _run_tool(request, "get_transaction_error", lambda: get_transaction_error(tx_hash))


@app.get("/tools/transaction/{tx_hash}/analysis")
async def transaction_analysis(tx_hash: str, request: Request) -> JSONResponse:
    return await _run_tool(
        request, "get_transaction_analysis", lambda: get_transaction_analysis(tx_hash)
    )


@app.get("/tools/block/{block}/details")
async def block_details(block: str, request: Request) -> JSONResponse:
    return await _run_tool(request, "get_block_details", lambda: get_block_details(block))


@app.get("/tools/block/{block}/transactions")
async def block_transactions(
    block: str,
    request: Request,
    page: int = Query(0, ge=0),
    page_size: int | None = Query(None, ge=1),
) -> JSONResponse:
    return await _run_tool(
        request,
        "get_block_transactions",
        lambda: get_block_transactions(block, page=page, page_size=page_size),
    )


@app.get("/tools/block/{block}/full")
async def block_full(block: str, request: Request) -> JSONResponse:
    return await _run_tool(
        request, "get_block_with_transactions", lambda: get_block_with_transactions(block)
    )


@app.post("/mcp")
async def mcp_gateway(request: Request) -> JSONResponse:
    """
    Minimal JSON-RPC-like gateway for MCP-style integrations.

    Supported methods:
      - initialize
      - list_tools / tools/list
      - call_tool / tools/call
    """
    request_id = getattr(request.state, "request_id", None)
    start_time = time.time()

    def _respond(
        payload: Dict[str, Any],
        status_code: int = 200,
        *,
        outcome: str,
        method_label: Optional[str] = None,
        tool_label: Optional[str] = None,
        error_code: Optional[int] = None,
    ) -> JSONResponse:
        duration_ms = (time.time() - start_time) * 1000
        logger.debug(
            "mcp outcome=%s method=%s tool=%s id=%s status=%s duration_ms=%.2f error_code=%s",
            outcome,
            method_label,
            tool_label,
            payload.get("id"),
            status_code,
            duration_ms,
            error_code,
            extra={"request_id": request_id, "tool": tool_label, "error": error_code},
        )
        return JSONResponse(status_code=status_code, content=payload)

    try:
        body = await request.json()
    except ValueError:
        payload = _jsonrpc_error_payload(None, -32700, "Parse error")
        return _respond(payload, status_code=400, outcome="error", error_code=-32700)

    if not isinstance(body, dict):
        payload = _jsonrpc_error_payload(None, -32600, "Invalid request")
        return _respond(payload, status_code=400, outcome="error", error_code=-32600)

    method = body.get("method")
    rpc_id = body.get("id")
    raw_params = body.get("params")
    if raw_params is None:
        params = {}
    elif isinstance(raw_params, dict):
        params = raw_params
    else:
        payload = _jsonrpc_error_payload(rpc_id, -32602, "Invalid params")
        return _respond(payload, outcome="error", method_label=method, error_code=-32602)

    if not method:
        payload = _jsonrpc_error_payload(rpc_id, -32600, "Invalid request")
        return _respond(payload, outcome="error", error_code=-32600)

    if method == "initialize":
        protocol_version = params.get("protocolVersion")
        if not isinstance(protocol_version, str) or not protocol_version:
            payload = _jsonrpc_error_payload(rpc_id, -32602, "Invalid params")
            return _respond(payload, outcome="error", method_label=method, error_code=-32602)
        result = {
            "protocolVersion": protocol_version,
            "serverInfo": {"name": MCP_SERVER_NAME, "version": MCP_SERVER_VERSION},
            "capabilities": {"tools": {"listChanged": False}},
        }
        return _respond(_jsonrpc_success_payload(rpc_id, result), outcome="success", method_label=method)

    if method in ("list_tools", "tools/list"):
        limited = await _enforce_rate_limit("list_tools")
        if limited:
            return limited
        result = {"tools": mcp.list_tools()}
        return _respond(_jsonrpc_success_payload(rpc_id, result), outcome="success", method_label=method)

    if method in ("call_tool", "tools/call"):
        tool_name = params.get("tool") or params.get("name")
        tool_params = params.get("params")
        if tool_params is None:
            tool_params = params.get("arguments") or {}
        if not isinstance(tool_name, str) or not tool_name.strip():
            payload = _jsonrpc_error_payload(rpc_id, -32602, "Invalid params")
            return _respond(payload, outcome="error", method_label=method, error_code=-32602)
        if not isinstance(tool_params, dict):
            payload = _jsonrpc_error_payload(rpc_id, -32602, "Invalid params")
            return _respond(
                payload, outcome="error", method_label=method, tool_label=tool_name, error_code=-32602
            )
        limited = await _enforce_rate_limit(tool_name)
        if limited:
            return limited
        result = await mcp.call_tool(tool_name, tool_params)
        _log_tool_result(tool_name, result, request_id)
        return _respond(
            _jsonrpc_success_payload(rpc_id, _wrap_tool_result(result)),
            outcome="success",
            method_label=method,
            tool_label=tool_name,
        )

    if method in ("notifications/initialized", "initialized"):
        # Notifications should not return a JSON-RPC response body.
        return Response(status_code=204)

    payload = _jsonrpc_error_payload(rpc_id, -32601, "Method not found")
    return _respond(payload, outcome="error", method_label=method, error_code=-32601)


# Run with: uvicorn otterscan_mcp.server:app --reload


def _jsonrpc_success_payload(rpc_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "result": result}


def _jsonrpc_error_payload(rpc_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "error": {"code": code, "message": message}}


def _wrap_tool_result(result: Any) -> Dict[str, Any]:
    """
    Shape tool outputs into MCP-friendly content array.
    """
    # Tool-level errors are returned in-band with isError flag.
    if isinstance(result, dict) and "error" in result:
        message = result.get("error") or "Error"
        return {
            "content": [{"type": "text", "text": str(message)}],
            "isError": True,
            "structuredContent": result,
        }

    if isinstance(result, str):
        return {"content": [{"type": "text", "text": result}]}

    try:
        text_repr = json.dumps(result, ensure_ascii=True)
    except (TypeError, ValueError):
        text_repr = str(result)
    return {
        "content": [{"type": "text", "text": text_repr}],
        "structuredContent": result,
    }
