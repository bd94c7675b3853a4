"""FastAPI application wiring MESC tools to HTTP routes."""

from __future__ import annotations

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, Response

from mesc import __version__, mcp
from mesc.config import default_config
from mesc.metrics import default_metrics
from mesc.rate_limiter import PerKeyRateLimiter
from mesc.rpc import default_client
from mesc.tools import (
    get_defaults,
    get_endpoint,
    get_metadata,
    get_status,
    list_endpoints,
    ping_endpoints,
    validate_chain_id,
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
APP_VERSION = __version__
MCP_SERVER_NAME = "mesc-server"
MCP_SERVER_VERSION = APP_VERSION


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    await default_client.aclose()


app = FastAPI(
    title="MESC Server",
    description="Read-only view of the local MESC RPC endpoint configuration.",
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


def _log_tool_result(tool_name: str, result: Dict[str, Any], request_id: Optional[str] = None) -> None:
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
        return JSONResponse(
            status_code=429,
            content={"jsonrpc": "2.0", "error": {"code": 429, "message": "Rate limit exceeded"}},
        )
    return None


def _tool_response(tool_name: str, result: Any, request: Request) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    _log_tool_result(tool_name, result if isinstance(result, dict) else {}, request_id)
    return JSONResponse(content=result)


@app.get("/health")
async def health() -> JSONResponse:
    """Lightweight health endpoint for monitoring."""
    return JSONResponse(content=HEALTH_STATUS)


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Return in-process metrics snapshot."""
    return JSONResponse(content=default_metrics.snapshot())


@app.get("/tools/status")
async def status_route(request: Request) -> JSONResponse:
    """Proxy for get_status tool."""
    limited = await _enforce_rate_limit("get_status")
    if limited:
        return limited
    return _tool_response("get_status", get_status(), request)


@app.get("/tools/endpoints")
async def endpoints_route(
    request: Request,
    chain_id: str | None = None,
    name: str | None = None,
    url: str | None = None,
    reveal: bool = Query(False),
) -> JSONResponse:
    """Proxy for list_endpoints tool."""
    limited = await _enforce_rate_limit("list_endpoints")
    if limited:
        return limited
    result = list_endpoints(chain_id=chain_id, name_contains=name, url_contains=url, reveal=reveal)
    return _tool_response("list_endpoints", result, request)


@app.get("/tools/endpoint")
async def endpoint_route(
    request: Request,
    query: str | None = None,
    profile: str | None = None,
    reveal: bool = Query(False),
) -> JSONResponse:
    """Proxy for get_endpoint tool."""
    limited = await _enforce_rate_limit("get_endpoint")
    if limited:
        return limited
    result = get_endpoint(query=query, profile=profile, reveal=reveal)
    return _tool_response("get_endpoint", result, request)


@app.get("/tools/defaults")
async def defaults_route(request: Request, profile: str | None = None) -> JSONResponse:
    """Proxy for get_defaults tool."""
    limited = await _enforce_rate_limit("get_defaults")
    if limited:
        return limited
    return _tool_response("get_defaults", get_defaults(profile=profile), request)


@app.get("/tools/metadata")
async def metadata_route(request: Request, profile: str | None = None) -> JSONResponse:
    """Proxy for get_metadata tool."""
    limited = await _enforce_rate_limit("get_metadata")
    if limited:
        return limited
    return _tool_response("get_metadata", get_metadata(profile=profile), request)


@app.get("/tools/validate_chain_id/{chain_id}")
async def validate_chain_id_route(chain_id: str, request: Request) -> JSONResponse:
    """Proxy for validate_chain_id utility."""
    limited = await _enforce_rate_limit("validate_chain_id")
    if limited:
        return limited
    return _tool_response("validate_chain_id", validate_chain_id(chain_id), request)


@app.get("/tools/ping")
async def ping_route(
    request: Request,
    chain_id: str | None = None,
    name: str | None = None,
    limit: int | None = Query(None, ge=0),
    client_version: bool = Query(False),
    reveal: bool = Query(False),
) -> JSONResponse:
    """Proxy for ping_endpoints tool."""
    limited = await _enforce_rate_limit("ping_endpoints")
    if limited:
        return limited
    result = await ping_endpoints(
        chain_id=chain_id,
        name_contains=name,
        limit=limit,
        include_client_version=client_version,
        reveal=reveal,
    )
    return _tool_response("ping_endpoints", result, request)


@app.post("/mcp")
async def mcp_gateway(request: Request) -> Response:
    """
    Minimal JSON-RPC gateway for MCP-style integrations.

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
        if method_label:
            default_metrics.record_mcp_method(method_label)
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

    if not method or not isinstance(method, str):
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
        if tool_name in mcp.TOOL_REGISTRY:
            limited = await _enforce_rate_limit(tool_name)
            if limited:
                return limited
        result = await mcp.call_tool(tool_name, tool_params)
        _log_tool_result(tool_name, result if isinstance(result, dict) else {}, request_id)
        return _respond(
            _jsonrpc_success_payload(rpc_id, _wrap_tool_result(result)),
            outcome="success",
            method_label=method,
            tool_label=tool_name,
        )

    if method in ("notifications/initialized", "initialized"):
        # Notifications get no JSON-RPC response body.
        logger.debug("mcp initialized notification request_id=%s", request_id, extra={"request_id": request_id})
        return Response(status_code=204)

    payload = _jsonrpc_error_payload(rpc_id, -32601, "Method not found")
    return _respond(payload, outcome="error", method_label=method, error_code=-32601)


# Run with: uvicorn mesc.server:app --reload  (or `mesc serve`)


def _jsonrpc_success_payload(rpc_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "result": result}


def _jsonrpc_error_payload(rpc_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "error": {"code": code, "message": message}}


def _wrap_tool_result(result: Any) -> Dict[str, Any]:
    """Shape tool outputs into an MCP content array."""
    if isinstance(result, dict) and "error" in result and len(result) == 1:
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
