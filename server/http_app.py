# server/http_app.py
from __future__ import annotations

import hmac
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from imgsrc.config import Settings
from imgsrc.di import Container, build_container
from imgsrc.logging import configure_logging
from server.prompts import PROMPTS, render_prompt
from server.registry import (
    build_tool_registry,
    dispatch_tool_call,
    list_tools_payload,
    tool_result_payload,
)
from server.resources import list_resources_payload, read_resource_payload


PROTOCOL_VERSION = "2025-03-26"  # aligns with current spec draft dates
SERVER_INFO = {"name": "img-src-mcp", "version": "1.0.0"}


# ---------- Security: Origin validation & Bearer token ----------

def _origin_allowed(settings: Settings, req: Request) -> bool:
    origin = req.headers.get("origin")
    if not origin:
        return settings.MCP_HTTP_ALLOW_NO_ORIGIN
    allowed = {o.strip().lower() for o in settings.MCP_HTTP_ALLOWED_ORIGINS.split(",") if o.strip()}
    return origin.lower() in allowed


def _require_auth(settings: Settings, req: Request):
    auth = req.headers.get("authorization", "")
    if not auth.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing Bearer token")
    token = auth.split(" ", 1)[1]
    if not hmac.compare_digest(token, settings.MCP_HTTP_BEARER_TOKEN):
        raise HTTPException(status_code=401, detail="Invalid Bearer token")


def _jsonrpc_error(id_: Any, code: int, message: str, data: Any | None = None) -> JSONResponse:
    body: Dict[str, Any] = {"jsonrpc": "2.0", "id": id_, "error": {"code": code, "message": message}}
    if data is not None:
        body["error"]["data"] = data
    return JSONResponse(body)


def _jsonrpc_result(id_: Any, result: Any) -> JSONResponse:
    return JSONResponse({"jsonrpc": "2.0", "id": id_, "result": result})


def create_http_app(container: Container | None = None) -> FastAPI:
    container = container or build_container()
    settings = container.settings
    registry = build_tool_registry(container)
    images = container.image_service

    app = FastAPI(title="img-src MCP HTTP Server", version=SERVER_INFO["version"])

    @app.middleware("http")
    async def origin_validation_mw(request: Request, call_next):
        # MCP spec requires Origin validation to prevent DNS rebinding
        # If provided and not allowed → 403
        if not _origin_allowed(settings, request):
            return JSONResponse({"error": {"code": 403, "message": "Forbidden origin"}}, status_code=403)
        return await call_next(request)

    # ---------- MCP JSON-RPC endpoint (Streamable HTTP) ----------

    @app.post(settings.MCP_HTTP_PATH)
    async def mcp_endpoint(request: Request):
        _require_auth(settings, request)

        try:
            payload = await request.json()
        except ValueError:
            return _jsonrpc_error(None, -32700, "Parse error")
        if not isinstance(payload, dict):
            return _jsonrpc_error(None, -32600, "Invalid Request")

        id_ = payload.get("id")
        method = payload.get("method")
        params = payload.get("params") or {}

        if method == "initialize":
            return _jsonrpc_result(id_, {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {}, "resources": {}, "prompts": {}},
                "serverInfo": SERVER_INFO,
            })

        if method == "tools/list":
            return _jsonrpc_result(id_, list_tools_payload(registry))

        if method == "tools/call":
            result = await dispatch_tool_call(registry, params.get("name"), params.get("arguments"))
            return _jsonrpc_result(id_, tool_result_payload(result))

        if method == "resources/list":
            return _jsonrpc_result(id_, await list_resources_payload(images))

        if method == "resources/read":
            return _jsonrpc_result(id_, await read_resource_payload(images, params.get("uri", "")))

        if method == "prompts/list":
            return _jsonrpc_result(id_, {"prompts": PROMPTS})

        if method == "prompts/get":
            try:
                return _jsonrpc_result(id_, render_prompt(params.get("name"), params.get("arguments")))
            except KeyError as ke:
                return _jsonrpc_error(id_, -32602, str(ke.args[0]))

        return _jsonrpc_error(id_, -32601, f"Method not found: {method}")

    return app


app = create_http_app()

if __name__ == "__main__":
    import uvicorn

    settings = Settings()
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(
        "server.http_app:app",
        host=settings.MCP_HTTP_HOST,
        port=settings.MCP_HTTP_PORT,
        reload=False,
    )
