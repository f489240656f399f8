# server/registry.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict

from fastmcp.exceptions import ToolError
from pydantic import ValidationError

from imgsrc.di import Container
from imgsrc.logging import log_tool_call
from imgsrc.services.images import error_body
from server.tools.account import account_tools
from server.tools.base import ToolSpec
from server.tools.cdn import cdn_tools
from server.tools.images import image_tools

logger = logging.getLogger(__name__)


def build_tool_registry(container: Container) -> Dict[str, ToolSpec]:
    """
    Build a registry once at startup.
    Transport layers (stdio/HTTP) read from this registry to expose tools.
    """
    svc = container.image_service
    specs = [*image_tools(svc), *account_tools(svc), *cdn_tools(svc)]
    return {spec.name: spec for spec in specs}


def list_tools_payload(registry: Dict[str, ToolSpec]) -> Dict[str, Any]:
    """
    Produce the `tools/list` payload body as per MCP Tools spec.
    """
    tools = []
    for spec in registry.values():
        tools.append({
            "name": spec.name,
            "description": spec.description,
            "inputSchema": spec.input_model.model_json_schema(),
        })
    return {"tools": tools}


async def dispatch_tool_call(
    registry: Dict[str, ToolSpec], name: str, arguments: Dict[str, Any] | None
) -> Dict[str, Any]:
    """
    Validate args with the tool's Pydantic model, then invoke the named handler.
    Every failure comes back as an ``{"error": {...}}`` envelope.
    """
    arguments = arguments or {}
    log_tool_call(logger, name, arguments)

    spec = registry.get(name)
    if spec is None:
        return error_body("UNKNOWN_TOOL", f"Unknown tool: {name}")
    try:
        args_obj = spec.input_model(**arguments)
    except ValidationError as e:
        return error_body("INVALID_ARGS", str(e))

    try:
        return await spec.handler(args_obj)
    except Exception as e:
        logger.exception("tool %s failed", name)
        return error_body("INTERNAL_ERROR", str(e) or "Unknown error occurred")


def tool_result_payload(result: Dict[str, Any]) -> Dict[str, Any]:
    """`tools/call` result body: JSON text, flagged when it carries an error."""
    body: Dict[str, Any] = {"content": [{"type": "text", "text": json.dumps(result)}]}
    if "error" in result:
        body["isError"] = True
    return body


def register_into_fastmcp(mcp, registry: Dict[str, ToolSpec]) -> None:
    """
    Register all registry tools into a FastMCP stdio host.
    This keeps stdio and HTTP transports in sync without duplication.
    """
    for spec in registry.values():
        # Create a local closure so each handler binds to its spec
        def make_tool(spec: ToolSpec):
            async def tool_handler(input=None) -> str:
                arguments = input.model_dump(exclude_none=True) if input is not None else {}
                result = await dispatch_tool_call(registry, spec.name, arguments)
                text = json.dumps(result)
                if "error" in result:
                    # FastMCP turns ToolError into an isError result
                    raise ToolError(text)
                return text

            tool_handler.__name__ = spec.name
            tool_handler.__annotations__ = {"input": spec.input_model, "return": str}
            return tool_handler

        # FastMCP's decorator returns a decorator we can call dynamically.
        mcp.tool(name=spec.name, description=spec.description)(make_tool(spec))
