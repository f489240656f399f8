# tests/test_registry.py
import json
import logging

import httpx
import pytest

from imgsrc.logging import redact_args
from server.registry import (
    build_tool_registry,
    dispatch_tool_call,
    list_tools_payload,
    tool_result_payload,
)

TOOL_NAMES = {
    "upload_image", "list_images", "search_images", "get_image",
    "delete_image", "get_usage", "get_settings", "get_cdn_url",
}


def test_registry_lists_every_tool(make_container):
    c, _ = make_container(lambda r: httpx.Response(200, json={}))
    payload = list_tools_payload(build_tool_registry(c))
    assert {t["name"] for t in payload["tools"]} == TOOL_NAMES
    search = next(t for t in payload["tools"] if t["name"] == "search_images")
    assert search["inputSchema"]["required"] == ["query"]


@pytest.mark.asyncio
async def test_unknown_tool(make_container):
    c, _ = make_container(lambda r: httpx.Response(200, json={}))
    out = await dispatch_tool_call(build_tool_registry(c), "rm_rf", {})
    assert out["error"]["code"] == "UNKNOWN_TOOL"


@pytest.mark.asyncio
@pytest.mark.parametrize("name, args", [
    ("upload_image", {}),
    ("upload_image", {"data": "aGk="}),
    ("list_images", {"limit": 101}),
    ("list_images", {"offset": -1}),
    ("search_images", {"query": ""}),
    ("get_image", {"id": ""}),
    ("get_cdn_url", {"username": "u", "filepath": "a.png", "fit": "stretch"}),
    ("get_cdn_url", {"username": "u", "filepath": "a.png", "quality": 101}),
    ("get_usage", {"unexpected": 1}),
])
async def test_invalid_args_short_circuit(make_container, name, args):
    c, rec = make_container(lambda r: httpx.Response(200, json={}))
    out = await dispatch_tool_call(build_tool_registry(c), name, args)
    assert out["error"]["code"] == "INVALID_ARGS"
    assert rec.requests == []


@pytest.mark.asyncio
async def test_forbidden_upload_url_through_dispatch(make_container):
    c, rec = make_container(lambda r: httpx.Response(200, json={}))
    out = await dispatch_tool_call(build_tool_registry(c), "upload_image", {"url": "http://[::1]/x.png"})
    assert out["error"]["code"] == "FORBIDDEN_URL"
    assert rec.requests == []


@pytest.mark.asyncio
async def test_handler_crash_becomes_internal_error(make_container):
    c, _ = make_container(lambda r: httpx.Response(200, json=["not", "an", "object"]))
    out = await dispatch_tool_call(build_tool_registry(c), "get_settings", None)
    assert out["error"]["code"] == "INTERNAL_ERROR"


def test_tool_result_payload_flags_errors():
    ok = tool_result_payload({"success": True})
    assert "isError" not in ok
    assert json.loads(ok["content"][0]["text"]) == {"success": True}
    bad = tool_result_payload({"error": {"code": "TIMEOUT", "message": "slow"}})
    assert bad["isError"] is True


@pytest.mark.asyncio
async def test_tool_calls_are_logged_redacted(make_container, caplog):
    c, _ = make_container(lambda r: httpx.Response(200, json={}))
    with caplog.at_level(logging.INFO, logger="server.registry"):
        await dispatch_tool_call(build_tool_registry(c), "search_images", {"query": "me@example.com"})
    assert "tool_call search_images" in caplog.text
    assert "me@example.com" not in caplog.text


def test_redact_args():
    out = redact_args({"token": "Bearer abc.def", "key": "imgsrc_live_123", "data": "QUJD", "n": 1})
    assert out == {"token": "Bearer [redacted]", "key": "[redacted-key]", "data": "<4 chars>", "n": 1}
