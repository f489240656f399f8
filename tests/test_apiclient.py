# tests/test_apiclient.py
import asyncio
import json

import httpx
import pytest

from imgsrc.config import ClientConfig
from imgsrc.services.apiclient import ErrorCode, Failure, RequestClient, Success
from imgsrc.services.deadline import Deadline
from tests.helpers import Recorder


def _client(handler, api_key="imgsrc_test_key", timeout=2.0):
    made = []

    def factory(seconds):
        d = Deadline(seconds)
        made.append(d)
        return d

    rec = Recorder(handler)
    cfg = ClientConfig(base_url="https://api.test", api_key=api_key, timeout_sec=timeout)
    return RequestClient(cfg, transport=httpx.MockTransport(rec), deadline_factory=factory), rec, made


@pytest.mark.asyncio
async def test_missing_api_key_makes_no_network_call():
    client, rec, made = _client(lambda r: httpx.Response(200, json={}), api_key=None)
    out = await client.send("GET", "/api/v1/usage")
    assert isinstance(out, Failure)
    assert out.error.code == ErrorCode.MISSING_API_KEY.value
    assert out.error.status == 401
    assert rec.requests == []
    assert made == []


@pytest.mark.asyncio
async def test_success_returns_payload_and_releases_timer():
    client, rec, made = _client(lambda r: httpx.Response(200, json={"total_images": 3}))
    out = await client.send("GET", "/api/v1/usage")
    assert isinstance(out, Success)
    assert out.ok is True
    assert out.payload == {"total_images": 3}
    req = rec.requests[0]
    assert req.url == "https://api.test/api/v1/usage"
    assert req.headers["authorization"] == "Bearer imgsrc_test_key"
    assert req.headers["content-type"] == "application/json"
    assert len(made) == 1 and made[0].pending is False


@pytest.mark.asyncio
async def test_json_body_is_serialized():
    client, rec, _ = _client(lambda r: httpx.Response(200, json={"ok": True}))
    await client.send("POST", "/api/v1/things", {"a": 1})
    assert json.loads(rec.requests[0].content) == {"a": 1}


@pytest.mark.asyncio
async def test_multipart_lets_httpx_set_boundary():
    client, rec, _ = _client(lambda r: httpx.Response(200, json={"id": "x"}))
    form = {"file": ("a.png", b"\x89PNG", "image/png"), "filepath": "photos/a.png"}
    out = await client.send("POST", "/api/v1/images", form, is_multipart=True)
    assert isinstance(out, Success)
    req = rec.requests[0]
    assert req.headers["content-type"].startswith("multipart/form-data; boundary=")
    assert b'name="filepath"' in req.content
    assert b'filename="a.png"' in req.content


@pytest.mark.asyncio
async def test_timeout_cancels_call_and_timer():
    async def never(request):
        await asyncio.sleep(10)
        return httpx.Response(200, json={})

    client, rec, made = _client(never, timeout=0.05)
    out = await client.send("GET", "/api/v1/images")
    assert isinstance(out, Failure)
    assert out.error.code == "TIMEOUT"
    assert out.error.status == 0
    assert made[0].expired is True
    assert made[0].pending is False


@pytest.mark.asyncio
async def test_httpx_timeout_maps_to_timeout():
    def slow(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    client, _, made = _client(slow)
    out = await client.send("GET", "/api/v1/images")
    assert out.error.code == "TIMEOUT"
    assert made[0].pending is False


@pytest.mark.asyncio
async def test_network_error_carries_message():
    def refused(request):
        raise httpx.ConnectError("connection refused", request=request)

    client, _, made = _client(refused)
    out = await client.send("GET", "/api/v1/images")
    assert out.error.code == "NETWORK_ERROR"
    assert out.error.status == 0
    assert "connection refused" in out.error.message
    assert made[0].pending is False


@pytest.mark.asyncio
async def test_non_json_body_reports_actual_status():
    client, _, made = _client(lambda r: httpx.Response(502, text="<html>Bad Gateway</html>"))
    out = await client.send("GET", "/api/v1/images")
    assert out.error.code == "JSON_PARSE_ERROR"
    assert out.error.status == 502
    assert made[0].pending is False


@pytest.mark.asyncio
async def test_server_error_code_is_passed_through():
    body = {"error": {"code": "NOT_FOUND", "message": "Image not found"}}
    client, _, _ = _client(lambda r: httpx.Response(404, json=body))
    out = await client.send("GET", "/api/v1/images/nope")
    assert out.error.to_dict() == {"code": "NOT_FOUND", "message": "Image not found", "status": 404}


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{}, {"error": "boom"}, {"error": {"code": 7}}, ["x"]])
async def test_unexpected_error_bodies_fall_back_to_defaults(body):
    client, _, _ = _client(lambda r: httpx.Response(500, json=body))
    out = await client.send("GET", "/api/v1/usage")
    assert out.error.code == "API_ERROR"
    assert out.error.message == "API request failed with status 500"
    assert out.error.status == 500


@pytest.mark.asyncio
async def test_concurrent_calls_time_out_independently():
    async def handler(request):
        if request.url.path.endswith("/slow"):
            await asyncio.sleep(10)
        return httpx.Response(200, json={"path": request.url.path})

    client, _, made = _client(handler, timeout=0.2)
    slow, fast = await asyncio.gather(client.send("GET", "/slow"), client.send("GET", "/fast"))
    assert isinstance(slow, Failure) and slow.error.code == "TIMEOUT"
    assert isinstance(fast, Success) and fast.payload == {"path": "/fast"}
    assert [d.pending for d in made] == [False, False]


@pytest.mark.asyncio
async def test_caller_cancellation_propagates():
    async def never(request):
        await asyncio.sleep(10)
        return httpx.Response(200, json={})

    client, _, made = _client(never, timeout=5)
    task = asyncio.ensure_future(client.send("GET", "/api/v1/images"))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert made[0].expired is False
    assert made[0].pending is False
