# tests/helpers.py
import httpx


class Recorder:
    """MockTransport handler wrapper that remembers every request it saw."""

    def __init__(self, handler):
        self.handler = handler
        self.requests = []

    async def __call__(self, request: httpx.Request):
        self.requests.append(request)
        result = self.handler(request)
        if not isinstance(result, httpx.Response):
            result = await result
        return result
