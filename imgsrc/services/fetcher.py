# imgsrc/services/fetcher.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

import httpx

from imgsrc.services.deadline import Deadline, DeadlineExceeded
from imgsrc.services.urlguard import check_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchedImage:
    content: bytes
    content_type: Optional[str]
    url: str


@dataclass(frozen=True)
class FetchError:
    code: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


class ForbiddenRedirect(Exception):
    pass


def too_large(size: int, max_bytes: int, at_least: bool = False) -> FetchError:
    mb = size / (1024 * 1024)
    limit = max_bytes / (1024 * 1024)
    prefix = "at least " if at_least else ""
    return FetchError(
        "IMAGE_TOO_LARGE",
        f"Image size ({prefix}{mb:.2f} MB) exceeds {limit:g} MB limit",
    )


async def _recheck_hop(request: httpx.Request) -> None:
    # Runs for the first request and for every redirect hop
    verdict = check_url(str(request.url))
    if not verdict.allowed:
        raise ForbiddenRedirect(verdict.reason or "URL not allowed")


class ImageFetcher:
    """
    Download a source image for upload:
    - URL guard before any I/O, and again on each redirect hop.
    - Own wall-clock deadline.
    - Body streamed and cut off past ``max_bytes``.
    """

    def __init__(
        self,
        max_bytes: int,
        timeout_sec: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        deadline_factory: Callable[[float], Deadline] = Deadline,
    ):
        self.max_bytes = max_bytes
        self.timeout = timeout_sec
        self._transport = transport
        self._deadline_factory = deadline_factory

    async def fetch(self, url: str) -> Union[FetchedImage, FetchError]:
        verdict = check_url(url)
        if not verdict.allowed:
            logger.warning("blocked image url: %s", verdict.reason)
            return FetchError("FORBIDDEN_URL", f"URL not allowed: {verdict.reason}")

        deadline = self._deadline_factory(self.timeout)
        try:
            return await deadline.run(self._download(url))
        except ForbiddenRedirect as e:
            logger.warning("blocked redirect: %s", e)
            return FetchError("FORBIDDEN_URL", f"Redirect target not allowed: {e}")
        except (DeadlineExceeded, httpx.TimeoutException):
            return FetchError("TIMEOUT", f"Image fetch timed out after {self.timeout:g} seconds")
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
            return FetchError(
                "FETCH_ERROR", f"Failed to fetch image from URL: {str(e) or type(e).__name__}"
            )

    async def _download(self, url: str) -> Union[FetchedImage, FetchError]:
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=self.timeout,
            follow_redirects=True,
            event_hooks={"request": [_recheck_hop]},
        ) as client:
            async with client.stream("GET", url) as resp:
                if not resp.is_success:
                    return FetchError(
                        "FETCH_FAILED",
                        f"Failed to fetch image from URL: {resp.status_code} {resp.reason_phrase}",
                    )

                declared = resp.headers.get("content-length", "")
                if declared.isdigit() and int(declared) > self.max_bytes:
                    return too_large(int(declared), self.max_bytes)

                chunks = []
                total = 0
                async for chunk in resp.aiter_bytes():
                    total += len(chunk)
                    if total > self.max_bytes:
                        return too_large(total, self.max_bytes, at_least=True)
                    chunks.append(chunk)

                return FetchedImage(
                    content=b"".join(chunks),
                    content_type=resp.headers.get("content-type"),
                    url=str(resp.url),
                )
