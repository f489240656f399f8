# imgsrc/services/apiclient.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar, Union

import httpx
from pydantic import BaseModel, ValidationError

from imgsrc.config import ClientConfig
from imgsrc.services.deadline import Deadline, DeadlineExceeded

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorCode(str, Enum):
    MISSING_API_KEY = "MISSING_API_KEY"
    FORBIDDEN_URL = "FORBIDDEN_URL"
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    JSON_PARSE_ERROR = "JSON_PARSE_ERROR"
    API_ERROR = "API_ERROR"


@dataclass(frozen=True)
class ApiError:
    code: str            # an ErrorCode value, or the code the API sent back
    message: str
    status: int          # 0 = no HTTP status was received

    @classmethod
    def of(cls, code: ErrorCode, message: str, status: int) -> "ApiError":
        return cls(code=code.value, message=message, status=status)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "status": self.status}


@dataclass(frozen=True)
class Success(Generic[T]):
    payload: T
    ok = True


@dataclass(frozen=True)
class Failure:
    error: ApiError
    ok = False


RequestOutcome = Union[Success[T], Failure]


class _ErrorDetail(BaseModel):
    code: Optional[str] = None
    message: Optional[str] = None


class _ErrorBody(BaseModel):
    error: Optional[_ErrorDetail] = None


def _error_detail(data: Any) -> _ErrorDetail:
    # Failure bodies are not guaranteed to follow {"error": {"code", "message"}}
    if isinstance(data, dict):
        try:
            body = _ErrorBody.model_validate(data)
        except ValidationError:
            return _ErrorDetail()
        if body.error is not None:
            return body.error
    return _ErrorDetail()


def _split_multipart(form: Dict[str, Any]) -> Tuple[Dict[str, str], Dict[str, Any]]:
    """Tuples ``(filename, bytes, content_type)`` are file parts, the rest are fields."""
    data: Dict[str, str] = {}
    files: Dict[str, Any] = {}
    for key, value in form.items():
        if isinstance(value, tuple):
            files[key] = value
        else:
            data[key] = str(value)
    return data, files


class RequestClient:
    """
    One outbound call per ``send`` against the img-src.io API.

    Every failure comes back as ``Failure(ApiError)``; transport exceptions
    never reach the caller. ``transport`` is only meant for tests
    (``httpx.MockTransport``).
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        deadline_factory: Callable[[float], Deadline] = Deadline,
    ):
        self.config = config
        self._transport = transport
        self._deadline_factory = deadline_factory

    async def send(
        self,
        method: str,
        path: str,
        body: Any = None,
        is_multipart: bool = False,
    ) -> RequestOutcome[Any]:
        if not self.config.api_key:
            return Failure(ApiError.of(
                ErrorCode.MISSING_API_KEY,
                "IMG_SRC_API_KEY environment variable is not set. "
                "Please set it to your img-src.io API key.",
                401,
            ))

        headers = {"Authorization": f"Bearer {self.config.api_key}"}
        kwargs: Dict[str, Any] = {}
        if is_multipart:
            # httpx writes the multipart Content-Type with its boundary
            data, files = _split_multipart(body or {})
            kwargs.update(data=data, files=files)
        else:
            headers["Content-Type"] = "application/json"
            if body is not None:
                kwargs["content"] = json.dumps(body)

        method = method.upper()
        deadline = self._deadline_factory(self.config.timeout_sec)
        try:
            response = await deadline.run(self._request(method, path, headers, kwargs))
        except (DeadlineExceeded, httpx.TimeoutException):
            logger.warning("api %s %s timed out after %ss", method, path, self.config.timeout_sec)
            return Failure(ApiError.of(
                ErrorCode.TIMEOUT,
                f"Request timed out after {self.config.timeout_sec:g} seconds",
                0,
            ))
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
            logger.warning("api %s %s failed: %r", method, path, e)
            return Failure(ApiError.of(
                ErrorCode.NETWORK_ERROR,
                f"Failed to connect to img-src.io API: {str(e) or type(e).__name__}",
                0,
            ))

        return self._decode(method, path, response)

    async def _request(
        self, method: str, path: str, headers: Dict[str, str], kwargs: Dict[str, Any]
    ) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=self.config.base_url,
            transport=self._transport,
            timeout=self.config.timeout_sec,
        ) as client:
            return await client.request(method, path, headers=headers, **kwargs)

    def _decode(self, method: str, path: str, response: httpx.Response) -> RequestOutcome[Any]:
        status = response.status_code
        try:
            data = response.json()
        except ValueError as e:  # JSONDecodeError, UnicodeDecodeError
            logger.warning("api %s %s -> %s with undecodable body", method, path, status)
            return Failure(ApiError.of(
                ErrorCode.JSON_PARSE_ERROR,
                f"Failed to parse API response: {e}",
                status,
            ))

        if not response.is_success:
            detail = _error_detail(data)
            logger.warning("api %s %s -> %s %s", method, path, status, detail.code or "")
            return Failure(ApiError(
                code=detail.code or ErrorCode.API_ERROR.value,
                message=detail.message or f"API request failed with status {status}",
                status=status,
            ))

        logger.debug("api %s %s -> %s", method, path, status)
        return Success(data)
