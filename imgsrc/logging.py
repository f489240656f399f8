# imgsrc/logging.py
import json
import logging
import os
import re
import sys
from typing import Any, Dict

PII_RE = re.compile(r"([\w\.-]+)@([\w\.-]+)")  # naive email redaction
API_KEY_RE = re.compile(r"imgsrc_[A-Za-z0-9_\-]+")
BEARER_RE = re.compile(r"(?i)bearer\s+\S+")


def configure_logging(level: str | None = None):
    # stdout belongs to the stdio transport
    logging.basicConfig(
        level=level or os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )


def redact_str(s: str) -> str:
    s = BEARER_RE.sub("Bearer [redacted]", s)
    s = API_KEY_RE.sub("[redacted-key]", s)
    return PII_RE.sub("[redacted-email]", s)


def redact_args(args: Dict[str, Any]) -> Dict[str, Any]:
    safe = json.loads(json.dumps(args, default=str))  # shallow copy via JSON
    for k, v in list(safe.items()):
        if isinstance(v, str):
            # base64 payloads are noise in logs
            safe[k] = f"<{len(v)} chars>" if k == "data" else redact_str(v)
    return safe


def log_tool_call(logger: logging.Logger, name: str, args: Dict[str, Any]):
    logger.info("tool_call %s %s", name, redact_args(args))
