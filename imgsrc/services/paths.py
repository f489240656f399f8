# imgsrc/services/paths.py
import re
from urllib.parse import unquote

_SEPARATORS = re.compile(r"[/\\]+")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_TRAVERSAL = {"", ".", ".."}
_USERNAME_STRIP = re.compile(r"[^a-zA-Z0-9_-]")


def _percent_decode(path: str) -> str:
    """
    Decode until nothing is left to decode, so ``%252e%252e`` cannot survive
    one pass and turn into ``..`` on the next. A malformed escape or invalid
    UTF-8 stops decoding and keeps the last good value.
    """
    current = path
    while "%" in current:
        if _BAD_ESCAPE.search(current):
            break
        try:
            decoded = unquote(current, errors="strict")
        except UnicodeDecodeError:
            break
        if decoded == current:
            break
        current = decoded
    return current


def sanitize_path(path: str) -> str:
    """
    Normalize a caller-supplied relative path: no ``.``/``..``/empty segments,
    no leading separator, ``/`` between segments. Never raises.

    >>> sanitize_path("../../../etc/passwd")
    'etc/passwd'
    """
    decoded = _percent_decode(path)
    segments = _SEPARATORS.split(decoded)
    return "/".join(s for s in segments if s not in _TRAVERSAL)


def sanitize_username(username: str) -> str:
    return _USERNAME_STRIP.sub("", username)
