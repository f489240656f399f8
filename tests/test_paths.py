# tests/test_paths.py
import pytest

from imgsrc.services.paths import sanitize_path, sanitize_username


@pytest.mark.parametrize("raw, expected", [
    ("../../../etc/passwd", "etc/passwd"),
    ("foo/../bar", "foo/bar"),
    ("..", ""),
    ("..../secret", "..../secret"),
    ("%2e%2e%2fetc/passwd", "etc/passwd"),
    ("/photos/beach.jpg", "photos/beach.jpg"),
    ("///a//b///", "a/b"),
    ("..\\..\\windows\\system32", "windows/system32"),
    ("a/./b/.", "a/b"),
    ("photos/vacation/beach.jpg", "photos/vacation/beach.jpg"),
    ("%252e%252e/x", "x"),
    ("%5c..%5cboot.ini", "boot.ini"),
])
def test_sanitize_path(raw, expected):
    assert sanitize_path(raw) == expected


def test_malformed_escape_keeps_original_text():
    # Nothing is decoded, but traversal segments are still dropped
    assert sanitize_path("%zz/../x") == "%zz/x"
    assert sanitize_path("%E0%A4%A/../y") == "%E0%A4%A/y"


def test_invalid_utf8_is_not_decoded():
    assert sanitize_path("%ff/../a") == "%ff/a"


@pytest.mark.parametrize("raw", [
    "../../../etc/passwd", "%2e%2e%2f", "%252e%252e%252f..", "a%2f..%2fb", "%zz%2e%2e/..",
    "\\\\server\\share", "....//....", "%25", "%2525zz", "./.%2e/a", "",
])
def test_sanitize_is_idempotent(raw):
    once = sanitize_path(raw)
    assert sanitize_path(once) == once
    assert not once.startswith("/")
    assert all(seg not in ("", ".", "..") for seg in once.split("/") if once)


def test_sanitize_username():
    assert sanitize_username("john.doe@evil/../") == "johndoeevil"
    assert sanitize_username("ok_user-1") == "ok_user-1"
    assert sanitize_username("../") == ""
