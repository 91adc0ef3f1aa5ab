"""Constants, status classifiers and URL path helpers."""
from __future__ import annotations

import posixpath
import re
from collections.abc import Mapping, Set
from typing import Any, Dict, Optional, Tuple
from urllib.parse import SplitResult, urlunsplit

from .errors import DecodeError, MalformedInputError

TYPE = "Content-Type"
TYPE_JSON = "application/json"
TYPE_FORM = "application/x-www-form-urlencoded"
TYPE_MULTI = "multipart/form-data"

METHOD_GET = "GET"
METHOD_HEAD = "HEAD"
METHOD_POST = "POST"
METHOD_PUT = "PUT"
METHOD_PATCH = "PATCH"
METHOD_DELETE = "DELETE"
METHOD_OPTIONS = "OPTIONS"

_READ_ONLY = frozenset(("", METHOD_GET, METHOD_HEAD, METHOD_OPTIONS))
_SLASHES = re.compile(r"/{2,}")
_TOKEN = r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+"
HEADER_TOKEN = re.compile(rf"^{_TOKEN}$")
_MEDIA_PARAM = re.compile(rf'[ \t]*({_TOKEN})[ \t]*=[ \t]*(?:({_TOKEN})|"((?:[^"\\]|\\.)*)")[ \t]*')
_BLANK_PARAM = re.compile(r"[ \t]*(?=;|\Z)")
_QUOTED_PAIR = re.compile(r"\\(.)")

EMPTY_URL = SplitResult("", "", "", "", "")


def is_read_only(method: Optional[str]) -> bool:
    """True if the method is unset, GET, HEAD or OPTIONS."""
    return (method or "") in _READ_ONLY


def is_info(status: int) -> bool:
    return 100 <= status <= 199


def is_ok(status: int) -> bool:
    return 200 <= status <= 299


def is_redir(status: int) -> bool:
    return 300 <= status <= 399


def is_client_err(status: int) -> bool:
    return 400 <= status <= 499


def is_server_err(status: int) -> bool:
    return 500 <= status <= 599


def to_str(value: Any) -> str:
    """
    Render a primitive or intentionally stringable value as a string.

    None becomes "", booleans become "true"/"false", numbers use their plain
    decimal form and URLs are unsplit. Objects that define their own
    ``__str__`` are accepted. Containers and bytes are rejected.

    Raises:
        MalformedInputError: For unsupported types
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, SplitResult):
        return urlunsplit(value)
    if isinstance(value, (bytes, bytearray, memoryview, Mapping, Set, list, tuple)):
        raise _unsupported(value)
    if type(value).__str__ is object.__str__:
        raise _unsupported(value)
    return str(value)


def _unsupported(value: Any) -> MalformedInputError:
    # The value itself is left out: it may be huge or sensitive.
    return MalformedInputError(
        f"failed to encode value of unsupported type {type(value).__name__!r} as string"
    )


def _clean_path(path: str) -> str:
    path = _SLASHES.sub("/", path)
    if not path:
        return ""
    cleaned = posixpath.normpath(path)
    return "" if cleaned == "." else cleaned


def url_append(ref: Optional[SplitResult], value: Any) -> SplitResult:
    """
    Append the string form of ``value`` to the URL path, slash-separated.

    The segment must be non-empty so that a request never silently lands on
    the parent path. Returns a new URL; ``None`` is treated as an empty URL.

    Raises:
        MalformedInputError: If the segment renders as an empty string
    """
    segment = to_str(value)
    if not segment:
        raise MalformedInputError("failed to append to URL path: unexpected empty string")

    if ref is None:
        return EMPTY_URL._replace(path=segment)
    return ref._replace(path=_clean_path(f"{ref.path}/{segment}" if ref.path else segment))


def url_join(ref: Optional[SplitResult], *values: Any) -> Optional[SplitResult]:
    """Apply :func:`url_append` for every value in order."""
    for value in values:
        ref = url_append(ref, value)
    return ref


def parse_media_type(src: str) -> Tuple[str, Dict[str, str]]:
    """
    Split a Content-Type value into its lowercased media type and parameters.

    Parameter values may be tokens or quoted strings; quoted values may hold
    ``;`` and backslash escapes. Blank parameters such as a trailing ``;`` are
    skipped.

    Raises:
        DecodeError: If the value is not a valid media type
    """
    head = src.split(";", 1)[0]
    media = head.strip().lower()
    kind, sep, sub = media.partition("/")
    if not sep or not HEADER_TOKEN.match(kind) or not HEADER_TOKEN.match(sub):
        raise DecodeError(f"failed to parse media type {src!r}")

    params: Dict[str, str] = {}
    pos = len(head)
    while pos < len(src):
        # src[pos] is always a ";" here
        match = _MEDIA_PARAM.match(src, pos + 1)
        if match is None:
            blank = _BLANK_PARAM.match(src, pos + 1)
            if blank is None:
                raise DecodeError(f"failed to parse media type {src!r}")
            pos = blank.end()
            continue

        key, token, quoted = match.groups()
        key = key.lower()
        if key in params:
            raise DecodeError(f"failed to parse media type {src!r}: duplicate parameter {key!r}")
        params[key] = token if token is not None else _QUOTED_PAIR.sub(r"\1", quoted)
        pos = match.end()
        if pos < len(src) and src[pos] != ";":
            raise DecodeError(f"failed to parse media type {src!r}")
    return media, params
