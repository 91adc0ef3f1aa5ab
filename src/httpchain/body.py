"""Request body encoders and in-memory body streams."""
from __future__ import annotations

import io
import json
from dataclasses import dataclass
from typing import Any, BinaryIO, Callable, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import urlencode

from pydantic import BaseModel

from .errors import DecodeError, EncodeError

FormValues = Mapping[str, Union[str, Sequence[str]]]


class ReadCloser(io.BytesIO):
    """In-memory body stream over fixed bytes. Closing twice is a no-op."""


class NopCloser:
    """Wrap a readable that has no ``close`` method, adding a no-op one."""

    def __init__(self, reader: Any) -> None:
        self.reader = reader

    def read(self, size: int = -1) -> bytes:
        return self.reader.read(size)

    def close(self) -> None:
        pass


@dataclass
class Body:
    """
    Encoded request body.

    ``get_body`` returns a fresh independent stream on every call so the
    transport can replay the body. Empty content leaves both stream fields
    unset, distinguishing "no body" from "empty body".
    """

    content_length: int = 0
    get_body: Optional[Callable[[], BinaryIO]] = None
    body: Optional[BinaryIO] = None

    @property
    def is_empty(self) -> bool:
        return self.body is None and self.get_body is None


def from_bytes(val: Optional[bytes]) -> Body:
    chunk = bytes(val or b"")
    if not chunk:
        return Body()
    return Body(
        content_length=len(chunk),
        get_body=lambda: ReadCloser(chunk),
        body=ReadCloser(chunk),
    )


def from_text(val: Optional[str]) -> Body:
    """Content length counts UTF-8 bytes, not characters."""
    return from_bytes((val or "").encode("utf-8"))


def encode_form(vals: Optional[FormValues]) -> str:
    """
    URL-encode form values. Keys are sorted so the output is deterministic;
    values keep their order within a key.
    """
    if not vals:
        return ""
    pairs = []
    for key in sorted(vals):
        value = vals[key]
        if isinstance(value, str):
            pairs.append((key, value))
        else:
            pairs.extend((key, item) for item in value)
    return urlencode(pairs)


def encode_json(val: Any) -> bytes:
    """
    JSON-encode a value in compact form. Pydantic models use their own
    serializer.

    Raises:
        EncodeError: If the value can't be represented as JSON
    """
    try:
        if isinstance(val, BaseModel):
            return val.model_dump_json().encode("utf-8")
        return json.dumps(
            val, separators=(",", ":"), ensure_ascii=False, allow_nan=False
        ).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise EncodeError(f"failed to JSON-encode request body: {exc}") from exc


def read_all(body: Any) -> bytes:
    """
    Read a stream to the end.

    Raises:
        DecodeError: If reading fails
    """
    try:
        chunk = body.read()
    except (OSError, ValueError) as exc:
        raise DecodeError(f"failed to read response body: {exc}") from exc
    return bytes(chunk or b"")


def fork_read_closer(body: Any) -> Tuple[Optional[ReadCloser], Optional[ReadCloser]]:
    """
    Fully read and close ``body``, returning two independent streams over
    the same content. ``None`` yields ``(None, None)``.
    """
    if body is None:
        return None, None
    try:
        chunk = read_all(body)
    finally:
        body.close()
    return ReadCloser(chunk), ReadCloser(chunk)
