"""Error types and the helper behind the ``*_catch`` method variants."""
import codecs
from typing import Any, Callable, Optional, Tuple, TypeVar

from .config import settings

PREFIX = "[httpchain] error"
TRUNCATED = " ... (truncated)"


class HttpChainError(Exception):
    """Base exception for every failure raised by this package."""
    def __init__(self, message: str, status_code: int = 0):
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def http_status_code(self) -> int:
        return self.status_code


class EncodeError(HttpChainError):
    """A request body could not be serialized."""


class TransportError(HttpChainError):
    """The transport could not complete the exchange."""


class DecodeError(HttpChainError):
    """A response body could not be read or parsed."""


class MalformedInputError(HttpChainError, ValueError):
    """Caller input that would produce a wrong request, such as an empty path segment."""


class Err(HttpChainError):
    """
    Unexpected HTTP status, carrying the status code, the response body and
    the underlying cause.

    The rendering combines a fixed prefix, the status when non-zero, the
    cause and a bounded preview of the body.
    """
    def __init__(
        self,
        status: int = 0,
        body: Optional[bytes] = None,
        cause: Optional[BaseException] = None,
    ):
        self.status = status
        self.body = bytes(body or b"")
        self.cause = cause
        super().__init__(self.render(), status)
        self.__cause__ = cause

    def render(self) -> str:
        out = PREFIX
        if self.status:
            out += f" (HTTP status {self.status})"

        if self.cause is not None:
            render = getattr(self.cause, "render", None)
            out += ": " + (render() if callable(render) else str(self.cause))

        return out + body_preview(self.body)


def body_preview(body: bytes, limit: Optional[int] = None) -> str:
    """
    Format a response body for error messages.

    Args:
        body: Raw body bytes
        limit: Maximum number of bytes shown, defaults to the configured limit

    Returns:
        "" for an empty body, otherwise "; body: " followed by the text
    """
    if not body:
        return ""
    if limit is None:
        limit = settings.body_preview_limit

    if len(body) > limit:
        # An incomplete character at the cut is dropped, not replaced.
        head = codecs.getincrementaldecoder("utf-8")(errors="replace").decode(body[:limit])
        return "; body: " + head + TRUNCATED
    return "; body: " + body.decode("utf-8", errors="replace")


T = TypeVar("T")


def catch(func: Callable[..., T], *args: Any, **kwargs: Any) -> Tuple[Optional[T], Optional[HttpChainError]]:
    """
    Call ``func`` and return its failure as a value instead of raising.

    Returns:
        ``(result, None)`` on success, ``(None, error)`` on failure
    """
    try:
        return func(*args, **kwargs), None
    except HttpChainError as exc:
        return None, exc
