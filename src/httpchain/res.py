"""Response inspection and decoding shortcuts."""
from __future__ import annotations

import io
import json
import logging
import re
import sys
import xml.etree.ElementTree as ET
from http import HTTPStatus
from typing import IO, Any, Dict, List, Optional, Tuple
from urllib.parse import SplitResult, parse_qs, urlsplit

import httpx
from pydantic import TypeAdapter
from pydantic.errors import PydanticUserError

from .body import fork_read_closer, read_all
from .errors import DecodeError, Err, HttpChainError, catch
from .head import Head
from .misc import (
    TYPE,
    TYPE_FORM,
    TYPE_JSON,
    TYPE_MULTI,
    is_client_err,
    is_info,
    is_ok,
    is_redir,
    is_server_err,
    parse_media_type,
)

logger = logging.getLogger("httpchain.res")

_BAD_ESCAPE = re.compile(rb"%(?![0-9A-Fa-f]{2})")


class ResponseBody:
    """Readable, closable view over a streamed ``httpx.Response``."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response

    def read(self, size: int = -1) -> bytes:
        try:
            return self.response.read()
        except (httpx.HTTPError, httpx.StreamError) as exc:
            raise OSError(str(exc)) from exc

    def close(self) -> None:
        self.response.close()


class Res:
    """
    HTTP response with shortcuts for inspecting and decoding it.

    The caller must close the body exactly once, either through one of the
    reading or decoding methods, which always close it, or via :meth:`done`.
    """

    def __init__(
        self,
        status_code: int = 0,
        header: Optional[Head] = None,
        body: Optional[Any] = None,
        request: Optional[Any] = None,
    ) -> None:
        self.status_code = status_code
        self.header = header
        self.body = body
        self.request = request

    @classmethod
    def from_httpx(cls, response: httpx.Response, request: Optional[Any] = None) -> "Res":
        return cls(
            status_code=response.status_code,
            header=Head.from_httpx(response.headers),
            body=ResponseBody(response),
            request=request,
        )

    def __repr__(self) -> str:
        return f"Res(status_code={self.status_code!r}, header={self.header!r})"

    # Status ----------------------------------------------------------------

    def is_info(self) -> bool:
        return is_info(self.status_code)

    def is_ok(self) -> bool:
        return is_ok(self.status_code)

    def is_redir(self) -> bool:
        return is_redir(self.status_code)

    def is_client_err(self) -> bool:
        return is_client_err(self.status_code)

    def is_server_err(self) -> bool:
        return is_server_err(self.status_code)

    def ok(self) -> "Res":
        """
        Assert a 2xx status. Otherwise read and close the body and raise an
        :class:`Err` including it. On success the body is left untouched.
        """
        if self.is_ok():
            return self
        raise self.err("non-OK")

    def ok_catch(self) -> Tuple[Optional["Res"], Optional[HttpChainError]]:
        return catch(self.ok)

    def redir(self) -> "Res":
        """Like :meth:`ok`, for 3xx statuses."""
        if self.is_redir():
            return self
        raise self.err("non-redirect")

    def redir_catch(self) -> Tuple[Optional["Res"], Optional[HttpChainError]]:
        return catch(self.redir)

    def err(self, desc: str) -> Err:
        """
        Build an error describing why the response is unsatisfactory, such as
        "non-OK". Always reads and closes the body.
        """
        status = self.status_code
        body = self.body
        logger.debug({"event": "response.unexpected", "status": status, "desc": desc})
        if body is None:
            return Err(status, cause=HttpChainError(f"unexpected {desc} response with empty body"))

        try:
            chunk = read_all(body)
        except DecodeError as exc:
            return Err(
                status,
                cause=HttpChainError(f"unexpected {desc} response, failed to read body: {exc}"),
            )
        finally:
            body.close()

        if not chunk:
            return Err(status, cause=HttpChainError(f"unexpected {desc} response with empty body"))
        return Err(status, body=chunk, cause=HttpChainError(f"unexpected {desc} response"))

    # Location --------------------------------------------------------------

    def loc(self) -> str:
        """The ``Location`` header."""
        return self.header.get("Location") if self.header is not None else ""

    def loc_url(self) -> SplitResult:
        loc = self.loc()
        try:
            parsed = urlsplit(loc)
            parsed.port
        except ValueError as exc:
            raise DecodeError(f"failed to parse redirect location {loc!r}: {exc}") from exc
        return parsed

    def loc_url_catch(self) -> Tuple[Optional[SplitResult], Optional[HttpChainError]]:
        return catch(self.loc_url)

    # Closing ---------------------------------------------------------------

    def done(self) -> "Res":
        """Close the body if any. Chainable."""
        if self.body is not None:
            self.body.close()
        return self

    def close_err(self) -> Optional[Exception]:
        """Close the body, returning the close failure instead of raising it."""
        if self.body is None:
            return None
        try:
            self.body.close()
        except OSError as exc:
            return exc
        return None

    # Content type ----------------------------------------------------------

    def content_type(self) -> str:
        """
        Raw ``Content-Type``. May carry parameters; compare media types via
        :meth:`media_type`.
        """
        return self.header.get(TYPE) if self.header is not None else ""

    def media(self) -> Tuple[str, Dict[str, str]]:
        src = self.content_type()
        if not src:
            return "", {}
        return parse_media_type(src)

    def media_type(self) -> str:
        return self.media()[0]

    def is_json(self) -> bool:
        return self.media_type() == TYPE_JSON

    def is_form(self) -> bool:
        return self.media_type() == TYPE_FORM

    def is_multi(self) -> bool:
        return self.media_type() == TYPE_MULTI

    # Reading and decoding --------------------------------------------------

    def read_bytes(self) -> bytes:
        """Read the whole body. Always closes it."""
        body = self.body
        if body is None:
            return b""
        try:
            return read_all(body)
        finally:
            body.close()

    def read_bytes_catch(self) -> Tuple[Optional[bytes], Optional[HttpChainError]]:
        return catch(self.read_bytes)

    def read_string(self) -> str:
        return self.read_bytes().decode("utf-8", errors="replace")

    def read_string_catch(self) -> Tuple[Optional[str], Optional[HttpChainError]]:
        return catch(self.read_string)

    def form(self) -> Dict[str, List[str]]:
        """
        Parse a URL-encoded body. Always closes the body.

        Raises:
            DecodeError: If the body can't be read or isn't valid form data
        """
        if self.body is None:
            return {}
        chunk = self.read_bytes()
        bad = _BAD_ESCAPE.search(chunk)
        if bad is not None:
            escape = chunk[bad.start() : bad.start() + 3]
            raise DecodeError(f"failed to form-decode response body: invalid escape {escape!r}")
        try:
            return parse_qs(chunk.decode("utf-8"), keep_blank_values=True, errors="strict")
        except ValueError as exc:
            raise DecodeError(f"failed to form-decode response body: {exc}") from exc

    def form_catch(self) -> Tuple[Optional[Dict[str, List[str]]], Optional[HttpChainError]]:
        return catch(self.form)

    def json(self, shape: Any = None) -> Any:
        """
        Decode a JSON body. With ``shape`` (a type or pydantic model) the
        result is validated into it. A missing body decodes to ``None``.
        Always closes the body.

        Raises:
            DecodeError: If the body can't be read, parsed or validated, or
                ``shape`` is not a type pydantic can validate into
        """
        body = self.body
        if body is None:
            return None
        try:
            adapter = None if shape is None else TypeAdapter(shape)
            chunk = read_all(body)
            if adapter is None:
                return json.loads(chunk)
            return adapter.validate_json(chunk)
        except PydanticUserError as exc:
            raise DecodeError(f"unsupported JSON decode target {shape!r}: {exc}") from exc
        except ValueError as exc:
            raise DecodeError(f"failed to JSON-decode response body: {exc}") from exc
        finally:
            body.close()

    def json_catch(self, shape: Any = None) -> Tuple[Any, Optional[HttpChainError]]:
        return catch(self.json, shape)

    def json_either(self, ok_shape: Any = None, err_shape: Any = None) -> Tuple[bool, Any]:
        """
        Decode with ``ok_shape`` for a 2xx status, ``err_shape`` otherwise.

        Returns:
            ``(is_ok, decoded)``
        """
        if self.is_ok():
            return True, self.json(ok_shape)
        return False, self.json(err_shape)

    def json_either_catch(
        self, ok_shape: Any = None, err_shape: Any = None
    ) -> Tuple[Optional[Tuple[bool, Any]], Optional[HttpChainError]]:
        return catch(self.json_either, ok_shape, err_shape)

    def xml(self) -> Optional[ET.Element]:
        return self.xml_with(None)

    def xml_catch(self) -> Tuple[Optional[ET.Element], Optional[HttpChainError]]:
        return catch(self.xml)

    def xml_with(self, parser: Optional[ET.XMLParser]) -> Any:
        """
        Decode an XML body with the given parser, or a default one. Returns
        whatever the parser's target produces, an ``Element`` by default.
        Always closes the body.
        """
        body = self.body
        if body is None:
            return None
        try:
            chunk = read_all(body)
            parser = parser if parser is not None else ET.XMLParser()
            parser.feed(chunk)
            return parser.close()
        except ET.ParseError as exc:
            raise DecodeError(f"failed to XML-decode response body: {exc}") from exc
        finally:
            body.close()

    def xml_with_catch(self, parser: Optional[ET.XMLParser]) -> Tuple[Any, Optional[HttpChainError]]:
        return catch(self.xml_with, parser)

    # Introspection ---------------------------------------------------------

    def clone_body(self) -> Optional[Any]:
        """
        Return a copy of the body, replacing the current one with an
        equivalent in-memory stream. Reads and closes the original.
        """
        one, two = fork_read_closer(self.body)
        self.body = one
        return two

    def clone(self) -> "Res":
        request = self.request.clone() if self.request is not None else None
        return Res(
            status_code=self.status_code,
            header=self.header.clone() if self.header is not None else None,
            body=self.clone_body(),
            request=request,
        )

    def write(self, out: Optional[IO[Any]]) -> None:
        """
        Write the response in HTTP/1.1 wire form, followed by a newline.
        Consumes the body; use :meth:`dump` to keep it readable.

        A binary writer receives the body bytes unchanged. A text writer gets
        them decoded as UTF-8, with undecodable bytes replaced.
        """
        if out is None:
            return
        try:
            reason = HTTPStatus(self.status_code).phrase
        except ValueError:
            reason = ""
        lines = [f"HTTP/1.1 {self.status_code} {reason}".rstrip()]
        if self.header is not None:
            lines.extend(f"{key}: {value}" for key, value in self.header.multi_items())
        data = ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8") + self.read_bytes() + b"\n"

        if isinstance(out, io.TextIOBase):
            out.write(data.decode("utf-8", errors="replace"))
        else:
            out.write(data)

    def dump(self) -> "Res":
        """Write a clone to stdout. The original stays readable."""
        self.clone().write(sys.stdout)
        return self
