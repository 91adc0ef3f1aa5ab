"""Fluent request builder."""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, BinaryIO, Callable, Mapping, Optional, Sequence, Tuple
from urllib.parse import SplitResult, urlsplit, urlunsplit

import httpx

from . import body as bodies
from .ctx import Ctx
from .errors import HttpChainError, MalformedInputError, TransportError, catch
from .head import Head
from .misc import (
    EMPTY_URL,
    METHOD_DELETE,
    METHOD_GET,
    METHOD_OPTIONS,
    METHOD_PATCH,
    METHOD_POST,
    METHOD_PUT,
    TYPE,
    TYPE_FORM,
    TYPE_JSON,
    TYPE_MULTI,
    is_read_only,
    url_append,
    url_join,
)
from .res import Res

logger = logging.getLogger("httpchain.req")


@dataclass
class Req:
    """
    HTTP request with a builder-style API.

    Every builder method mutates the request and returns it. Defaults for
    method, URL, header and context are filled only by :meth:`init`, which
    sending calls, so a partially built request shows only what was set.
    """

    method: str = ""
    url: Optional[SplitResult] = None
    header: Optional[Head] = None
    content_length: int = 0
    body: Optional[Any] = None
    get_body: Optional[Callable[[], BinaryIO]] = None
    context: Optional[Ctx] = None
    client: Optional[httpx.Client] = None

    # Context and client ----------------------------------------------------

    def ctx(self, ctx: Optional[Ctx]) -> "Req":
        self.context = ctx
        return self

    def cli(self, client: Optional[httpx.Client]) -> "Req":
        """Client used by :meth:`res`. ``None`` means the default client."""
        self.client = client
        return self

    # Method ----------------------------------------------------------------

    def is_read_only(self) -> bool:
        return is_read_only(self.method)

    def meth(self, method: str) -> "Req":
        self.method = method
        return self

    def get(self) -> "Req":
        return self.meth(METHOD_GET)

    def post(self) -> "Req":
        return self.meth(METHOD_POST)

    def put(self) -> "Req":
        return self.meth(METHOD_PUT)

    def patch(self) -> "Req":
        return self.meth(METHOD_PATCH)

    def delete(self) -> "Req":
        return self.meth(METHOD_DELETE)

    def options(self) -> "Req":
        return self.meth(METHOD_OPTIONS)

    # URL -------------------------------------------------------------------

    def to(self, src: str) -> "Req":
        """
        Parse and set the destination URL.

        Raises:
            MalformedInputError: If the URL can't be parsed
        """
        try:
            parsed = urlsplit(src)
            parsed.port  # validates the port
        except ValueError as exc:
            raise MalformedInputError(f"failed to parse request destination: {exc}") from exc
        return self.set_url(parsed)

    def set_url(self, val: Optional[SplitResult]) -> "Req":
        self.url = val
        return self

    def path(self, val: str, *vals: Any) -> "Req":
        """Set the URL path as-is, then append each of ``vals`` as a segment."""
        self.url = url_join(self._url()._replace(path=val), *vals)
        return self

    def append(self, val: Any) -> "Req":
        self.url = url_append(self._url(), val)
        return self

    def join(self, *vals: Any) -> "Req":
        self.url = url_join(self._url(), *vals)
        return self

    def raw_query(self, val: str) -> "Req":
        self.url = self._url()._replace(query=val)
        return self

    def query(self, vals: Optional[bodies.FormValues]) -> "Req":
        return self.raw_query(bodies.encode_form(vals))

    def _url(self) -> SplitResult:
        return EMPTY_URL if self.url is None else self.url

    # Header ----------------------------------------------------------------

    def head(self, val: Optional[Mapping[str, Sequence[str]]]) -> "Req":
        """Replace the whole header. A plain dict is wrapped, not copied."""
        self.header = None if val is None else Head(val)
        return self

    def head_del(self, key: str) -> "Req":
        if self.header is not None:
            self.header.delete(key)
        return self

    def head_add(self, key: str, val: str) -> "Req":
        self.header = self._head().add(key, val)
        return self

    def head_set(self, key: str, val: str) -> "Req":
        self.header = self._head().set(key, val)
        return self

    def head_replace(self, key: str, *vals: str) -> "Req":
        if not vals:
            return self.head_del(key)
        self.header = self._head().replace(key, *vals)
        return self

    def head_patch(self, head: Optional[Mapping[str, Sequence[str]]]) -> "Req":
        patched = self._head().patch(head)
        if self.header is not None or patched:
            self.header = patched
        return self

    def _head(self) -> Head:
        return Head() if self.header is None else self.header

    def content_type(self, typ: str) -> "Req":
        """Set ``Content-Type``; an empty string removes the header instead."""
        if not typ:
            return self.head_del(TYPE)
        return self.head_set(TYPE, typ)

    def type_json(self) -> "Req":
        return self.content_type(TYPE_JSON)

    def type_form(self) -> "Req":
        return self.content_type(TYPE_FORM)

    def type_multi(self) -> "Req":
        return self.content_type(TYPE_MULTI)

    # Body ------------------------------------------------------------------

    def _body(self, encoded: bodies.Body) -> "Req":
        self.content_length = encoded.content_length
        self.get_body = encoded.get_body
        self.body = encoded.body
        return self

    def text(self, val: Optional[str]) -> "Req":
        """
        Use a string as the body. ``content_length`` counts UTF-8 bytes. An
        empty string clears the body fields.
        """
        return self._body(bodies.from_text(val))

    def content(self, val: Optional[bytes]) -> "Req":
        """Use bytes as the body. Empty input clears the body fields."""
        return self._body(bodies.from_bytes(val))

    def vals(self, vals: Optional[bodies.FormValues]) -> "Req":
        return self.text(bodies.encode_form(vals))

    def form_vals(self, vals: Optional[bodies.FormValues]) -> "Req":
        """URL-encoded body plus the form content type."""
        return self.type_form().vals(vals)

    def json(self, val: Any) -> "Req":
        """
        JSON-encode ``val`` as the body and set the JSON content type.

        For a read-only method, ``None`` skips encoding and clears the body,
        so this can be called unconditionally for GET requests.

        Raises:
            EncodeError: If the value can't be JSON-encoded
        """
        self.type_json()
        if self.is_read_only() and val is None:
            return self._body(bodies.Body())
        return self.content(bodies.encode_json(val))

    def json_catch(self, val: Any) -> Tuple[Optional["Req"], Optional[HttpChainError]]:
        return catch(self.json, val)

    def json_string(self, val: str) -> "Req":
        """Use an already-encoded JSON string as the body."""
        return self.type_json().text(val)

    def json_bytes(self, val: bytes) -> "Req":
        return self.type_json().content(val)

    def stream(self, val: Optional[Any]) -> "Req":
        """Set ``body`` as-is, leaving ``content_length`` and ``get_body`` alone."""
        self.body = val
        return self

    def reader(self, val: Optional[Any]) -> "Req":
        if val is None:
            return self.stream(None)
        return self.stream(bodies.NopCloser(val))

    # Lifecycle -------------------------------------------------------------

    def clone(self) -> "Req":
        """
        Copy for reuse as a template. The header is deep-copied; the body
        stream is shared and may not be reusable.
        """
        return dataclasses.replace(
            self, header=None if self.header is None else self.header.clone()
        )

    def init(self) -> "Req":
        """Fill unset context, method, URL and header with their defaults."""
        if self.context is None:
            self.context = Ctx.background()
        if not self.method:
            self.method = METHOD_GET
        if self.url is None:
            self.url = EMPTY_URL
        if self.header is None:
            self.header = Head()
        return self

    def to_httpx(self, client: Optional[httpx.Client] = None) -> httpx.Request:
        """
        Convert to an ``httpx.Request``, filling defaults first. With a
        client, its base URL and default headers apply.

        Raises:
            MalformedInputError: If httpx rejects the URL
        """
        self.init()
        content = self._content()
        extensions = {}
        remaining = self.context.remaining()
        if remaining is not None:
            extensions["timeout"] = httpx.Timeout(remaining).as_dict()

        kwargs = dict(
            headers=self.header.to_httpx(), content=content, extensions=extensions
        )
        try:
            if client is None:
                return httpx.Request(self.method, urlunsplit(self.url), **kwargs)
            return client.build_request(self.method, urlunsplit(self.url), **kwargs)
        except httpx.InvalidURL as exc:
            raise MalformedInputError(f"failed to parse request destination: {exc}") from exc

    def _content(self) -> Optional[bytes]:
        # The replay factory leaves self.body unread.
        if self.get_body is not None:
            stream = self.get_body()
        elif self.body is not None:
            stream = self.body
        else:
            return None
        try:
            return stream.read()
        except OSError as exc:
            raise TransportError(f"failed to read request body: {exc}") from exc

    # Sending ---------------------------------------------------------------

    def res(self) -> Res:
        """
        Perform the request with its own client, or the default one.

        Non-OK statuses are not errors here; see :meth:`Res.ok`. The caller
        must close the response body, by reading or decoding it or via
        :meth:`Res.done`.

        Raises:
            TransportError: If the exchange fails or the context is done
        """
        return self.cli_res(self.client)

    def res_catch(self) -> Tuple[Optional[Res], Optional[HttpChainError]]:
        return catch(self.res)

    def cli_res(self, client: Optional[httpx.Client]) -> Res:
        """Perform the request with the given client, or the default one."""
        if client is None:
            from .client import get_default_client

            client = get_default_client()

        self.init()
        reason = self.context.err()
        if reason:
            logger.info({"event": "request.aborted", "reason": reason})
            raise TransportError(f"failed to perform HTTP request: {reason}")

        request = self.to_httpx(client)
        logger.debug(
            {"event": "request.send", "method": request.method, "url": str(request.url)}
        )
        try:
            response = client.send(request, stream=True)
        except httpx.HTTPError as exc:
            logger.warning(
                {"event": "request.failed", "method": request.method, "error": str(exc)}
            )
            raise TransportError(f"failed to perform HTTP request: {exc}") from exc

        logger.debug({"event": "request.done", "status": response.status_code})
        return Res.from_httpx(response, request=self)

    def cli_res_catch(
        self, client: Optional[httpx.Client]
    ) -> Tuple[Optional[Res], Optional[HttpChainError]]:
        return catch(self.cli_res, client)


# Shortcuts, each starting a new request ---------------------------------------


def ctx(val: Optional[Ctx]) -> Req:
    return Req().ctx(val)


def cli(val: Optional[httpx.Client]) -> Req:
    return Req().cli(val)


def to(val: str) -> Req:
    return Req().to(val)


def url(val: Optional[SplitResult]) -> Req:
    return Req().set_url(val)


def path(val: str, *vals: Any) -> Req:
    return Req().path(val, *vals)


def meth(val: str) -> Req:
    return Req().meth(val)


def get() -> Req:
    return Req().get()


def post() -> Req:
    return Req().post()


def put() -> Req:
    return Req().put()


def patch() -> Req:
    return Req().patch()


def delete() -> Req:
    return Req().delete()


def options() -> Req:
    return Req().options()


def init() -> Req:
    return Req().init()
