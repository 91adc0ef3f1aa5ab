"""HTTP client with shortcuts for :class:`Req` and :class:`Res`."""
from __future__ import annotations

import logging
from typing import Optional, Tuple

import httpx

from .config import settings
from .errors import HttpChainError, catch
from .req import Req
from .res import Res

logger = logging.getLogger("httpchain.client")


class Cli(httpx.Client):
    """``httpx.Client`` that builds and performs :class:`Req` requests."""

    def req(self) -> Req:
        """A new request bound to this client."""
        return Req().cli(self)

    def do(self, req: Req) -> Res:
        """
        Perform the request with this client.

        Raises:
            TransportError: If the exchange fails
        """
        return req.cli_res(self)

    def do_catch(self, req: Req) -> Tuple[Optional[Res], Optional[HttpChainError]]:
        return catch(self.do, req)


def new_client(**kwargs) -> Cli:
    """Client configured from settings; keyword arguments override them."""
    kwargs.setdefault("timeout", settings.timeout)
    kwargs.setdefault("follow_redirects", settings.follow_redirects)
    kwargs.setdefault("headers", {"User-Agent": settings.user_agent})
    return Cli(**kwargs)


_DEFAULT_CLIENT: Optional[Cli] = None


def get_default_client() -> Cli:
    """Shared client used when a request has none."""
    global _DEFAULT_CLIENT
    if _DEFAULT_CLIENT is None or _DEFAULT_CLIENT.is_closed:
        _DEFAULT_CLIENT = new_client()
        logger.debug({"event": "client.default.created", "timeout": settings.timeout})
    return _DEFAULT_CLIENT
