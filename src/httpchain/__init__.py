"""Fluent request building and response decoding on top of httpx."""
import logging

from .body import Body, NopCloser, ReadCloser
from .client import Cli, get_default_client, new_client
from .ctx import Ctx
from .errors import (
    DecodeError,
    EncodeError,
    Err,
    HttpChainError,
    MalformedInputError,
    TransportError,
    catch,
)
from .head import Head, canonical_key
from .misc import (
    TYPE,
    TYPE_FORM,
    TYPE_JSON,
    TYPE_MULTI,
    is_client_err,
    is_info,
    is_ok,
    is_read_only,
    is_redir,
    is_server_err,
    to_str,
    url_append,
    url_join,
)
from .req import (
    Req,
    cli,
    ctx,
    delete,
    get,
    init,
    meth,
    options,
    patch,
    path,
    post,
    put,
    to,
    url,
)
from .res import Res

logging.getLogger("httpchain").addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "Body",
    "Cli",
    "Ctx",
    "DecodeError",
    "EncodeError",
    "Err",
    "Head",
    "HttpChainError",
    "MalformedInputError",
    "NopCloser",
    "ReadCloser",
    "Req",
    "Res",
    "TransportError",
    "TYPE",
    "TYPE_FORM",
    "TYPE_JSON",
    "TYPE_MULTI",
    "canonical_key",
    "catch",
    "cli",
    "ctx",
    "delete",
    "get",
    "get_default_client",
    "init",
    "is_client_err",
    "is_info",
    "is_ok",
    "is_read_only",
    "is_redir",
    "is_server_err",
    "meth",
    "new_client",
    "options",
    "patch",
    "path",
    "post",
    "put",
    "to",
    "to_str",
    "url",
    "url_append",
    "url_join",
]
