from __future__ import annotations

from typing import Callable, List

import httpx
import pytest

from httpchain import Cli


class CountingBody:
    """In-memory response body recording how often it was read and closed."""

    def __init__(self, content: bytes = b"", fail: bool = False) -> None:
        self.content = content
        self.fail = fail
        self.reads = 0
        self.closes = 0

    def read(self, size: int = -1) -> bytes:
        self.reads += 1
        if self.fail:
            raise OSError("connection reset")
        return self.content

    def close(self) -> None:
        self.closes += 1


@pytest.fixture
def counting_body() -> Callable[..., CountingBody]:
    return CountingBody


@pytest.fixture
def seen() -> List[httpx.Request]:
    """Requests received by the mock transport, in order."""
    return []


@pytest.fixture
def make_client(seen):
    """Build a client whose transport calls ``handler`` instead of the network."""
    clients = []

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> Cli:
        def record(request: httpx.Request) -> httpx.Response:
            request.read()
            seen.append(request)
            return handler(request)

        client = Cli(transport=httpx.MockTransport(record), base_url="http://test")
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()
