from __future__ import annotations

import inspect
import pprint
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, NamedTuple

try:
    import deepdiff
except ImportError:
    raise ImportError('Please install deepdiff or gcslib with "tests" to use this module')

try:
    import ujson as json
except ImportError:
    import json

__all__ = ("MockCall", "MockResponse", "MockTransport", "assert_equals")


def assert_equals(d1: dict | Iterable, d2: dict | Iterable, *, ignore_order: bool = False):
    assert d1 == d2 or not deepdiff.DeepDiff(d1, d2, ignore_order=ignore_order), pprint.pprint(
        deepdiff.DeepDiff(d1, d2, ignore_order=ignore_order)
    )


@dataclass
class MockResponse:
    """Minimal stand-in for a niquests response."""

    status_code: int = 200
    content: bytes | None = None
    reason: str | None = None

    @classmethod
    def from_json(cls, data: Any, status_code: int = 200) -> MockResponse:
        return cls(status_code=status_code, content=json.dumps(data).encode("utf-8"))

    def json(self) -> Any:
        return json.loads(self.content) if self.content else None


class MockCall(NamedTuple):
    method: str
    url: str
    kwargs: dict[str, Any]


MockHandler = Callable[[MockCall], MockResponse | Awaitable[MockResponse]]


@dataclass
class MockTransport:
    """
    In-memory replacement for niquests.AsyncSession.

    Every request is recorded in `calls` (before the handler runs) and answered by
    `handler`, which may be sync or async. Without a handler, requests get an empty 200.

    Usage:
        transport = MockTransport(lambda call: MockResponse.from_json({"name": "a.txt"}))
        session = GCSSession(config, http_client=transport)
    """

    handler: MockHandler | None = None
    calls: list[MockCall] = field(default_factory=list)
    closed: bool = False

    async def request(self, method: str, url: str, **kwargs) -> MockResponse:
        call = MockCall(method, url, kwargs)
        self.calls.append(call)
        if self.handler is None:
            return MockResponse()
        resp = self.handler(call)
        if inspect.isawaitable(resp):
            return await resp
        return resp  # type: ignore[return-value]

    async def get(self, url: str, **kwargs) -> MockResponse:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> MockResponse:
        return await self.request("POST", url, **kwargs)

    async def patch(self, url: str, **kwargs) -> MockResponse:
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs) -> MockResponse:
        return await self.request("DELETE", url, **kwargs)

    async def close(self) -> None:
        self.closed = True

    async def __aenter__(self) -> MockTransport:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
