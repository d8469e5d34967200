import asyncio
from dataclasses import dataclass

import pytest

from gcslib.tests import MockResponse, MockTransport


@dataclass
class FakeClock:
    now: float = 1_700_000_000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


async def wait_until(predicate, *, max_iter: int = 100):
    for _ in range(max_iter):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("Condition not reached")


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def transport():
    return MockTransport(lambda call: MockResponse.from_json({"kind": "storage#object", "name": "a.txt"}))


@pytest.fixture()
def config(client_email, private_key, bucket):
    from gcslib.gcs import SessionConfig

    return SessionConfig(client_email=client_email, private_key=private_key, default_bucket=bucket)


@pytest.fixture()
def session(config, transport, clock):
    from gcslib.gcs import GCSSession

    return GCSSession(config, http_client=transport, clock=clock)  # type: ignore[arg-type]


@pytest.fixture()
def sign_calls(monkeypatch):
    """Count the tokens signed by sessions."""
    import gcslib.gcs.client
    from gcslib.gcs.auth import create_token

    calls = []

    def _create_token(*args, **kwargs):
        calls.append(kwargs.get("now"))
        return create_token(*args, **kwargs)

    monkeypatch.setattr(gcslib.gcs.client, "create_token", _create_token)
    return calls
