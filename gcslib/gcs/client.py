from __future__ import annotations

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, AsyncIterator, Awaitable, Callable, Self, TypeVar, Unpack

try:
    import niquests
except ImportError:
    raise ImportError('Please install niquests or gcslib with "gcs" to use this module')

from .auth import DEFAULT_SCOPE, Credential, create_token, exchange_token
from .errors import ConfigurationError
from .ops import (
    API_URL,
    UPLOAD_URL,
    GCSObjectParams,
    gcs_bucket_info,
    gcs_delete_object,
    gcs_download,
    gcs_list_objects,
    gcs_object_info,
    gcs_update_bucket,
    gcs_upload,
    gcs_upload_file,
)

if TYPE_CHECKING:
    from .types import GCSBucket, GCSObject

__all__ = (
    "DEFAULT_CONCURRENCY",
    "GCSSession",
    "SessionConfig",
    "TOKEN_REFRESH_MARGIN",
    "create_session",
)

T = TypeVar("T")

logger = logging.getLogger("gcslib")

DEFAULT_CONCURRENCY = 1000
# A cached token with less validity left than this (in seconds) is renewed before use
TOKEN_REFRESH_MARGIN = 300


@dataclass(frozen=True)
class SessionConfig:
    """
    Identity and defaults of a GCSSession.

    Reads GCS_CLIENT_EMAIL, GCS_PRIVATE_KEY and GCS_BUCKET environment variables
    when the values are not passed to the constructor.
    A per-call bucket always wins over `default_bucket`.
    """

    client_email: str | None = field(default_factory=lambda: os.environ.get("GCS_CLIENT_EMAIL"))
    private_key: str | None = field(default_factory=lambda: os.environ.get("GCS_PRIVATE_KEY"), repr=False)
    default_bucket: str | None = field(default_factory=lambda: os.environ.get("GCS_BUCKET"))
    concurrency_limit: int = DEFAULT_CONCURRENCY
    algorithm: str = "RS256"
    scope: str = DEFAULT_SCOPE
    # When set, the signed assertion is exchanged for an access token at this endpoint
    token_uri: str | None = None
    # Seconds to wait for a free slot, None waits forever
    acquire_timeout: float | None = None

    def __post_init__(self) -> None:
        if not self.client_email:
            raise ConfigurationError("GCS_CLIENT_EMAIL environment variable is required")
        if not self.private_key:
            raise ConfigurationError("GCS_PRIVATE_KEY environment variable is required")
        if self.concurrency_limit < 1:
            raise ValueError(f"concurrency_limit must be at least 1, got {self.concurrency_limit}")

    def resolve_bucket(self, bucket: str | None = None) -> str:
        _bucket = bucket or self.default_bucket
        if not _bucket:
            raise ConfigurationError("No bucket given and no default bucket configured")
        return _bucket


@dataclass
class GCSSession:
    """
    Async storage client that signs its own bearer token and bounds concurrent calls.

    The token is created on the first call and renewed once less than 5 minutes of
    validity remain. Concurrent calls that find the token stale wait on the same
    renewal. At most `config.concurrency_limit` calls are in flight at once, extra
    calls wait for a free slot.

    Usage:
        config = SessionConfig(client_email='sa@project.iam.gserviceaccount.com',
                               private_key=pem, default_bucket='my-bucket')
        async with GCSSession(config) as gcs:
            await gcs.upload('path/to/file.txt', b'content', metadata={'foo': 'bar'})
            content = await gcs.download('path/to/file.txt')
            files = await gcs.list_objects(bucket='other-bucket')
    """

    config: SessionConfig = field(default_factory=SessionConfig)
    http_client: niquests.AsyncSession = field(default_factory=niquests.AsyncSession)
    base_url: str = API_URL
    upload_url: str = UPLOAD_URL
    clock: Callable[[], float] = field(default=time.time, repr=False)
    _credential: Credential | None = field(default=None, init=False, repr=False)
    _refresh: asyncio.Task[Credential] | None = field(default=None, init=False, repr=False)
    _gate: asyncio.Semaphore = field(init=False, repr=False)
    _in_flight: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        self._gate = asyncio.Semaphore(self.config.concurrency_limit)

    async def __aenter__(self) -> Self:
        await self.http_client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.http_client.__aexit__(exc_type, exc_val, exc_tb)

    async def aclose(self) -> None:
        """Close the underlying session."""
        await self.http_client.close()

    @property
    def credential(self) -> Credential | None:
        return self._credential

    @property
    def in_flight(self) -> int:
        """Number of calls currently holding a slot."""
        return self._in_flight

    # Credentials

    async def get_token(self) -> str:
        """Return a token valid for at least TOKEN_REFRESH_MARGIN seconds, renewing it if needed."""
        credential = self._credential
        if credential is not None and credential.expires_in(self.clock()) >= TOKEN_REFRESH_MARGIN:
            return credential.token
        if self._refresh is None:
            self._refresh = asyncio.ensure_future(self._refresh_credential())
        return (await asyncio.shield(self._refresh)).token

    async def _refresh_credential(self) -> Credential:
        try:
            now = self.clock()
            credential = create_token(
                self.config.client_email or "",
                self.config.private_key or "",
                scope=self.config.scope,
                algorithm=self.config.algorithm,
                audience=self.config.token_uri,
                now=now,
            )
            if self.config.token_uri is not None:
                credential = await exchange_token(self.http_client, credential.token, self.config.token_uri, now=now)
            self._credential = credential
            logger.info(f"Refreshed token for {self.config.client_email!r}, expires at {credential.expires_at}")
            return credential
        finally:
            self._refresh = None

    # Admission

    @asynccontextmanager
    async def _admit(self) -> AsyncIterator[None]:
        if self._gate.locked():
            logger.debug(f"Concurrency limit reached ({self.config.concurrency_limit}), waiting for a slot")
        if self.config.acquire_timeout is None:
            await self._gate.acquire()
        else:
            async with asyncio.timeout(self.config.acquire_timeout):
                await self._gate.acquire()
        self._in_flight += 1
        try:
            yield
        finally:
            self._in_flight -= 1
            self._gate.release()

    async def _call(self, bucket: str | None, fn: Callable[[str, str], Awaitable[T]]) -> T:
        _bucket = self.config.resolve_bucket(bucket)
        token = await self.get_token()
        async with self._admit():
            return await fn(token, _bucket)

    # Objects

    async def info(self, name: str, *, bucket: str | None = None) -> GCSObject:
        """Fetch the metadata of an object."""
        return await self._call(
            bucket, lambda token, _bucket: gcs_object_info(self.http_client, token, _bucket, name, base_url=self.base_url)
        )

    async def download(self, name: str, *, bucket: str | None = None) -> bytes:
        """Download the content of an object."""
        return await self._call(
            bucket, lambda token, _bucket: gcs_download(self.http_client, token, _bucket, name, base_url=self.base_url)
        )

    async def upload(
        self, name: str, data: bytes, *, bucket: str | None = None, **kwargs: Unpack[GCSObjectParams]
    ) -> GCSObject:
        """Upload an object."""
        return await self._call(
            bucket,
            lambda token, _bucket: gcs_upload(
                self.http_client, token, _bucket, name, data, upload_url=self.upload_url, **kwargs
            ),
        )

    async def upload_file(
        self, file: Path, name: str | None = None, *, bucket: str | None = None, **kwargs: Unpack[GCSObjectParams]
    ) -> GCSObject:
        """Upload a local file, named after the file when `name` is not given."""
        _name = name or file.name
        return await self._call(
            bucket,
            lambda token, _bucket: gcs_upload_file(
                self.http_client, token, _bucket, file, _name, upload_url=self.upload_url, **kwargs
            ),
        )

    async def delete(self, name: str, *, bucket: str | None = None) -> bool:
        """Delete an object."""
        return await self._call(
            bucket,
            lambda token, _bucket: gcs_delete_object(self.http_client, token, _bucket, name, base_url=self.base_url),
        )

    async def list_objects(self, *, bucket: str | None = None) -> list[GCSObject]:
        """List the objects of a bucket."""
        return await self._call(
            bucket, lambda token, _bucket: gcs_list_objects(self.http_client, token, _bucket, base_url=self.base_url)
        )

    # Buckets

    async def info_bucket(self, *, bucket: str | None = None) -> GCSBucket:
        """Fetch the metadata of a bucket."""
        return await self._call(
            bucket, lambda token, _bucket: gcs_bucket_info(self.http_client, token, _bucket, base_url=self.base_url)
        )

    async def update_bucket(self, data: dict[str, Any], *, bucket: str | None = None) -> GCSBucket:
        """Patch the metadata of a bucket."""
        return await self._call(
            bucket,
            lambda token, _bucket: gcs_update_bucket(self.http_client, token, _bucket, data, base_url=self.base_url),
        )


def create_session(
    config: SessionConfig | None = None, *, http_client: niquests.AsyncSession | None = None
) -> GCSSession:
    """Create a session, reading the configuration from the environment when `config` is None."""
    _config = config if config is not None else SessionConfig()
    if http_client is None:
        return GCSSession(_config)
    return GCSSession(_config, http_client=http_client)
