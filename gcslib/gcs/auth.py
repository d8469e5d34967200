from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

try:
    import jwt
except ImportError:
    raise ImportError('Please install pyjwt[crypto] or gcslib with "gcs" to use this module')

from .errors import SigningError

if TYPE_CHECKING:
    import niquests

__all__ = (
    "CLOCK_SKEW",
    "Credential",
    "DEFAULT_SCOPE",
    "JWT_BEARER_GRANT",
    "TOKEN_LIFETIME",
    "create_token",
    "exchange_token",
)

logger = logging.getLogger("gcslib")

DEFAULT_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"

# Seconds
TOKEN_LIFETIME = 3600
CLOCK_SKEW = 30


@dataclass(frozen=True)
class Credential:
    """A bearer token and the epoch second at which it stops being accepted."""

    token: str
    expires_at: int

    def expires_in(self, now: float) -> float:
        return self.expires_at - now


def create_token(
    client_email: str,
    private_key: str,
    *,
    scope: str = DEFAULT_SCOPE,
    algorithm: str = "RS256",
    audience: str | None = None,
    now: float | None = None,
) -> Credential:
    """
    Sign a self-issued bearer assertion for `client_email`.

    The assertion is valid for one hour and its `iat` is backdated by 30 seconds to
    tolerate clock drift with the remote service. `algorithm` must match the key
    (RS256 for an RSA key, ES256 for a P-256 key...), any mismatch or malformed key
    raises a SigningError.
    """
    _now = int(now if now is not None else time.time())
    claims: dict = {
        "iss": client_email,
        "sub": client_email,
        "scope": scope,
        "iat": _now - CLOCK_SKEW,
        "exp": _now + TOKEN_LIFETIME,
    }
    if audience is not None:
        claims["aud"] = audience
    try:
        token = jwt.encode(claims, private_key, algorithm=algorithm)
    except (jwt.PyJWTError, NotImplementedError, ValueError, TypeError) as e:
        raise SigningError(f"Could not sign token for {client_email!r} with {algorithm}: {e}") from e
    return Credential(token=token, expires_at=claims["exp"])


async def exchange_token(
    client: niquests.AsyncSession,
    assertion: str,
    token_uri: str,
    *,
    now: float | None = None,
) -> Credential:
    """
    Redeem a signed assertion for an access token at an OAuth2 token endpoint.

    See: https://datatracker.ietf.org/doc/html/rfc7523#section-2.1
    """
    _now = int(now if now is not None else time.time())
    resp = await client.post(token_uri, data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion})
    if resp.status_code != 200:
        raise SigningError(f"Token exchange failed: {resp.reason or resp.status_code}")
    data = resp.json()
    access_token = data.get("access_token")
    if not access_token:
        raise SigningError("Token exchange response has no access_token")
    logger.debug(f"Exchanged assertion at {token_uri!r}")
    return Credential(token=access_token, expires_at=_now + int(data.get("expires_in", TOKEN_LIFETIME)))
