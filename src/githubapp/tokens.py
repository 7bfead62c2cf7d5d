"""GitHub App JWT token source.

GitHub authenticates an app with a short-lived RS256 JWT whose issuer is the
app id. GitHub rejects tokens that live longer than 10 minutes, so requested
lifetimes are clamped to that.

See https://docs.github.com/en/apps/creating-github-apps/authenticating-with-a-github-app
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Protocol

import httpx
import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.hazmat.primitives.serialization import load_pem_private_key

from .exceptions import ConfigurationError, SigningError

logger = logging.getLogger(__name__)

# Maximum lifetime GitHub accepts for an app JWT
MAX_EXPIRE = timedelta(minutes=10)

# Tokens are treated as expired this long before their real expiry
EXPIRY_DELTA = timedelta(seconds=10)

# "iat" is backdated to tolerate clock drift with GitHub
IAT_SKEW = timedelta(seconds=10)

JWT_HEADERS = {"alg": "RS256", "typ": "JWT"}

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def effective_lifetime(expire: timedelta) -> timedelta:
    """Clamp a requested lifetime to (0, 10 minutes]."""
    if expire <= timedelta(0) or expire > MAX_EXPIRE:
        return MAX_EXPIRE
    return expire


def load_rsa_private_key(pem: bytes | str) -> RSAPrivateKey:
    """Parse a PEM encoded RSA private key or raise ConfigurationError."""
    if isinstance(pem, str):
        pem = pem.encode()
    try:
        key = load_pem_private_key(pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise ConfigurationError(f"invalid private key: {e}") from e
    if not isinstance(key, RSAPrivateKey):
        raise ConfigurationError(
            f"private key must be an RSA key, got {type(key).__name__}"
        )
    return key


@dataclass(frozen=True)
class Token:
    """A bearer credential and the moment it stops being usable."""

    access_token: str
    expiry: datetime
    token_type: str = "bearer"

    def valid(self, now: datetime | None = None) -> bool:
        if not self.access_token:
            return False
        now = now or utcnow()
        return now < self.expiry - EXPIRY_DELTA

    @property
    def authorization(self) -> str:
        """Value for the Authorization header."""
        return f"{self.token_type.capitalize()} {self.access_token}"


class TokenSource(Protocol):
    """Anything that can hand out a token on demand."""

    def token(self) -> Token: ...


class AppTokenSource:
    """Signs a fresh app JWT on every call."""

    def __init__(
        self,
        app_id: str,
        private_key: RSAPrivateKey,
        expire: timedelta = timedelta(0),
        clock: Clock = utcnow,
    ):
        self.app_id = app_id
        self.expire = effective_lifetime(expire)
        self._key = private_key
        self._clock = clock

    def token(self) -> Token:
        now = self._clock()
        expiry = now + self.expire
        claims = {
            "iss": self.app_id,
            "iat": int((now - IAT_SKEW).timestamp()),
            "exp": int(expiry.timestamp()),
        }
        try:
            encoded = jwt.encode(
                claims, self._key, algorithm="RS256", headers=JWT_HEADERS
            )
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            raise SigningError(f"signing app token: {e}") from e
        logger.debug(f"Signed app JWT for app {self.app_id} (expires {expiry})")
        return Token(access_token=encoded, expiry=expiry)


class ReuseTokenSource:
    """Caches the token of another source until it expires."""

    def __init__(
        self,
        source: TokenSource,
        token: Token | None = None,
        clock: Clock = utcnow,
    ):
        self._source = source
        self._token = token
        self._clock = clock
        self._lock = threading.Lock()

    def token(self) -> Token:
        with self._lock:
            if self._token is not None and self._token.valid(self._clock()):
                return self._token
            self._token = self._source.token()
            return self._token


def new_app_token_source(
    app_id: str,
    private_key: bytes | str,
    expire: timedelta = timedelta(0),
    clock: Clock = utcnow,
) -> ReuseTokenSource:
    """Build the reusing app token source. Fails fast on a bad key."""
    key = load_rsa_private_key(private_key)
    return ReuseTokenSource(
        AppTokenSource(app_id, key, expire=expire, clock=clock), clock=clock
    )


class BearerAuth(httpx.Auth):
    """httpx auth that sets the Authorization header from a token source."""

    def __init__(self, source: TokenSource):
        self.source = source

    def auth_flow(self, request: httpx.Request):
        request.headers["Authorization"] = self.source.token().authorization
        yield request
