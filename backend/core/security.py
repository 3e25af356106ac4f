# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Central security module.  All cryptographic primitives live here.  No other
module should touch raw crypto directly.

Responsibilities
----------------
1. Password hashing / verification          (passlib pbkdf2_sha256)
2. JWT minting / verification               (PyJWT / HS256)
3. Opaque single-use values                 (activation links, reset tickets)
"""

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum

import jwt as _jwt        # PyJWT
from passlib.hash import pbkdf2_sha256 as _pbkdf2  # pure Python, no binary deps

from core.errors import ConfigError, InvalidTokenError

# ---------------------------------------------------------------------------
# 1.  pbkdf2_sha256 – password hashing  (pure Python, no glibc constraint)
# ---------------------------------------------------------------------------
# passlib embeds the salt inside the hash string, so the digest is the only
# thing the directory has to store.
# ---------------------------------------------------------------------------


class Hasher:
    """One-way salted password hashing."""

    def __init__(self, rounds: int = 600_000) -> None:
        self._scheme = _pbkdf2.using(rounds=rounds)

    def hash(self, plain: str) -> str:
        """Return a full passlib hash string, e.g. ``"$pbkdf2-sha256$..."``."""
        return self._scheme.hash(plain)

    def matches(self, plain: str, digest: str) -> bool:
        """Constant-time verification of *plain* against a stored digest."""
        return self._scheme.verify(plain, digest)


# ---------------------------------------------------------------------------
# 2.  JWT – access and refresh tokens
# ---------------------------------------------------------------------------
# Each kind is signed with its own secret *and* carries a ``typ`` claim, so a
# refresh token is rejected as an access token even if an operator configured
# the same secret twice.
# ---------------------------------------------------------------------------


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class Signer:
    """Mints and verifies signed, time-bounded identity assertions."""

    def __init__(self, access_secret: str, refresh_secret: str, algorithm: str = "HS256") -> None:
        self._secrets = {
            TokenKind.ACCESS: access_secret,
            TokenKind.REFRESH: refresh_secret,
        }
        self._algorithm = algorithm

    @classmethod
    def from_settings(cls, settings) -> "Signer":
        """
        Build the process-wide signer.  Called once at startup; a missing
        secret stops the application from starting.
        """
        signer = cls(
            settings.jwt_access_secret,
            settings.jwt_refresh_secret,
            algorithm=settings.jwt_algorithm,
        )
        for kind in TokenKind:
            signer._secret(kind)
        return signer

    def _secret(self, kind: TokenKind) -> str:
        secret = self._secrets[kind]
        if not secret:
            raise ConfigError(f"JWT_{kind.value.upper()}_SECRET is not set")
        return secret

    def mint(self, payload: dict, kind: TokenKind, ttl: timedelta) -> str:
        """
        Sign *payload* with the secret selected by *kind*.

        ``exp``, ``iat``, ``typ`` and a random ``jti`` are added, so two
        tokens minted for the same user in the same second still differ.
        """
        secret = self._secret(kind)
        now = datetime.now(timezone.utc)
        to_encode = payload.copy()
        to_encode.update(
            {
                "exp": now + ttl,
                "iat": now,
                "typ": kind.value,
                "jti": uuid.uuid4().hex,
            }
        )
        return _jwt.encode(to_encode, secret, algorithm=self._algorithm)

    def verify(self, token: str, kind: TokenKind) -> dict:
        """
        Decode and verify a token.  Raises :class:`InvalidTokenError` on any
        failure (expired, bad signature, malformed, wrong kind).
        """
        secret = self._secret(kind)
        try:
            claims = _jwt.decode(
                token,
                secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat"]},
            )
        except _jwt.PyJWTError as exc:
            raise InvalidTokenError(str(exc)) from exc
        if claims.get("typ") != kind.value:
            raise InvalidTokenError(f"expected a {kind.value} token")
        return claims


# ---------------------------------------------------------------------------
# 3.  Opaque single-use values
# ---------------------------------------------------------------------------


def new_activation_link() -> str:
    """A fresh activation link id (UUID4 string)."""
    return str(uuid.uuid4())


def new_reset_ticket() -> str:
    """A fresh, unguessable password-reset ticket."""
    return secrets.token_urlsafe(32)
