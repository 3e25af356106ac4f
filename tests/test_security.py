"""Tests for the Signer and Hasher primitives."""

from datetime import timedelta
from types import SimpleNamespace

import jwt
import pytest

from conftest import ACCESS_SECRET, REFRESH_SECRET
from core.errors import ConfigError, InvalidTokenError
from core.security import Hasher, Signer, TokenKind, new_activation_link, new_reset_ticket

_CLAIMS = {"id": "user-1", "email": "a@x.com"}


class TestSigner:
    def test_verify_returns_payload(self, signer):
        token = signer.mint(_CLAIMS, TokenKind.ACCESS, timedelta(minutes=15))
        claims = signer.verify(token, TokenKind.ACCESS)
        assert claims["id"] == "user-1"
        assert claims["email"] == "a@x.com"
        assert claims["typ"] == "access"

    def test_access_token_uses_access_secret(self, signer):
        token = signer.mint(_CLAIMS, TokenKind.ACCESS, timedelta(minutes=15))
        payload = jwt.decode(token, ACCESS_SECRET, algorithms=["HS256"])
        assert payload["id"] == "user-1"

    def test_expiry_matches_ttl(self, signer):
        token = signer.mint(_CLAIMS, TokenKind.REFRESH, timedelta(days=30))
        payload = jwt.decode(token, REFRESH_SECRET, algorithms=["HS256"])
        assert payload["exp"] - payload["iat"] == 30 * 24 * 60 * 60

    def test_kinds_are_not_interchangeable(self, signer):
        refresh = signer.mint(_CLAIMS, TokenKind.REFRESH, timedelta(days=30))
        access = signer.mint(_CLAIMS, TokenKind.ACCESS, timedelta(minutes=15))
        with pytest.raises(InvalidTokenError):
            signer.verify(refresh, TokenKind.ACCESS)
        with pytest.raises(InvalidTokenError):
            signer.verify(access, TokenKind.REFRESH)

    def test_same_secret_still_rejects_wrong_kind(self):
        signer = Signer("shared-secret-" + "x" * 32, "shared-secret-" + "x" * 32)
        refresh = signer.mint(_CLAIMS, TokenKind.REFRESH, timedelta(days=1))
        with pytest.raises(InvalidTokenError):
            signer.verify(refresh, TokenKind.ACCESS)

    def test_expired_token_rejected(self, signer):
        token = signer.mint(_CLAIMS, TokenKind.ACCESS, timedelta(seconds=-30))
        with pytest.raises(InvalidTokenError):
            signer.verify(token, TokenKind.ACCESS)

    def test_token_signed_elsewhere_rejected(self, signer):
        foreign = Signer("other-access-" + "x" * 32, "other-refresh-" + "x" * 32).mint(_CLAIMS, TokenKind.ACCESS, timedelta(minutes=15))
        with pytest.raises(InvalidTokenError):
            signer.verify(foreign, TokenKind.ACCESS)

    def test_garbage_rejected(self, signer):
        with pytest.raises(InvalidTokenError):
            signer.verify("not-a-jwt", TokenKind.REFRESH)

    def test_tokens_minted_back_to_back_differ(self, signer):
        a = signer.mint(_CLAIMS, TokenKind.REFRESH, timedelta(days=30))
        b = signer.mint(_CLAIMS, TokenKind.REFRESH, timedelta(days=30))
        assert a != b

    def test_missing_secret_raises_config_error(self):
        signer = Signer(ACCESS_SECRET, "")
        with pytest.raises(ConfigError):
            signer.mint(_CLAIMS, TokenKind.REFRESH, timedelta(days=1))
        # the access side still works
        signer.mint(_CLAIMS, TokenKind.ACCESS, timedelta(minutes=1))

    def test_from_settings_refuses_missing_secret(self):
        cfg = SimpleNamespace(jwt_access_secret=ACCESS_SECRET, jwt_refresh_secret="", jwt_algorithm="HS256")
        with pytest.raises(ConfigError):
            Signer.from_settings(cfg)

    def test_from_settings(self):
        cfg = SimpleNamespace(jwt_access_secret=ACCESS_SECRET, jwt_refresh_secret=REFRESH_SECRET, jwt_algorithm="HS256")
        signer = Signer.from_settings(cfg)
        token = signer.mint(_CLAIMS, TokenKind.ACCESS, timedelta(minutes=1))
        assert signer.verify(token, TokenKind.ACCESS)["id"] == "user-1"


class TestHasher:
    def test_hash_is_salted_and_verifiable(self, hasher):
        first = hasher.hash("Secret123")
        second = hasher.hash("Secret123")
        assert first != second
        assert first.startswith("$pbkdf2-sha256$")
        assert hasher.matches("Secret123", first)
        assert hasher.matches("Secret123", second)

    def test_wrong_password_does_not_match(self, hasher):
        digest = hasher.hash("Secret123")
        assert not hasher.matches("Secret124", digest)

    def test_rounds_are_configurable(self):
        assert "$1000$" in Hasher(rounds=1000).hash("pw")


def test_opaque_values_are_unique():
    assert len({new_activation_link() for _ in range(50)}) == 50
    assert len({new_reset_ticket() for _ in range(50)}) == 50
