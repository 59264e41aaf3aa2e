from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from utils.tokens import (
    InvalidTokenError,
    TokenClass,
    TokenCodec,
    TokenExpiredError,
    TokenSettings,
)


def test_settings_reject_shared_secret() -> None:
    with pytest.raises(ValueError):
        TokenSettings(access_secret="same", refresh_secret="same")


def test_settings_from_flask_style_config() -> None:
    settings = TokenSettings.from_config(
        {
            "JWT_ACCESS_SECRET": "a",
            "JWT_REFRESH_SECRET": "r",
            "ACCESS_TOKEN_EXPIRES": timedelta(minutes=5),
        }
    )
    assert settings.access_ttl == timedelta(minutes=5)
    assert settings.refresh_ttl == timedelta(days=7)
    assert settings.algorithm == "HS256"


def test_sign_and_verify_refresh_claims(codec: TokenCodec) -> None:
    token = codec.sign("user-1", "admin", TokenClass.REFRESH)
    claims = codec.verify(token, TokenClass.REFRESH)

    assert claims.subject_id == "user-1"
    assert claims.role == "admin"
    assert claims.token_class is TokenClass.REFRESH
    assert claims.expires_at - claims.issued_at == timedelta(days=7)


def test_access_ttl_defaults_to_one_hour(codec: TokenCodec) -> None:
    claims = codec.verify(codec.sign("u", "user", TokenClass.ACCESS), TokenClass.ACCESS)
    assert claims.expires_at - claims.issued_at == timedelta(hours=1)


def test_tokens_minted_together_differ(codec: TokenCodec) -> None:
    now = datetime.now(timezone.utc)
    first = codec.sign("u", "user", TokenClass.REFRESH, now=now)
    second = codec.sign("u", "user", TokenClass.REFRESH, now=now)
    assert first != second


def test_access_token_is_not_a_refresh_token(codec: TokenCodec) -> None:
    token = codec.sign("u", "user", TokenClass.ACCESS)
    with pytest.raises(InvalidTokenError):
        codec.verify(token, TokenClass.REFRESH)


def test_wrong_type_claim_with_right_secret(settings: TokenSettings, codec: TokenCodec) -> None:
    claims = codec.claims_for("u", "user", TokenClass.ACCESS)
    payload = claims.to_payload(settings.issuer)
    token = jwt.encode(payload, settings.refresh_secret, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        codec.verify(token, TokenClass.REFRESH)


def test_expired_token(codec: TokenCodec) -> None:
    long_ago = datetime.now(timezone.utc) - timedelta(days=8)
    token = codec.sign("u", "user", TokenClass.REFRESH, now=long_ago)
    with pytest.raises(TokenExpiredError):
        codec.verify(token, TokenClass.REFRESH)


def test_tampered_token(codec: TokenCodec) -> None:
    token = codec.sign("u", "user", TokenClass.ACCESS)
    with pytest.raises(InvalidTokenError):
        codec.verify(token[:-2] + ("A" if token[-2] != "A" else "B") + token[-1], TokenClass.ACCESS)


def test_missing_subject_is_rejected(settings: TokenSettings, codec: TokenCodec) -> None:
    payload = codec.claims_for("u", "user", TokenClass.REFRESH).to_payload(settings.issuer)
    del payload["sub"]
    token = jwt.encode(payload, settings.refresh_secret, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        codec.verify(token, TokenClass.REFRESH)
