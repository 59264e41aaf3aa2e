"""
JWT access and refresh tokens via PyJWT.

Each token class has its own secret and lifetime, so the refresh secret can
never mint an access token and vice versa. Claims are a fixed set (see
TokenClaims); the "type" claim is checked on the way back in too.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Mapping, Optional

import jwt


class TokenClass(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenError(Exception):
    """Token could not be verified."""


class TokenExpiredError(TokenError):
    pass


class InvalidTokenError(TokenError):
    pass


@dataclass(frozen=True)
class TokenSettings:
    access_secret: str
    refresh_secret: str
    access_ttl: timedelta = timedelta(hours=1)
    refresh_ttl: timedelta = timedelta(days=7)
    algorithm: str = "HS256"
    issuer: str = "user-auth-api"

    def __post_init__(self):
        if not self.access_secret or not self.refresh_secret:
            raise ValueError("access and refresh secrets must be set")
        if self.access_secret == self.refresh_secret:
            raise ValueError("access and refresh tokens must use different secrets")

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "TokenSettings":
        """Build settings from a Flask-style config mapping."""
        return cls(
            access_secret=config["JWT_ACCESS_SECRET"],
            refresh_secret=config["JWT_REFRESH_SECRET"],
            access_ttl=config.get("ACCESS_TOKEN_EXPIRES", timedelta(hours=1)),
            refresh_ttl=config.get("REFRESH_TOKEN_EXPIRES", timedelta(days=7)),
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            issuer=config.get("JWT_ISSUER", "user-auth-api"),
        )

    def secret_for(self, token_class: TokenClass) -> str:
        if token_class is TokenClass.ACCESS:
            return self.access_secret
        return self.refresh_secret

    def ttl_for(self, token_class: TokenClass) -> timedelta:
        if token_class is TokenClass.ACCESS:
            return self.access_ttl
        return self.refresh_ttl


@dataclass(frozen=True)
class TokenClaims:
    subject_id: str
    role: str
    token_class: TokenClass
    issued_at: datetime
    expires_at: datetime
    token_id: str

    def to_payload(self, issuer: str) -> dict:
        return {
            "iss": issuer,
            "sub": self.subject_id,
            "role": self.role,
            "type": self.token_class.value,
            "iat": int(self.issued_at.timestamp()),
            "exp": int(self.expires_at.timestamp()),
            "jti": self.token_id,
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TokenClaims":
        return cls(
            subject_id=str(payload["sub"]),
            role=str(payload.get("role", "")),
            token_class=TokenClass(payload["type"]),
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            token_id=str(payload["jti"]),
        )


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


class TokenCodec:
    """Signs and verifies access/refresh JWTs for one TokenSettings."""

    def __init__(self, settings: TokenSettings):
        self.settings = settings

    def claims_for(
        self,
        subject_id: str,
        role: str,
        token_class: TokenClass,
        now: Optional[datetime] = None,
    ) -> TokenClaims:
        # whole seconds, so expires_at matches what "exp" will carry
        now = (now or datetime.now(timezone.utc)).replace(microsecond=0)
        return TokenClaims(
            subject_id=str(subject_id),
            role=role,
            token_class=token_class,
            issued_at=now,
            expires_at=now + self.settings.ttl_for(token_class),
            token_id=generate_jti(),
        )

    def encode(self, claims: TokenClaims) -> str:
        return jwt.encode(
            claims.to_payload(self.settings.issuer),
            self.settings.secret_for(claims.token_class),
            algorithm=self.settings.algorithm,
        )

    def sign(
        self,
        subject_id: str,
        role: str,
        token_class: TokenClass,
        now: Optional[datetime] = None,
    ) -> str:
        return self.encode(self.claims_for(subject_id, role, token_class, now=now))

    def verify(self, token: str, token_class: TokenClass) -> TokenClaims:
        """
        Decode and validate a JWT of the given class.
        Raises TokenExpiredError or InvalidTokenError.
        """
        try:
            payload = jwt.decode(
                token,
                self.settings.secret_for(token_class),
                algorithms=[self.settings.algorithm],
                issuer=self.settings.issuer,
                options={"require": ["exp", "iat", "sub", "jti"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError("Token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError(f"Invalid token: {exc}") from exc

        if payload.get("type") != token_class.value:
            raise InvalidTokenError("Wrong token type")
        if not payload.get("sub"):
            raise InvalidTokenError("Token has no subject")
        return TokenClaims.from_payload(payload)
