"""
Authentication protocol: register, login, refresh-token rotation, logout.

Refresh tokens are stored only as SHA-256 hashes. Every successful refresh
revokes the presented token (pointing it at its replacement) and issues a
new pair; a revoked token presented again looks exactly like an unknown one.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from marshmallow import ValidationError as SchemaValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.base_model import utcnow
from models.credential_store import CredentialStore
from models.schemas.user import RefreshTokenSchema, UserCreateSchema, UserLoginSchema
from models.user import Role, User
from services.errors import (
    AuthError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from utils.security import burn_password_check, hash_password, hash_token, verify_password
from utils.tokens import TokenClass, TokenCodec, TokenError

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_REFRESH_TOKEN = "Invalid refresh token"
REVOKED_OR_NOT_FOUND = "Refresh token revoked or not found"
REFRESH_TOKEN_EXPIRED = "Refresh token expired"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class AuthResult:
    user: User
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class _MintedTokens:
    access_token: str
    refresh_token: str
    refresh_hash: str
    refresh_expires_at: datetime


def load_or_raise(schema, payload):
    """Run a marshmallow schema, turning its errors into our ValidationError."""
    try:
        return schema.load(payload or {})
    except SchemaValidationError as err:
        raise ValidationError("Invalid input", details=err.messages) from err


class AuthService:

    def __init__(
        self,
        store: CredentialStore,
        codec: TokenCodec,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.codec = codec
        self.clock = clock
        self._create_schema = UserCreateSchema()
        self._login_schema = UserLoginSchema()
        self._refresh_schema = RefreshTokenSchema()

    def register(self, payload: dict) -> AuthResult:
        data = load_or_raise(self._create_schema, payload)

        # includes soft-deleted rows: the unique index still holds their email
        if self.store.find_user_by_email(data["email"], include_deleted=True):
            raise ConflictError("Email already exists")

        try:
            user = self.store.insert_user(
                name=data["name"],
                email=data["email"],
                password_hash=hash_password(data["password"]),
                role=Role(data["role"]),
            )
            tokens = self._issue(user)
        except IntegrityError as exc:
            self.store.rollback()
            raise ConflictError("Email already exists") from exc
        except SQLAlchemyError as exc:
            self.store.rollback()
            raise InternalError() from exc
        self._commit()

        logger.info("registered user %s", user.id)
        return AuthResult(user, tokens.access_token, tokens.refresh_token)

    def login(self, payload: dict) -> AuthResult:
        data = load_or_raise(self._login_schema, payload)

        user = self.store.find_user_by_email(data["email"])
        if user is None:
            burn_password_check(data["password"])
            logger.info("login failed")
            raise AuthError(INVALID_CREDENTIALS)
        if not verify_password(data["password"], user.password_hash):
            logger.info("login failed")
            raise AuthError(INVALID_CREDENTIALS)

        # a new session; refresh tokens held by other devices stay valid
        tokens = self._with_rollback(self._issue, user)
        self._commit()
        return AuthResult(user, tokens.access_token, tokens.refresh_token)

    def refresh(self, raw_token: str) -> TokenPair:
        load_or_raise(self._refresh_schema, {"refresh_token": raw_token})

        try:
            claims = self.codec.verify(raw_token, TokenClass.REFRESH)
        except TokenError as exc:
            logger.info("refresh rejected: %s", exc)
            raise AuthError(INVALID_REFRESH_TOKEN) from exc
        if not claims.subject_id:
            raise AuthError(INVALID_REFRESH_TOKEN)

        old_hash = hash_token(raw_token)
        record = self.store.find_refresh_token_by_hash(old_hash)
        if record is None or record.revoked:
            logger.info("refresh rejected: token revoked or unknown")
            raise AuthError(REVOKED_OR_NOT_FOUND)
        if record.is_expired(self.clock()):
            raise AuthError(REFRESH_TOKEN_EXPIRED)

        user = self.store.find_user_by_id(claims.subject_id)
        if user is None:
            raise NotFoundError("User not found")

        tokens = self._with_rollback(self._rotate, old_hash, user)
        self._commit()
        return TokenPair(tokens.access_token, tokens.refresh_token)

    def logout(self, raw_token: Optional[str] = None) -> dict:
        if raw_token:
            # no-op for unknown or already revoked tokens; the caller never learns which
            self._with_rollback(self.store.update_refresh_token, hash_token(raw_token), revoked=True)
            self._commit()
        return {"ok": True}

    def _rotate(self, old_hash: str, user: User) -> _MintedTokens:
        tokens = self._mint(user)
        # revoke first; if another request already did, it won the rotation
        if not self.store.update_refresh_token(
            old_hash, revoked=True, replaced_by_hash=tokens.refresh_hash
        ):
            logger.info("refresh rejected: token rotated concurrently")
            raise AuthError(REVOKED_OR_NOT_FOUND)
        self._persist(user, tokens)
        return tokens

    def _issue(self, user: User) -> _MintedTokens:
        tokens = self._mint(user)
        self._persist(user, tokens)
        return tokens

    def _mint(self, user: User) -> _MintedTokens:
        now = self.clock()
        role = user.role.value if isinstance(user.role, Role) else str(user.role)
        access_token = self.codec.sign(user.id, role, TokenClass.ACCESS, now=now)
        refresh_claims = self.codec.claims_for(user.id, role, TokenClass.REFRESH, now=now)
        refresh_token = self.codec.encode(refresh_claims)
        return _MintedTokens(
            access_token=access_token,
            refresh_token=refresh_token,
            refresh_hash=hash_token(refresh_token),
            refresh_expires_at=refresh_claims.expires_at,
        )

    def _persist(self, user: User, tokens: _MintedTokens) -> None:
        self.store.insert_refresh_token(
            token_hash=tokens.refresh_hash,
            user_id=user.id,
            expires_at=tokens.refresh_expires_at,
        )

    def _with_rollback(self, fn, *args, **kwargs):
        """Run a staging step; any failure discards everything staged so far."""
        try:
            return fn(*args, **kwargs)
        except SQLAlchemyError as exc:
            self.store.rollback()
            raise InternalError() from exc
        except Exception:
            self.store.rollback()
            raise

    def _commit(self) -> None:
        try:
            self.store.save()
        except SQLAlchemyError as exc:
            # DBStorage.save already rolled back
            raise InternalError() from exc
