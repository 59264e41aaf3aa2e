"""
CredentialStore: the queries the auth and user services need, on top of the
DBStorage session.

Mutating methods only stage changes. Callers decide when to commit with
save(), so a rotation (revoke old row + insert new row) lands in one
transaction.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import delete, update

from models import storage
from models.base_model import utcnow
from models.refresh_token import RefreshToken
from models.user import User


def normalize_email(email: str) -> str:
    return email.strip().lower()


class CredentialStore:

    # users

    def find_user_by_email(self, email: str, include_deleted: bool = False) -> Optional[User]:
        query = storage.get_session().query(User).filter(User.email == normalize_email(email))
        if not include_deleted:
            query = query.filter(User.is_deleted.is_(False))
        return query.first()

    def find_user_by_id(self, user_id: str) -> Optional[User]:
        user = storage.get(User, user_id)
        if user is None or user.is_deleted:
            return None
        return user

    def insert_user(self, **fields) -> User:
        fields["email"] = normalize_email(fields["email"])
        user = User(**fields)
        storage.new(user)
        storage.get_session().flush()
        return user

    def update_user(self, user: User, **fields) -> User:
        if "email" in fields:
            fields["email"] = normalize_email(fields["email"])
        for key, value in fields.items():
            setattr(user, key, value)
        user.updated_at = utcnow()
        storage.new(user)
        storage.get_session().flush()
        return user

    def soft_delete_user(self, user: User) -> None:
        user.soft_delete()

    def list_users(self, page: int, limit: int) -> Tuple[List[User], int]:
        query = storage.get_session().query(User).filter(User.is_deleted.is_(False))
        total = query.count()
        rows = (
            query.order_by(User.created_at.desc(), User.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return rows, total

    # refresh tokens

    def find_refresh_token_by_hash(self, token_hash: str) -> Optional[RefreshToken]:
        return (
            storage.get_session()
            .query(RefreshToken)
            .filter(RefreshToken.token_hash == token_hash)
            .first()
        )

    def insert_refresh_token(self, **fields) -> RefreshToken:
        record = RefreshToken(revoked=False, **fields)
        storage.new(record)
        storage.get_session().flush()
        return record

    def update_refresh_token(
        self,
        token_hash: str,
        revoked: Optional[bool] = None,
        replaced_by_hash: Optional[str] = None,
        only_if_unrevoked: bool = True,
    ) -> bool:
        """
        Update a refresh token row, by default only while it is still unrevoked.

        Returns False when no row matched: unknown hash, or (with
        only_if_unrevoked) a row somebody else revoked first. The WHERE clause
        is the compare-and-set, so two racing rotations cannot both win.
        """
        values = {"updated_at": utcnow()}
        if revoked is not None:
            values["revoked"] = revoked
        if replaced_by_hash is not None:
            values["replaced_by_hash"] = replaced_by_hash

        stmt = update(RefreshToken).where(RefreshToken.token_hash == token_hash)
        if only_if_unrevoked:
            stmt = stmt.where(RefreshToken.revoked == False)  # noqa: E712
        result = storage.get_session().execute(
            stmt.values(**values).execution_options(synchronize_session="evaluate")
        )
        return result.rowcount == 1

    def purge_expired_refresh_tokens(self, now: Optional[datetime] = None) -> int:
        """Hard delete refresh tokens past their expiry. Returns the row count."""
        now = now or utcnow()
        result = storage.get_session().execute(
            delete(RefreshToken)
            .where(RefreshToken.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # transactions

    def save(self) -> None:
        storage.save()

    def rollback(self) -> None:
        storage.rollback()
