from __future__ import annotations

import logging
from typing import List, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.credential_store import CredentialStore
from models.schemas.user import UserCreateSchema, UserUpdateSchema
from models.user import Role, User
from services.auth import load_or_raise
from services.errors import ConflictError, ForbiddenError, InternalError, NotFoundError
from utils.permissions import can_act_on, has_role
from utils.security import hash_password

logger = logging.getLogger(__name__)

MAX_LIMIT = 100


class UserService:
    """User CRUD. `actor` is the authenticated user making the call."""

    def __init__(self, store: CredentialStore):
        self.store = store
        self._create_schema = UserCreateSchema()
        self._update_schema = UserUpdateSchema()

    def list_users(self, page: int = 1, limit: int = 20) -> Tuple[List[User], int, int, int]:
        page = max(page, 1)
        limit = max(1, min(limit, MAX_LIMIT))
        rows, total = self.store.list_users(page, limit)
        return rows, total, page, limit

    def create_user(self, payload: dict) -> User:
        data = load_or_raise(self._create_schema, payload)
        if self.store.find_user_by_email(data["email"], include_deleted=True):
            raise ConflictError("Email already exists")
        user = self._write(
            self.store.insert_user,
            name=data["name"],
            email=data["email"],
            password_hash=hash_password(data["password"]),
            role=Role(data["role"]),
        )
        logger.info("user %s created", user.id)
        return user

    def get_user(self, actor: User, user_id: str) -> User:
        self._check_access(actor, user_id)
        return self._get_or_404(user_id)

    def update_user(self, actor: User, user_id: str, payload: dict) -> User:
        self._check_access(actor, user_id)
        user = self._get_or_404(user_id)
        data = load_or_raise(self._update_schema, payload)

        if "role" in data:
            if not has_role(actor.role, Role.ADMIN):
                raise ForbiddenError("Only admins can change roles")
            data["role"] = Role(data["role"])
        if "email" in data and data["email"] != user.email:
            if self.store.find_user_by_email(data["email"], include_deleted=True):
                raise ConflictError("Email already exists")
        if "password" in data:
            data["password_hash"] = hash_password(data.pop("password"))

        return self._write(self.store.update_user, user, **data)

    def delete_user(self, user_id: str) -> None:
        user = self._get_or_404(user_id)
        self._write(self.store.soft_delete_user, user)
        logger.info("user %s soft-deleted", user_id)

    def _check_access(self, actor: User, user_id: str) -> None:
        if not can_act_on(actor.role, actor.id, user_id):
            raise ForbiddenError()

    def _get_or_404(self, user_id: str) -> User:
        user = self.store.find_user_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _write(self, fn, *args, **kwargs):
        try:
            result = fn(*args, **kwargs)
            self.store.save()
        except IntegrityError as exc:
            self.store.rollback()
            raise ConflictError("Email already exists") from exc
        except SQLAlchemyError as exc:
            self.store.rollback()
            raise InternalError() from exc
        return result
