"""
Flat role checks. No policy engine: a role either matches or it doesn't.
"""
from __future__ import annotations

from typing import Optional

from models.user import Role


def _role_value(role) -> str:
    return role.value if isinstance(role, Role) else str(role)


def has_role(role, required_role) -> bool:
    return _role_value(role) == _role_value(required_role)


def can_act_on(role, subject_id: Optional[str], owner_id: Optional[str]) -> bool:
    """Admins act on anything; everyone else only on their own resource."""
    if has_role(role, Role.ADMIN):
        return True
    return subject_id is not None and subject_id == owner_id
