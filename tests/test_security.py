from __future__ import annotations

from models.user import Role
from utils.permissions import can_act_on, has_role
from utils.security import hash_password, hash_token, verify_password


def test_password_hash_roundtrip() -> None:
    hashed = hash_password("secret1")
    assert hashed != "secret1"
    assert verify_password("secret1", hashed)
    assert not verify_password("secret2", hashed)


def test_verify_password_with_garbage_hash() -> None:
    assert not verify_password("secret1", "not-an-argon2-hash")


def test_hash_token_is_deterministic_hex() -> None:
    digest = hash_token("some.jwt.value")
    assert digest == hash_token("some.jwt.value")
    assert digest != hash_token("some.jwt.valuf")
    assert len(digest) == 64
    int(digest, 16)


def test_has_role_is_flat_comparison() -> None:
    assert has_role("admin", Role.ADMIN)
    assert has_role(Role.USER, "user")
    assert not has_role("user", Role.ADMIN)
    assert not has_role(Role.ADMIN, "user")


def test_can_act_on_self_or_admin() -> None:
    assert can_act_on(Role.USER, "u1", "u1")
    assert not can_act_on(Role.USER, "u1", "u2")
    assert can_act_on(Role.ADMIN, "u1", "u2")
    assert not can_act_on("user", None, None)
