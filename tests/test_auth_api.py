from __future__ import annotations

from flask.testing import FlaskClient

ANN = {"name": "Ann", "email": "ann@x.com", "password": "secret1"}


def test_health(client: FlaskClient) -> None:
    r = client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.get_json()["status"] == "ok"


def test_end_to_end_session(client: FlaskClient) -> None:
    reg = client.post("/api/v1/auth/register", json=ANN)
    assert reg.status_code == 201
    body = reg.get_json()
    assert body["access_token"] and body["refresh_token"]
    assert body["data"]["role"] == "user"
    assert body["data"]["email"] == "ann@x.com"
    assert "password" not in body["data"] and "password_hash" not in body["data"]

    wrong = client.post("/api/v1/auth/login", json={"email": "ann@x.com", "password": "wrong12"})
    unknown = client.post("/api/v1/auth/login", json={"email": "zzz@x.com", "password": "secret1"})
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.get_json() == unknown.get_json()

    rotated = client.post("/api/v1/auth/refresh", json={"refresh_token": body["refresh_token"]})
    assert rotated.status_code == 200
    pair = rotated.get_json()
    assert pair["access_token"] and pair["refresh_token"]
    assert pair["refresh_token"] != body["refresh_token"]

    replay = client.post("/api/v1/auth/refresh", json={"refresh_token": body["refresh_token"]})
    assert replay.status_code == 401
    assert replay.get_json()["error"] == "UNAUTHORIZED"


def test_register_conflict_and_validation(client: FlaskClient) -> None:
    assert client.post("/api/v1/auth/register", json=ANN).status_code == 201

    dup = client.post("/api/v1/auth/register", json={**ANN, "email": "Ann@X.COM"})
    assert dup.status_code == 409
    assert dup.get_json()["error"] == "CONFLICT"

    bad = client.post("/api/v1/auth/register", json={"name": "A", "email": "x", "password": "1"})
    assert bad.status_code == 422
    details = bad.get_json()["details"]
    assert set(details) == {"name", "email", "password"}


def test_login_returns_tokens_and_user(client: FlaskClient) -> None:
    client.post("/api/v1/auth/register", json=ANN)
    r = client.post("/api/v1/auth/login", json={"email": "ann@x.com", "password": "secret1"})
    assert r.status_code == 200
    body = r.get_json()
    assert body["token_type"] == "bearer"
    assert body["expires_in"] == 3600
    assert body["data"]["name"] == "Ann"


def test_refresh_without_token_is_a_validation_error(client: FlaskClient) -> None:
    r = client.post("/api/v1/auth/refresh", json={})
    assert r.status_code == 422


def test_refresh_with_access_token(client: FlaskClient) -> None:
    access = client.post("/api/v1/auth/register", json=ANN).get_json()["access_token"]
    r = client.post("/api/v1/auth/refresh", json={"refresh_token": access})
    assert r.status_code == 401


def test_logout_always_ok(client: FlaskClient) -> None:
    refresh = client.post("/api/v1/auth/register", json=ANN).get_json()["refresh_token"]

    for _ in range(2):
        r = client.post("/api/v1/auth/logout", json={"refresh_token": refresh})
        assert r.status_code == 200
        assert r.get_json() == {"ok": True}

    assert client.post("/api/v1/auth/logout").get_json() == {"ok": True}
    r = client.post("/api/v1/auth/refresh", json={"refresh_token": refresh})
    assert r.status_code == 401


def test_logout_reads_header(client: FlaskClient) -> None:
    refresh = client.post("/api/v1/auth/register", json=ANN).get_json()["refresh_token"]
    r = client.post("/api/v1/auth/logout", headers={"X-Refresh-Token": refresh})
    assert r.status_code == 200
    assert client.post("/api/v1/auth/refresh", json={"refresh_token": refresh}).status_code == 401


def test_me(client: FlaskClient) -> None:
    access = client.post("/api/v1/auth/register", json=ANN).get_json()["access_token"]

    r = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {access}"})
    assert r.status_code == 200
    assert r.get_json()["data"]["email"] == "ann@x.com"

    assert client.get("/api/v1/auth/me").status_code == 401
    r = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401


def test_refresh_token_is_not_an_access_token(client: FlaskClient) -> None:
    refresh = client.post("/api/v1/auth/register", json=ANN).get_json()["refresh_token"]
    r = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {refresh}"})
    assert r.status_code == 401


def test_unknown_route_uses_error_envelope(client: FlaskClient) -> None:
    r = client.get("/api/v1/nope")
    assert r.status_code == 404
    assert r.get_json() == {"error": "NOT_FOUND", "message": "Resource not found", "status": 404}


def test_auth_routes_live_under_auth_prefix(app) -> None:
    rules = {rule.rule for rule in app.url_map.iter_rules()}
    for path in ("register", "login", "refresh", "logout", "me"):
        assert f"/api/v1/auth/{path}" in rules
        assert f"/api/v1/{path}" not in rules


def test_non_object_json_body(client: FlaskClient) -> None:
    r = client.post("/api/v1/auth/logout", json=["x"])
    assert r.status_code == 200
    assert r.get_json() == {"ok": True}

    r = client.post("/api/v1/auth/refresh", json=["x"])
    assert r.status_code == 422
    assert r.get_json()["error"] == "VALIDATION_ERROR"

    r = client.post("/api/v1/auth/register", json="ann@x.com")
    assert r.status_code == 422
