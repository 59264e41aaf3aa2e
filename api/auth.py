"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout
- GET  /auth/me

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues short-lived access tokens and longer-lived refresh tokens (JWTs
  signed with HS256, one secret per token class)
- Stores only the SHA-256 of each refresh token so they can be revoked and
  rotated (see services.auth)
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, current_app

from models.schemas.user import UserOutSchema
from utils.decorators import jwt_required

bp = Blueprint("auth", __name__)

user_out_schema = UserOutSchema()


def json_body() -> dict:
    """Request JSON as a dict; anything that is not a JSON object counts as empty."""
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _auth_service():
    return current_app.extensions["auth_service"]


def _token_body(access_token: str, refresh_token: str) -> dict:
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "expires_in": int(current_app.config["ACCESS_TOKEN_EXPIRES"].total_seconds()),
    }


@bp.post("/register")
def register():
    """
    Register a new user and open a session.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [name, email, password]
          properties:
            name: { type: string }
            email: { type: string }
            password: { type: string }
            role: { type: string, enum: [user, admin] }
    responses:
      201:
        description: Created (returns user and tokens)
      409:
        description: Email already exists
      422:
        description: Validation error
    """
    payload = json_body()
    result = _auth_service().register(payload)
    body = _token_body(result.access_token, result.refresh_token)
    body["data"] = user_out_schema.dump(result.user)
    return jsonify(body), 201


@bp.post("/login")
def login():
    """
    Login: return access_token and refresh_token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid credentials
    """
    payload = json_body()
    result = _auth_service().login(payload)
    body = _token_body(result.access_token, result.refresh_token)
    body["data"] = user_out_schema.dump(result.user)
    return jsonify(body), 200


@bp.post("/refresh")
def refresh():
    """
    Use a refresh token to obtain new access and refresh tokens (rotation).
    The presented refresh token is revoked and cannot be used again.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      200:
        description: OK (returns a new token pair)
      401:
        description: Invalid, expired, revoked or unknown refresh token
    """
    payload = json_body()
    pair = _auth_service().refresh(payload.get("refresh_token"))
    return jsonify(_token_body(pair.access_token, pair.refresh_token)), 200


@bp.post("/logout")
def logout():
    """
    Logout: revokes the given refresh token. Always succeeds.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
      -  in: header
         name: X-Refresh-Token
         type: string
         required: false
    responses:
      200:
        description: OK
    """
    payload = json_body()
    token = payload.get("refresh_token") or request.headers.get("X-Refresh-Token")
    return jsonify(_auth_service().logout(token if isinstance(token, str) else None)), 200


@bp.get("/me")
@jwt_required()
def me():
    """
    Get current user info.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return jsonify({"data": user_out_schema.dump(g.current_user)}), 200
