from __future__ import annotations

from typing import Tuple
from flask import Blueprint, request, jsonify, g, abort, current_app

from models.schemas.user import UserOutSchema
from api.auth import json_body
from utils.decorators import jwt_required, roles_required

bp = Blueprint("users", __name__)

user_out_schema = UserOutSchema()
user_list_out_schema = UserOutSchema(many=True)


def _user_service():
    return current_app.extensions["user_service"]


def parse_pagination() -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        limit = int(request.args.get("limit", "20"))
        return page, limit
    except ValueError:
        abort(400, description="page and limit must be integers")


@bp.get("/users")
@roles_required("admin")
def list_users():
    """
    List users (newest first) - admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: query
        name: page
        type: integer
      - in: query
        name: limit
        type: integer
    responses:
      200: { description: OK }
      403: { description: Forbidden }
    """
    page, limit = parse_pagination()
    rows, total, page, limit = _user_service().list_users(page, limit)
    return jsonify(
        {
            "data": user_list_out_schema.dump(rows),
            "meta": {"page": page, "limit": limit, "total": total}
        }
    )


@bp.post("/users")
@roles_required("admin")
def create_user():
    """
    Create a user - admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            name: { type: string }
            email: { type: string }
            password: { type: string }
            role: { type: string }
    responses:
      201: { description: Created }
      409: { description: Email already exists }
    """
    payload = json_body()
    user = _user_service().create_user(payload)
    return jsonify({"data": user_out_schema.dump(user)}), 201


@bp.get("/users/<user_id>")
@jwt_required()
def get_user(user_id: str):
    """
    Get one user - self or admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    user = _user_service().get_user(g.current_user, user_id)
    return jsonify({"data": user_out_schema.dump(user)}), 200


@bp.patch("/users/<user_id>")
@jwt_required()
def update_user(user_id: str):
    """
    Update a user - self or admin. Only admins may change roles.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
      - in: body
        name: body
        schema:
          type: object
          properties:
            name: { type: string }
            email: { type: string }
            password: { type: string }
            role: { type: string }
    responses:
      200: { description: OK }
      403: { description: Forbidden }
      409: { description: Email already exists }
    """
    payload = json_body()
    user = _user_service().update_user(g.current_user, user_id, payload)
    return jsonify({"data": user_out_schema.dump(user)}), 200


@bp.delete("/users/<user_id>")
@roles_required("admin")
def delete_user(user_id: str):
    """
    Soft delete a user - admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    _user_service().delete_user(user_id)
    return jsonify({"message": "User deleted successfully"}), 200
