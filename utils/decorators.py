from __future__ import annotations
from functools import wraps
from flask import request, g, current_app

from services.errors import AuthError, ForbiddenError
from utils.permissions import has_role
from utils.tokens import TokenClass, TokenError


def jwt_required():
    """Require a valid access token; sets g.current_user and g.current_role."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization", "")
            if not auth.startswith("Bearer "):
                raise AuthError("Missing or invalid Authorization header")
            token = auth.split(" ", 1)[1].strip()
            codec = current_app.extensions["token_codec"]
            try:
                claims = codec.verify(token, TokenClass.ACCESS)
            except TokenError as exc:
                raise AuthError("Invalid or expired access token") from exc

            store = current_app.extensions["credential_store"]
            user = store.find_user_by_id(claims.subject_id)
            if not user:
                raise AuthError("User not found")
            g.current_user = user
            # the stored role wins over the token's, so demotions apply immediately
            g.current_role = user.role.value
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def roles_required(required_role: str):
    """
    Allow access only when the token's role equals required_role.
    """
    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            if not has_role(getattr(g, "current_role", ""), required_role):
                raise ForbiddenError("Insufficient role")
            return fn(*args, **kwargs)

        return wrapper

    return decorator
