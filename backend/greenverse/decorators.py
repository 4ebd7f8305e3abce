# Overview: Request decorators for API routes (bearer-token auth and role gates).

from functools import wraps
from flask import request, jsonify, g

from .errors import Unauthorized
from .extensions import db
from .models import User
from .roles import Role
from .services.token_service import bearer_token, decode_token


def _load_current_user():
    """
    Decode the bearer token and reload the user row.

    Raises Unauthorized for a missing, malformed or expired token, and for
    a token whose user no longer exists.
    """
    claims = decode_token(bearer_token(request.headers.get("Authorization")))
    user = db.session.get(User, claims["id"])
    if user is None:
        raise Unauthorized("Invalid or expired token")
    return user


def _set_context(user: User) -> None:
    g.current_user = user
    g.role = user.role_enum
    g.cluster_id = user.cluster_id


def require_auth(f):
    """
    Require a valid bearer token.

    Sets the following Flask g attributes:
    - g.current_user: the authenticated User, freshly loaded
    - g.role: the user's Role
    - g.cluster_id: the user's cluster affiliation (None unless role is cluster)
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            user = _load_current_user()
        except Unauthorized as e:
            return jsonify(e.to_dict()), 401

        _set_context(user)
        return f(*args, **kwargs)

    return decorated_function


def optional_auth(f):
    """Populate g like require_auth when a token is present; otherwise g.current_user is None."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.current_user = None
        g.role = None
        g.cluster_id = None
        if request.headers.get("Authorization"):
            try:
                user = _load_current_user()
            except Unauthorized as e:
                return jsonify(e.to_dict()), 401
            _set_context(user)
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: Role):
    """
    Require the authenticated user's role to be one of roles.

    Must be stacked under @require_auth.
    """
    allowed = frozenset(roles)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if getattr(g, "current_user", None) is None:
                return jsonify({"error": "Authentication required"}), 401

            if g.role not in allowed:
                return jsonify({
                    "error": "Access denied",
                    "required_roles": sorted(r.value for r in allowed),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
