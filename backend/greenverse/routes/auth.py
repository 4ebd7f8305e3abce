# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/greenverse/routes/auth.py
"""
Authentication API routes.

- POST /api/auth/signup: public signup creates a client; admin/cluster
  accounts need an admin bearer token.
- POST /api/auth/login: email + password, returns a bearer token.
- GET  /api/auth/me: the authenticated user.
"""

from flask import Blueprint, request, g

from ..services import auth_service
from ..decorators import require_auth, optional_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/signup")
@optional_auth
def signup_route():
    data = request.get_json(silent=True) or {}
    token, user = auth_service.signup(data, actor=g.current_user)
    return {
        "message": "User created successfully",
        "token": token,
        "user": user.to_dict(),
    }, 201


@auth_bp.post("/login")
def login_route():
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    if not all([email, password]):
        return {"error": "Email and password are required"}, 400

    token, user = auth_service.login(email, password)
    return {
        "message": "Login successful",
        "token": token,
        "user": user.to_dict(),
    }


@auth_bp.get("/me")
@require_auth
def me_route():
    return {"user": g.current_user.to_dict()}
