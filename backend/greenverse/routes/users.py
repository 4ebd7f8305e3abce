# Overview: Flask API routes for users operations; parses input and returns JSON responses.

# backend/greenverse/routes/users.py
from flask import Blueprint, request, g

from ..services import user_service
from ..roles import Role
from ..decorators import require_auth, require_role


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@users_bp.get("/")
@require_auth
@require_role(Role.ADMIN)
def list_users():
    users = user_service.list_users(request.args.get("role"))
    return {"users": [u.to_dict() for u in users]}


@users_bp.get("/<user_id>")
@require_auth
def get_user(user_id: str):
    user = user_service.get_user(actor=g.current_user, user_id=user_id)
    return {"user": user.to_dict()}


@users_bp.put("/<user_id>")
@require_auth
def update_user_route(user_id: str):
    """Self or admin. Only name, phone and location can change."""
    data = request.get_json(silent=True) or {}
    user = user_service.update_user(actor=g.current_user, user_id=user_id, payload=data)
    return {"message": "User updated successfully", "user": user.to_dict()}
