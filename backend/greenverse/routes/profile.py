# Overview: Flask API routes for the client delivery profile; parses input and returns JSON responses.

# backend/greenverse/routes/profile.py
from flask import Blueprint, request, g

from ..services import profile_service
from ..roles import Role
from ..decorators import require_auth, require_role


profile_bp = Blueprint("profile", __name__, url_prefix="/api/profile")


@profile_bp.get("")
@profile_bp.get("/")
@require_auth
@require_role(Role.CLIENT)
def get_profile():
    profile = profile_service.get_profile(g.current_user)
    return {"profile": profile.to_dict() if profile else None}


@profile_bp.post("")
@profile_bp.post("/")
@require_auth
@require_role(Role.CLIENT)
def save_profile_route():
    data = request.get_json(silent=True) or {}
    profile, created = profile_service.save_profile(g.current_user, data)
    if created:
        return {"message": "Profile created successfully", "profile": profile.to_dict()}, 201
    return {"message": "Profile updated successfully", "profile": profile.to_dict()}


@profile_bp.get("/check")
@require_auth
@require_role(Role.CLIENT)
def check_profile():
    return profile_service.check_profile(g.current_user)
