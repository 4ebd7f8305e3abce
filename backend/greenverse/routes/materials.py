# Overview: Flask API routes for materials operations; parses input and returns JSON responses.

# backend/greenverse/routes/materials.py
from flask import Blueprint, request, g

from ..services import material_service
from ..roles import Role
from ..decorators import require_auth, require_role


materials_bp = Blueprint("materials", __name__, url_prefix="/api/materials")


@materials_bp.get("")
@materials_bp.get("/")
@require_auth
def list_materials():
    materials = material_service.list_materials(g.current_user)
    return {"materials": [m.to_dict() for m in materials]}


@materials_bp.post("")
@materials_bp.post("/")
@require_auth
@require_role(Role.CLUSTER)
def create_material_route():
    data = request.get_json(silent=True) or {}
    material = material_service.create_material(user=g.current_user, payload=data)
    return {"message": "Material added successfully", "material": material.to_dict()}, 201


@materials_bp.put("/<material_id>")
@require_auth
@require_role(Role.CLUSTER)
def update_material_route(material_id: str):
    data = request.get_json(silent=True) or {}
    material = material_service.update_material(user=g.current_user, material_id=material_id, payload=data)
    return {"message": "Material updated successfully", "material": material.to_dict()}


@materials_bp.delete("/<material_id>")
@require_auth
@require_role(Role.CLUSTER)
def delete_material_route(material_id: str):
    material_service.delete_material(user=g.current_user, material_id=material_id)
    return {"message": "Material deleted successfully"}
