# Overview: Service-layer operations for cluster raw materials.

from __future__ import annotations

from ..errors import NotFound
from ..extensions import db
from ..models import Material, User
from ..money import to_cents
from ..validation import ModelValidationPolicy, enforce_rules_material, validate_payload
from .concurrency import run_with_retry
from .scope_service import ensure_own_cluster, require_cluster_id, scope_query

MATERIAL_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "quantity", "unit", "quality", "supplier", "cost_per_unit_cents"}),
    required_on_create=frozenset({"name", "quantity", "unit"}),
)


def _normalize(payload: dict) -> dict:
    """Accept cost_per_unit as a decimal amount and store it in cents."""
    payload = dict(payload or {})
    if "cost_per_unit" in payload:
        raw = payload.pop("cost_per_unit")
        payload["cost_per_unit_cents"] = None if raw in (None, "") else to_cents(raw, "cost_per_unit")
    return payload


def list_materials(user: User) -> list[Material]:
    query = scope_query(db.session.query(Material), Material, user)
    return query.order_by(Material.created_at.desc()).all()


def _get_owned(user: User, material_id: str) -> Material:
    material = db.session.get(Material, material_id)
    if material is None:
        raise NotFound("Material not found")
    ensure_own_cluster(user, material.cluster_id)
    return material


def create_material(*, user: User, payload: dict) -> Material:
    cluster_id = require_cluster_id(user)
    patch = validate_payload(model=Material, payload=_normalize(payload), policy=MATERIAL_POLICY, partial=False)
    enforce_rules_material(patch)

    def _op():
        material = Material(cluster_id=cluster_id, **patch)
        db.session.add(material)
        db.session.commit()
        return material

    return run_with_retry(_op)


def update_material(*, user: User, material_id: str, payload: dict) -> Material:
    patch = validate_payload(model=Material, payload=_normalize(payload), policy=MATERIAL_POLICY, partial=True)
    enforce_rules_material(patch)

    def _op():
        material = _get_owned(user, material_id)
        for k, v in patch.items():
            setattr(material, k, v)
        db.session.commit()
        return material

    return run_with_retry(_op)


def delete_material(*, user: User, material_id: str) -> None:
    def _op():
        db.session.delete(_get_owned(user, material_id))
        db.session.commit()

    run_with_retry(_op)
