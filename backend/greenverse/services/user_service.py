# Overview: Service-layer operations for user accounts (listing and self-service updates).

from __future__ import annotations

from ..errors import Forbidden, NotFound
from ..extensions import db
from ..models import User
from ..roles import Role
from ..validation import ModelValidationPolicy, validate_payload
from .concurrency import run_with_retry

USER_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "phone", "location"}),
)


def list_users(role: str | None = None) -> list[User]:
    query = db.session.query(User)
    if role:
        query = query.filter(User.role == Role.parse(role).value)
    return query.order_by(User.created_at.desc()).all()


def _visible_user(actor: User, user_id: str) -> User:
    if actor.role_enum is not Role.ADMIN and actor.id != user_id:
        raise Forbidden("Access denied")
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def get_user(*, actor: User, user_id: str) -> User:
    return _visible_user(actor, user_id)


def update_user(*, actor: User, user_id: str, payload: dict) -> User:
    """Self or admin; only name, phone and location are writable."""
    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=True)

    def _op():
        user = _visible_user(actor, user_id)
        for k, v in patch.items():
            setattr(user, k, v)
        db.session.commit()
        return user

    return run_with_retry(_op)
