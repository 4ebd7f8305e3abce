# Overview: Client delivery profiles; the completeness gate that cart checkout depends on.

from __future__ import annotations

from flask import current_app

from ..errors import InvalidInput
from ..extensions import db
from ..models import ClientProfile, User
from ..validation import ModelValidationPolicy, validate_payload
from .concurrency import run_with_retry

PROFILE_POLICY = ModelValidationPolicy(
    writable_fields=frozenset(ClientProfile.REQUIRED_FIELDS),
    required_on_create=frozenset(ClientProfile.REQUIRED_FIELDS),
    ignore_unknown=True,
)


def get_profile(user: User) -> ClientProfile | None:
    return db.session.query(ClientProfile).filter_by(user_id=user.id).first()


def missing_fields(profile: ClientProfile | None) -> list[str]:
    if profile is None:
        return list(ClientProfile.REQUIRED_FIELDS)
    return profile.missing_fields()


def check_profile(user: User) -> dict:
    profile = get_profile(user)
    missing = missing_fields(profile)
    return {
        "isComplete": not missing,
        "profile": profile.to_dict() if profile else None,
        "missing_fields": missing,
    }


def save_profile(user: User, payload: dict) -> tuple[ClientProfile, bool]:
    """
    Create or replace the caller's profile. Returns (profile, created).

    All five fields are required; a missing one raises InvalidInput whose
    details carry a per-field `missing` map.
    """
    payload = payload or {}
    missing = {
        f: not str(payload.get(f) or "").strip()
        for f in ClientProfile.REQUIRED_FIELDS
    }
    if any(missing.values()):
        raise InvalidInput("All fields are required", details={"missing": missing})

    patch = validate_payload(model=ClientProfile, payload=payload, policy=PROFILE_POLICY, partial=False)

    def _op():
        profile = get_profile(user)
        created = profile is None
        if created:
            profile = ClientProfile(user_id=user.id)
            db.session.add(profile)
        for k, v in patch.items():
            setattr(profile, k, v)
        db.session.commit()
        return profile, created

    profile, created = run_with_retry(_op)
    current_app.logger.info("Client profile %s: user=%s", "created" if created else "updated", user.id)
    return profile, created
