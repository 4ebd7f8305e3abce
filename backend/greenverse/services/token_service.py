# Overview: Signed bearer tokens (PyJWT, HS256) carrying identity, role and cluster affiliation.

from __future__ import annotations

from datetime import timedelta, timezone

import jwt
from flask import current_app

from ..errors import Unauthorized
from ..models import User
from ..time_utils import utcnow

ALGORITHM = "HS256"


def issue_token(user: User, *, now=None) -> str:
    """
    Sign a token for user.

    Claims: id, email, role, name, cluster_id (nullable), iat, exp.
    Expiry is TOKEN_TTL_DAYS after issuance; there is no refresh.
    """
    issued_at = (now or utcnow()).replace(tzinfo=timezone.utc)
    ttl = timedelta(days=current_app.config["TOKEN_TTL_DAYS"])
    payload = {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "name": user.name,
        "cluster_id": user.cluster_id,
        "iat": issued_at,
        "exp": issued_at + ttl,
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm=ALGORITHM)


def decode_token(token: str | None) -> dict:
    """Verify signature and expiry. Raises Unauthorized on any failure."""
    if not token:
        raise Unauthorized("Access token required")
    try:
        claims = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expired")
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid or expired token")
    if not claims.get("id"):
        raise Unauthorized("Invalid or expired token")
    return claims


def bearer_token(auth_header: str | None) -> str | None:
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None
