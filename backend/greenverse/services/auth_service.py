# Overview: Service-layer operations for auth; password hashing, signup and login.

"""
Authentication service.

Passwords are hashed with bcrypt (cost factor from BCRYPT_ROUNDS). Tokens
are issued by token_service. A user's role is fixed at creation:
- public signup always yields a client
- admin and cluster accounts need an admin caller
- cluster accounts need an existing cluster_id
"""
from __future__ import annotations

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import Conflict, Forbidden, InvalidInput, NotFound, Unauthorized
from ..extensions import db
from ..models import Cluster, User
from ..roles import Role
from .concurrency import run_with_retry
from .token_service import issue_token

MIN_PASSWORD_LENGTH = 6


def normalize_email(email) -> str:
    value = str(email or "").strip().lower()
    if "@" not in value or value.startswith("@") or value.endswith("@"):
        raise InvalidInput("A valid email is required")
    return value


def validate_password(password) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def hash_password(password: str) -> str:
    """Hash password using bcrypt; the cost factor comes from config."""
    validate_password(password)
    salt = bcrypt.gensalt(rounds=current_app.config["BCRYPT_ROUNDS"])
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe comparison; malformed stored hashes never match."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def email_taken(email: str) -> bool:
    return db.session.query(User.id).filter(User.email == email).first() is not None


def build_user(
    *,
    email,
    password,
    name,
    role: Role = Role.CLIENT,
    cluster_id: str | None = None,
    phone: str | None = None,
    location: str | None = None,
) -> User:
    """
    Validate and stage a new User in the session (no commit).

    Raises:
        InvalidInput: missing name, bad email or short password
        Conflict: email already registered
    """
    email = normalize_email(email)
    name = str(name or "").strip()
    if not name:
        raise InvalidInput("Email, password, and name are required")
    if role is Role.CLUSTER and not cluster_id:
        raise InvalidInput("cluster_id is required for cluster accounts")
    if role is not Role.CLUSTER:
        cluster_id = None
    if email_taken(email):
        raise Conflict("Email already registered")

    user = User(
        email=email,
        password_hash=hash_password(password),
        name=name,
        role=role.value,
        cluster_id=cluster_id,
        phone=(phone or None),
        location=(location or None),
    )
    db.session.add(user)
    return user


def signup(payload: dict, *, actor: User | None = None) -> tuple[str, User]:
    """
    Register an account and return (token, user).

    actor is the authenticated caller, if any. Only an admin actor may
    create admin or cluster accounts.
    """
    email = payload.get("email")
    password = payload.get("password")
    name = payload.get("name")
    if not email or not password or not name:
        raise InvalidInput("Email, password, and name are required")

    role = Role.parse(payload.get("role") or Role.CLIENT.value)
    if role is not Role.CLIENT:
        if actor is None or actor.role_enum is not Role.ADMIN:
            raise Forbidden(f"Only an admin can create {role.value} accounts")

    cluster_id = payload.get("cluster_id")
    if role is Role.CLUSTER:
        if not cluster_id:
            raise InvalidInput("cluster_id is required for cluster accounts")
        if db.session.get(Cluster, cluster_id) is None:
            raise NotFound("Cluster not found")

    def _op():
        user = build_user(
            email=email,
            password=password,
            name=name,
            role=role,
            cluster_id=cluster_id,
            phone=payload.get("phone"),
            location=payload.get("location"),
        )
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise Conflict("Email already registered")
        return user

    user = run_with_retry(_op)
    current_app.logger.info("User registered: id=%s role=%s", user.id, user.role)
    return issue_token(user), user


def login(email, password) -> tuple[str, User]:
    """Return (token, user) or raise Unauthorized for any credential mismatch."""
    if not email or not password:
        raise InvalidInput("Email and password are required")

    user = db.session.query(User).filter(User.email == str(email).strip().lower()).first()
    if user is None or not verify_password(password, user.password_hash):
        raise Unauthorized("Invalid email or password")

    return issue_token(user), user


def get_user(user_id: str) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user
