# Overview: Service-layer operations for clusters; manager accounts, cascade delete and utilization.

"""
Clusters and utilization.

Utilization is computed in exactly one place, utilization_percent():

    min(round_half_up(today_total / capacity * 100), 100)

where today_total is the cluster's production dated today (UTC) and
capacity falls back to DEFAULT_CLUSTER_CAPACITY when unset or zero. Both
the production write path and the cluster read paths go through
refresh_utilization(), so the stored snapshot and the reported value agree.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy import func, update

from ..errors import Conflict, InvalidInput, NotFound
from ..extensions import db
from ..models import CLUSTER_STATUSES, Cluster, Employee, Production, User
from ..roles import Role
from ..time_utils import today
from ..validation import ModelValidationPolicy, enforce_rules_cluster, validate_payload
from .auth_service import build_user, email_taken, hash_password, normalize_email
from .concurrency import run_with_retry

CLUSTER_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "manager_name", "location", "capacity", "status"}),
    required_on_create=frozenset({"name", "manager_name", "location", "capacity"}),
    choices={"status": frozenset(CLUSTER_STATUSES)},
)


def utilization_percent(total: int, capacity: int | None, default_capacity: int) -> int:
    """Percent of capacity used, rounded half-up and clamped to [0, 100]."""
    cap = capacity if capacity and capacity > 0 else default_capacity
    if total <= 0:
        return 0
    percent = (total * 200 + cap) // (cap * 2)
    return min(percent, 100)


def production_total(cluster_id: str, start, end=None) -> int:
    """Sum of production quantity for cluster_id with start <= date (< end when given)."""
    query = db.session.query(func.coalesce(func.sum(Production.quantity), 0)).filter(
        Production.cluster_id == cluster_id,
        Production.date >= start,
    )
    if end is not None:
        query = query.filter(Production.date < end)
    return int(query.scalar() or 0)


def today_total(cluster_id: str, day=None) -> int:
    day = day or today()
    return int(
        db.session.query(func.coalesce(func.sum(Production.quantity), 0))
        .filter(Production.cluster_id == cluster_id, Production.date == day)
        .scalar() or 0
    )


def refresh_utilization(cluster: Cluster, day=None) -> int:
    """Recompute and store cluster.utilization for day (default today). Does not commit."""
    value = utilization_percent(
        today_total(cluster.id, day),
        cluster.capacity,
        current_app.config["DEFAULT_CLUSTER_CAPACITY"],
    )
    if cluster.utilization != value:
        cluster.utilization = value
    return value


def employees_count(cluster_id: str) -> int:
    return db.session.query(func.count(Employee.id)).filter(Employee.cluster_id == cluster_id).scalar() or 0


def serialize_cluster(cluster: Cluster) -> dict:
    return cluster.to_dict(employees_count=employees_count(cluster.id))


def get_cluster_or_404(cluster_id: str) -> Cluster:
    cluster = db.session.get(Cluster, cluster_id)
    if cluster is None:
        raise NotFound("Cluster not found")
    return cluster


def list_clusters() -> list[Cluster]:
    """All clusters, newest first, with utilization refreshed for today."""
    def _op():
        clusters = db.session.query(Cluster).order_by(Cluster.created_at.desc()).all()
        for cluster in clusters:
            refresh_utilization(cluster)
        db.session.commit()
        return clusters

    return run_with_retry(_op)


def get_cluster(cluster_id: str) -> Cluster:
    def _op():
        cluster = get_cluster_or_404(cluster_id)
        refresh_utilization(cluster)
        db.session.commit()
        return cluster

    return run_with_retry(_op)


def _location_from(payload: dict) -> dict:
    """Fold city/province into location ("city, province") when location is absent."""
    payload = dict(payload)
    city = str(payload.pop("city", "") or "").strip()
    province = str(payload.pop("province", "") or "").strip()
    if not str(payload.get("location") or "").strip():
        joined = ", ".join(part for part in (city, province) if part)
        if joined:
            payload["location"] = joined
    return payload


def create_cluster(payload: dict) -> tuple[Cluster, User]:
    """
    Create a cluster and its cluster-role manager account in one transaction.

    Raises:
        InvalidInput: missing fields, bad capacity or short password
        Conflict: manager email already registered (no cluster row remains)
    """
    payload = _location_from(payload or {})
    email = payload.pop("email", None)
    password = payload.pop("password", None)
    if not email or not password:
        raise InvalidInput("All required fields must be provided")

    patch = validate_payload(model=Cluster, payload=payload, policy=CLUSTER_POLICY, partial=False)
    enforce_rules_cluster(patch)
    patch.setdefault("status", "Active")

    def _op():
        cluster = Cluster(utilization=0, **patch)
        db.session.add(cluster)
        db.session.flush()

        manager = build_user(
            email=email,
            password=password,
            name=f"{cluster.name} Manager",
            role=Role.CLUSTER,
            cluster_id=cluster.id,
            location=cluster.location,
        )
        db.session.flush()

        cluster.manager_id = manager.id
        db.session.commit()
        return cluster, manager

    cluster, manager = run_with_retry(_op)
    current_app.logger.info("Cluster created: id=%s manager=%s", cluster.id, manager.id)
    return cluster, manager


def update_cluster(cluster_id: str, payload: dict) -> Cluster:
    """
    Partial update. email/password, when present, update the manager account.
    utilization is derived and never client-writable.
    """
    payload = _location_from(payload or {})
    email = payload.pop("email", None)
    password = payload.pop("password", None)
    if "utilization" in payload:
        raise InvalidInput("utilization is computed and cannot be set")

    patch = validate_payload(model=Cluster, payload=payload, policy=CLUSTER_POLICY, partial=True)
    enforce_rules_cluster(patch)

    new_email = normalize_email(email) if email else None
    new_hash = hash_password(password) if password else None

    def _op():
        cluster = get_cluster_or_404(cluster_id)
        for k, v in patch.items():
            setattr(cluster, k, v)

        if (new_email or new_hash) and cluster.manager_id:
            manager = db.session.get(User, cluster.manager_id)
            if manager is not None:
                if new_email and new_email != manager.email:
                    if email_taken(new_email):
                        raise Conflict("Email already registered")
                    manager.email = new_email
                if new_hash:
                    manager.password_hash = new_hash

        if "capacity" in patch:
            refresh_utilization(cluster)
        db.session.commit()
        return cluster

    return run_with_retry(_op)


def delete_cluster(cluster_id: str) -> None:
    """
    Delete a cluster with its affiliated users (manager included), employees,
    materials and attendance. Production history is kept with cluster_id nulled.
    """
    def _op():
        cluster = get_cluster_or_404(cluster_id)
        manager_id = cluster.manager_id

        db.session.execute(
            update(Production)
            .where(Production.cluster_id == cluster_id)
            .values(cluster_id=None)
            .execution_options(synchronize_session=False)
        )

        cluster.manager_id = None
        db.session.flush()

        users = db.session.query(User).filter(User.cluster_id == cluster_id).all()
        if manager_id:
            manager = db.session.get(User, manager_id)
            if manager is not None and manager not in users:
                users.append(manager)
        for user in users:
            db.session.delete(user)
        db.session.flush()

        db.session.delete(cluster)
        db.session.commit()
        return len(users)

    removed_users = run_with_retry(_op)
    current_app.logger.info("Cluster deleted: id=%s users_removed=%d", cluster_id, removed_users)
