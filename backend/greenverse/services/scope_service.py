# Overview: Cluster scoping for attendance, materials, production and employee reads and writes.

from __future__ import annotations

from ..errors import Forbidden
from ..models import User
from ..roles import Role


def scope_query(query, model, user: User):
    """
    Restrict query to user's cluster when user is cluster-scoped.

    Admins and clients see every row.
    """
    if user.role_enum.is_cluster_scoped:
        return query.filter(model.cluster_id == user.cluster_id)
    return query


def require_cluster_id(user: User) -> str:
    """Cluster id a cluster-role user writes under; Forbidden when unaffiliated."""
    if user.role_enum is not Role.CLUSTER or not user.cluster_id:
        raise Forbidden("User is not associated with a cluster")
    return user.cluster_id


def ensure_own_cluster(user: User, cluster_id: str | None) -> None:
    """Forbidden unless user is an admin or belongs to cluster_id."""
    if user.role_enum is Role.ADMIN:
        return
    if user.role_enum is not Role.CLUSTER or user.cluster_id != cluster_id:
        raise Forbidden("Access denied for this cluster")
