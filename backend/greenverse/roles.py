from __future__ import annotations

from enum import Enum

from .errors import InvalidInput


class Role(str, Enum):
    """Account roles. A user holds exactly one, fixed at creation."""

    ADMIN = "admin"
    CLIENT = "client"
    CLUSTER = "cluster"

    @classmethod
    def parse(cls, value) -> "Role":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(r.value for r in cls)
            raise InvalidInput(f"role must be one of: {allowed}")

    @property
    def is_cluster_scoped(self) -> bool:
        return self is Role.CLUSTER


ALL_ROLES = frozenset(Role)
