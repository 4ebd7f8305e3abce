from __future__ import annotations

import uuid

from ..extensions import db
from ..roles import Role
from ..time_utils import utcnow, to_utc_z


def new_id() -> str:
    return str(uuid.uuid4())


class User(db.Model):
    """
    Accounts for every actor: administrators, clients and cluster managers.

    A user holds exactly one role, fixed at creation. Cluster-role users are
    affiliated with exactly one cluster through cluster_id.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.CheckConstraint("role IN ('admin', 'client', 'cluster')", name="ck_users_role"),
        db.Index("ix_users_role", "role"),
        db.Index("ix_users_cluster_id", "cluster_id"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(20), nullable=True)
    role = db.Column(db.String(20), nullable=False, default=Role.CLIENT.value)
    location = db.Column(db.String(255), nullable=True)

    cluster_id = db.Column(
        db.String(36),
        db.ForeignKey("clusters.id", ondelete="CASCADE"),
        nullable=True,
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    profile = db.relationship(
        "ClientProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete",
    )

    @property
    def role_enum(self) -> Role:
        return Role(self.role)

    def summary(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "phone": self.phone,
            "role": self.role,
            "location": self.location,
            "cluster_id": self.cluster_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ClientProfile(db.Model):
    """Delivery address of a client; all five fields must be set before checkout."""
    __tablename__ = "client_profiles"

    REQUIRED_FIELDS = ("phone", "city", "district", "state", "address_line")

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    phone = db.Column(db.String(20), nullable=True)
    city = db.Column(db.String(100), nullable=True)
    district = db.Column(db.String(100), nullable=True)
    state = db.Column(db.String(100), nullable=True)
    address_line = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", back_populates="profile")

    def missing_fields(self) -> list[str]:
        return [f for f in self.REQUIRED_FIELDS if not (getattr(self, f) or "").strip()]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "phone": self.phone,
            "city": self.city,
            "district": self.district,
            "state": self.state,
            "address_line": self.address_line,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
