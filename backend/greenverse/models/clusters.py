from __future__ import annotations

from ..extensions import db
from ..money import format_cents
from ..time_utils import utcnow, to_utc_z, to_iso_date
from .users import new_id


CLUSTER_STATUSES = ("Active", "Maintenance", "Inactive")
SHIFTS = ("Morning", "Evening", "Night")
ATTENDANCE_STATUSES = ("Present", "Absent", "Leave")


class Cluster(db.Model):
    """
    A production facility managed by one cluster-role user.

    utilization is a stored snapshot (percent of today's capacity used),
    refreshed by cluster_service.refresh_utilization on production writes
    and on cluster reads.
    """
    __tablename__ = "clusters"
    __table_args__ = (
        db.CheckConstraint("utilization >= 0 AND utilization <= 100", name="ck_clusters_utilization_range"),
        db.Index("ix_clusters_status", "status"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    location = db.Column(db.String(255), nullable=False)
    manager_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", use_alter=True, name="fk_clusters_manager_id", ondelete="SET NULL"),
        nullable=True,
    )
    manager_name = db.Column(db.String(255), nullable=True)
    capacity = db.Column(db.Integer, nullable=False)
    utilization = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(50), nullable=False, default="Active")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    manager = db.relationship("User", foreign_keys=[manager_id], post_update=True)
    employees = db.relationship("Employee", back_populates="cluster", cascade="all, delete")
    materials = db.relationship("Material", back_populates="cluster", cascade="all, delete")
    attendance = db.relationship("Attendance", back_populates="cluster", cascade="all, delete")

    def summary(self) -> dict:
        return {"id": self.id, "name": self.name, "location": self.location}

    def to_dict(self, employees_count: int | None = None) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "manager_id": self.manager_id,
            "manager_name": self.manager_name,
            "manager": self.manager.summary() if self.manager else None,
            "capacity": self.capacity,
            "utilization": self.utilization,
            "status": self.status,
            "employees_count": employees_count,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Employee(db.Model):
    __tablename__ = "employees"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    city = db.Column(db.String(100), nullable=False)
    role = db.Column(db.String(100), nullable=False)
    cluster_id = db.Column(
        db.String(36),
        db.ForeignKey("clusters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    cluster = db.relationship("Cluster", back_populates="employees")
    attendance = db.relationship("Attendance", back_populates="employee", cascade="all, delete")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "city": self.city,
            "role": self.role,
            "cluster_id": self.cluster_id,
            "cluster": self.cluster.summary() if self.cluster else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Material(db.Model):
    """Raw material stock held by a cluster."""
    __tablename__ = "materials"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    cluster_id = db.Column(
        db.String(36),
        db.ForeignKey("clusters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Numeric(10, 2), nullable=False)
    unit = db.Column(db.String(50), nullable=False)
    quality = db.Column(db.String(50), nullable=True)
    supplier = db.Column(db.String(255), nullable=True)
    cost_per_unit_cents = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    cluster = db.relationship("Cluster", back_populates="materials")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cluster_id": self.cluster_id,
            "name": self.name,
            "quantity": str(self.quantity) if self.quantity is not None else None,
            "unit": self.unit,
            "quality": self.quality,
            "supplier": self.supplier,
            "cost_per_unit_cents": self.cost_per_unit_cents,
            "cost_per_unit": format_cents(self.cost_per_unit_cents),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Production(db.Model):
    """
    Output logged by a cluster for one shift.

    cluster_id is nulled (not cascaded) when the cluster is deleted so
    production history survives for the aggregate statistics.
    """
    __tablename__ = "production"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_production_quantity_positive"),
        db.CheckConstraint("shift IN ('Morning', 'Evening', 'Night')", name="ck_production_shift"),
        db.Index("ix_production_cluster_date", "cluster_id", "date"),
        db.Index("ix_production_date", "date"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    cluster_id = db.Column(db.String(36), db.ForeignKey("clusters.id", ondelete="SET NULL"), nullable=True)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    shift = db.Column(db.String(20), nullable=False)
    date = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    cluster = db.relationship("Cluster")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cluster_id": self.cluster_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "shift": self.shift,
            "date": to_iso_date(self.date),
            "cluster": self.cluster.summary() if self.cluster else None,
            "product": self.product.summary() if self.product else None,
            "created_at": to_utc_z(self.created_at),
        }


class Attendance(db.Model):
    """
    One worker's attendance on one date.

    Uniqueness per employee and date is kept by bulk submission, which
    replaces a cluster's records for each submitted date.
    """
    __tablename__ = "attendance"
    __table_args__ = (
        db.CheckConstraint("status IN ('Present', 'Absent', 'Leave')", name="ck_attendance_status"),
        db.Index("ix_attendance_cluster_date", "cluster_id", "date"),
        db.Index("ix_attendance_employee_id", "employee_id"),
        db.Index("ix_attendance_date", "date"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    cluster_id = db.Column(db.String(36), db.ForeignKey("clusters.id", ondelete="CASCADE"), nullable=False)
    employee_id = db.Column(db.String(36), db.ForeignKey("employees.id", ondelete="CASCADE"), nullable=True)
    worker_name = db.Column(db.String(255), nullable=False)
    date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(20), nullable=False)
    shift = db.Column(db.String(20), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    cluster = db.relationship("Cluster", back_populates="attendance")
    employee = db.relationship("Employee", back_populates="attendance")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cluster_id": self.cluster_id,
            "employee_id": self.employee_id,
            "worker_name": self.worker_name,
            "date": to_iso_date(self.date),
            "status": self.status,
            "shift": self.shift,
            "cluster": self.cluster.summary() if self.cluster else None,
            "created_at": to_utc_z(self.created_at),
        }
