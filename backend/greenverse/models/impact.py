from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow, to_utc_z, to_iso_date
from .users import new_id


class ImpactMetric(db.Model):
    """Environmental impact snapshot recorded by an administrator."""
    __tablename__ = "impact_metrics"
    __table_args__ = (
        db.Index("ix_impact_metrics_date", "date"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    date = db.Column(db.Date, nullable=False)
    waste_processed = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    co2_saved = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    landfill_diverted = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    farmers_supported = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": to_iso_date(self.date),
            "waste_processed": float(self.waste_processed or 0),
            "co2_saved": float(self.co2_saved or 0),
            "landfill_diverted": float(self.landfill_diverted or 0),
            "farmers_supported": self.farmers_supported,
            "created_at": to_utc_z(self.created_at),
        }
