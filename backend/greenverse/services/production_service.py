# Overview: Service-layer operations for production; logging output, stock increments and admin views.

from __future__ import annotations

from datetime import timedelta

from flask import current_app
from sqlalchemy import func

from ..errors import NotFound
from ..extensions import db
from ..models import SHIFTS, Cluster, Product, Production, User
from ..time_utils import add_months, month_start, to_iso_date, today
from ..validation import ModelValidationPolicy, positive_int, validate_payload
from .cluster_service import production_total, refresh_utilization, today_total, utilization_percent
from .concurrency import run_with_retry
from .inventory_service import increment_stock
from .reporting_service import percent_change
from .scope_service import require_cluster_id, scope_query

PRODUCTION_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"product_id", "quantity", "shift", "date"}),
    required_on_create=frozenset({"product_id", "quantity", "shift", "date"}),
    choices={"shift": frozenset(SHIFTS)},
)

DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
WEEK_DAYS = 7
EFFICIENCY_CAP = 120


def list_production(user: User) -> list[Production]:
    query = scope_query(db.session.query(Production), Production, user)
    return query.order_by(Production.date.desc(), Production.created_at.desc()).all()


def log_production(*, user: User, payload: dict) -> Production:
    """
    Record output for the caller's cluster.

    In one transaction: insert the record, add quantity to the product's
    stock and refresh the cluster's utilization snapshot.
    """
    cluster_id = require_cluster_id(user)
    patch = validate_payload(model=Production, payload=payload, policy=PRODUCTION_POLICY, partial=False)
    patch["quantity"] = positive_int(patch["quantity"], "quantity")

    def _op():
        if db.session.get(Product, patch["product_id"]) is None:
            raise NotFound("Product not found")
        cluster = db.session.get(Cluster, cluster_id)
        if cluster is None:
            raise NotFound("Cluster not found")

        record = Production(cluster_id=cluster_id, **patch)
        db.session.add(record)
        db.session.flush()

        increment_stock(product_id=record.product_id, quantity=record.quantity)
        refresh_utilization(cluster)
        db.session.commit()
        return record, cluster.utilization

    record, utilization = run_with_retry(_op)
    current_app.logger.info(
        "Production logged: cluster=%s product=%s qty=%d utilization=%d",
        cluster_id, record.product_id, record.quantity, utilization,
    )
    return record


def cluster_stats(user: User) -> dict:
    cluster_id = require_cluster_id(user)
    day = today()
    return {
        "todayProduction": today_total(cluster_id, day),
        "monthProduction": production_total(cluster_id, month_start(day), add_months(day, 1)),
        "totalProduction": int(
            db.session.query(func.coalesce(func.sum(Production.quantity), 0))
            .filter(Production.cluster_id == cluster_id)
            .scalar() or 0
        ),
    }


def _window(days: int, end_offset: int = 0, ref=None):
    """[start, end) date window of `days` days ending end_offset days before tomorrow."""
    ref = ref or today()
    end = ref + timedelta(days=1 - end_offset)
    return end - timedelta(days=days), end


def _sum_between(start, end) -> int:
    return int(
        db.session.query(func.coalesce(func.sum(Production.quantity), 0))
        .filter(Production.date >= start, Production.date < end)
        .scalar() or 0
    )


def admin_stats(ref=None) -> dict:
    """Last 7 days (today included) against the 7 days before."""
    target = WEEK_DAYS * current_app.config["DAILY_PRODUCTION_TARGET"]
    this_start, this_end = _window(WEEK_DAYS, ref=ref)
    last_start, last_end = _window(WEEK_DAYS, WEEK_DAYS, ref=ref)

    output = _sum_between(this_start, this_end)
    last_output = _sum_between(last_start, last_end)

    efficiency = round(output / target * 100, 1) if target else None
    last_efficiency = round(last_output / target * 100, 1) if target else None

    total_clusters = db.session.query(func.count(Cluster.id)).scalar() or 0
    active_clusters = db.session.query(func.count(Cluster.id)).filter(Cluster.status == "Active").scalar() or 0

    return {
        "totalOutput": output,
        "lastWeekOutput": last_output,
        "outputChange": percent_change(output, last_output),
        "target": target,
        "efficiency": efficiency,
        "efficiencyChange": percent_change(efficiency, last_efficiency),
        "activeClusters": active_clusters,
        "totalClusters": total_clusters,
        "underMaintenance": total_clusters - active_clusters,
    }


def weekly_breakdown(ref=None) -> list[dict]:
    """Per-date totals over the last 7 days, split by product category."""
    start, end = _window(WEEK_DAYS, ref=ref)
    rows = (
        db.session.query(Production.date, Product.category, func.sum(Production.quantity))
        .join(Product, Product.id == Production.product_id)
        .filter(Production.date >= start, Production.date < end)
        .group_by(Production.date, Product.category)
        .order_by(Production.date.asc())
        .all()
    )
    by_date: dict = {}
    for day, category, quantity in rows:
        entry = by_date.setdefault(day, {"date": to_iso_date(day), "categories": {}, "total": 0})
        entry["categories"][category] = int(quantity)
        entry["total"] += int(quantity)
    return list(by_date.values())


def efficiency_series(days: int = 5, ref=None) -> list[dict]:
    """Daily output as a percent of the daily target, capped at 120, oldest first."""
    ref = ref or today()
    target = current_app.config["DAILY_PRODUCTION_TARGET"]
    series = []
    for offset in range(days - 1, -1, -1):
        day = ref - timedelta(days=offset)
        total = _sum_between(day, day + timedelta(days=1))
        efficiency = min(round(total / target * 100), EFFICIENCY_CAP) if target else 0
        series.append({
            "date": to_iso_date(day),
            "day": DAY_NAMES[day.weekday()],
            "efficiency": efficiency,
        })
    return series


def cluster_overview(ref=None) -> list[dict]:
    """Weekly output and weekly utilization per cluster, by name."""
    start, end = _window(WEEK_DAYS, ref=ref)
    default_capacity = current_app.config["DEFAULT_CLUSTER_CAPACITY"]
    overview = []
    for cluster in db.session.query(Cluster).order_by(Cluster.name.asc()).all():
        weekly = production_total(cluster.id, start, end)
        capacity = cluster.capacity or default_capacity
        overview.append({
            "id": cluster.id,
            "name": cluster.name,
            "manager": (cluster.manager.name if cluster.manager else None) or cluster.manager_name,
            "capacity": capacity,
            "weeklyOutput": weekly,
            "utilization": utilization_percent(weekly, capacity * WEEK_DAYS, default_capacity * WEEK_DAYS),
            "status": cluster.status,
        })
    return overview
