# Overview: Service-layer operations for reporting; dashboard, sales, finance and impact aggregates.

"""
Read-only statistics.

Conventions:
- Money is summed in integer cents and rendered with format_cents().
- "Month" windows are calendar months in UTC, [start, end).
- Every change/growth figure is percent_change(), which is None when the
  baseline is zero. Nothing is substituted for missing history.
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from flask import current_app
from sqlalchemy import func

from ..errors import Conflict, InvalidInput, NotFound
from ..extensions import db
from ..models import (
    Cluster,
    ImpactMetric,
    Invoice,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    Production,
    User,
)
from ..money import format_cents
from ..roles import Role
from ..time_utils import add_months, day_bounds, month_bounds, month_start as month_start_of, parse_optional_date, today
from ..validation import ModelValidationPolicy, validate_payload
from .concurrency import run_with_retry

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

IMPACT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"date", "waste_processed", "co2_saved", "landfill_diverted", "farmers_supported"}),
    required_on_create=frozenset({"date"}),
)


def percent_change(current, previous) -> float | None:
    """(current - previous) / previous * 100, one decimal; None without a baseline."""
    if previous is None or current is None or previous == 0:
        return None
    return round((float(current) - float(previous)) / abs(float(previous)) * 100, 1)


def percent_of(part, whole, digits: int = 1) -> float | None:
    if not whole:
        return None
    return round(float(part) / float(whole) * 100, digits)


def round_half_up(value) -> int:
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def scale_cents(cents: int, ratio) -> int:
    """cents * ratio rounded half-up to a whole cent."""
    return round_half_up(Decimal(cents) * Decimal(str(ratio)))


def month_label(d: date) -> dict:
    return {"month": f"{d.year:04d}-{d.month:02d}", "label": MONTH_LABELS[d.month - 1]}


def _order_totals(*, statuses=None, exclude=None, start=None, end=None) -> tuple[int, int, int]:
    """(count, amount_cents, quantity) over orders matching the filters."""
    query = db.session.query(
        func.count(Order.id),
        func.coalesce(func.sum(Order.amount_cents), 0),
        func.coalesce(func.sum(Order.quantity), 0),
    )
    if statuses is not None:
        query = query.filter(Order.status.in_(statuses))
    if exclude is not None:
        query = query.filter(Order.status.notin_(exclude))
    if start is not None:
        query = query.filter(Order.created_at >= start)
    if end is not None:
        query = query.filter(Order.created_at < end)
    count, cents, quantity = query.one()
    return int(count or 0), int(cents or 0), int(quantity or 0)


def _delivered_cents(start=None, end=None) -> int:
    return _order_totals(statuses=(OrderStatus.DELIVERED,), start=start, end=end)[1]


def _count(model, *criteria) -> int:
    return int(db.session.query(func.count(model.id)).filter(*criteria).scalar() or 0)


def _client_count() -> int:
    return _count(User, User.role == Role.CLIENT.value)


def _production_sum(*criteria) -> int:
    return int(
        db.session.query(func.coalesce(func.sum(Production.quantity), 0)).filter(*criteria).scalar() or 0
    )


def _last_months(count: int, ref: date | None = None) -> list[date]:
    """First days of the last `count` calendar months, oldest first, current month last."""
    ref = ref or today()
    return [add_months(ref, -offset) for offset in range(count - 1, -1, -1)]


# --- Dashboard ---------------------------------------------------------------

def latest_impact() -> dict:
    rows = (
        db.session.query(ImpactMetric)
        .order_by(ImpactMetric.date.desc(), ImpactMetric.created_at.desc())
        .limit(2)
        .all()
    )
    current = rows[0] if rows else None
    previous = rows[1] if len(rows) > 1 else None
    return {
        "wasteProcessed": float(current.waste_processed) if current else None,
        "co2Saved": float(current.co2_saved) if current else None,
        "landfillDiverted": float(current.landfill_diverted) if current else None,
        "farmersSupported": current.farmers_supported if current else None,
        "wasteGrowth": percent_change(
            current.waste_processed if current else None,
            previous.waste_processed if previous else None,
        ),
        "co2Growth": percent_change(
            current.co2_saved if current else None,
            previous.co2_saved if previous else None,
        ),
    }


def dashboard_stats(ref: date | None = None) -> dict:
    ref = ref or today()
    month_start, month_end = month_bounds(ref)
    last_start, last_end = month_bounds(ref, -1)
    day_start, day_end = day_bounds(ref)

    total_orders = _count(Order)
    today_orders = _count(Order, Order.created_at >= day_start, Order.created_at < day_end)

    new_users = _count(User, User.created_at >= month_start, User.created_at < month_end)
    last_month_users = _count(User, User.created_at >= last_start, User.created_at < last_end)

    active_clusters = _count(Cluster, Cluster.status == "Active")
    clusters_this_month = _count(Cluster, Cluster.created_at >= month_start, Cluster.created_at < month_end)

    _, total_revenue, products_sold = _order_totals(statuses=(OrderStatus.DELIVERED,))
    monthly_revenue = _delivered_cents(month_start, month_end)
    last_month_revenue = _delivered_cents(last_start, last_end)

    stats = {
        "totalOrders": total_orders,
        "todayOrders": today_orders,
        "activeUsers": _client_count(),
        "monthlyNewUsers": new_users,
        "userGrowth": percent_change(new_users, last_month_users),
        "activeClusters": active_clusters,
        "clustersThisMonth": clusters_this_month,
        "totalRevenue": format_cents(total_revenue),
        "monthlyRevenue": format_cents(monthly_revenue),
        "revenueGrowth": percent_change(monthly_revenue, last_month_revenue),
        "totalProductsSold": products_sold,
    }
    stats.update(latest_impact())
    return stats


def orders_trend(months: int = 6, ref: date | None = None) -> list[dict]:
    trend = []
    for start_day in _last_months(months, ref):
        start, end = month_bounds(start_day)
        entry = month_label(start_day)
        entry["orders"] = _count(Order, Order.created_at >= start, Order.created_at < end)
        trend.append(entry)
    return trend


# --- Sales -------------------------------------------------------------------

def sales_stats(ref: date | None = None) -> dict:
    ref = ref or today()
    month_start, month_end = month_bounds(ref)
    last_start, last_end = month_bounds(ref, -1)
    cancelled = (OrderStatus.CANCELLED,)

    total_sales = _delivered_cents()
    month_count, month_cents, _ = _order_totals(exclude=cancelled, start=month_start, end=month_end)
    last_count, last_cents, _ = _order_totals(exclude=cancelled, start=last_start, end=last_end)

    avg_value = month_cents // month_count if month_count else None
    last_avg = last_cents // last_count if last_count else None

    clients = _client_count()
    conversion = percent_of(month_count, clients)
    last_conversion = percent_of(last_count, clients)

    return {
        "totalSales": format_cents(total_sales),
        "monthSales": format_cents(month_cents),
        "salesChange": percent_change(month_cents, last_cents),
        "ordersThisMonth": month_count,
        "ordersChange": percent_change(month_count, last_count),
        "avgOrderValue": format_cents(avg_value),
        "avgChange": percent_change(avg_value, last_avg),
        "conversionRate": conversion,
        "conversionChange": percent_change(conversion, last_conversion),
    }


def sales_monthly_trend(months: int = 6, ref: date | None = None) -> list[dict]:
    trend = []
    for start_day in _last_months(months, ref):
        start, end = month_bounds(start_day)
        entry = month_label(start_day)
        entry["amount"] = format_cents(_delivered_cents(start, end))
        trend.append(entry)
    return trend


def _item_rows(*columns):
    return (
        db.session.query(*columns)
        .join(Order, Order.id == OrderItem.order_id)
        .join(Product, Product.id == OrderItem.product_id)
        .filter(Order.status != OrderStatus.CANCELLED)
    )


def top_products(limit: int = 4) -> list[dict]:
    sold = func.sum(OrderItem.quantity).label("sales")
    rows = (
        _item_rows(Product.id, Product.name, sold)
        .group_by(Product.id, Product.name)
        .order_by(sold.desc(), Product.name.asc())
        .limit(limit)
        .all()
    )
    return [{"product_id": r.id, "name": r.name, "sales": int(r.sales)} for r in rows]


def sales_by_category() -> list[dict]:
    revenue = func.sum(OrderItem.line_total_cents).label("revenue")
    rows = (
        _item_rows(Product.category, revenue)
        .group_by(Product.category)
        .order_by(revenue.desc(), Product.category.asc())
        .all()
    )
    total = sum(int(r.revenue or 0) for r in rows)
    return [
        {
            "name": r.category,
            "amount": format_cents(int(r.revenue or 0)),
            "percentage": round_half_up(Decimal(int(r.revenue or 0) * 100) / total) if total else 0,
        }
        for r in rows
    ]


# --- Finance -----------------------------------------------------------------

def _expenses(revenue_cents: int) -> int:
    return sum(scale_cents(revenue_cents, ratio) for _, ratio in current_app.config["EXPENSE_RATIOS"])


def expense_breakdown() -> list[dict]:
    revenue = _delivered_cents()
    return [
        {
            "category": name,
            "ratio": ratio,
            "amount_cents": scale_cents(revenue, ratio),
            "amount": format_cents(scale_cents(revenue, ratio)),
        }
        for name, ratio in current_app.config["EXPENSE_RATIOS"]
    ]


def finance_stats(ref: date | None = None) -> dict:
    ref = ref or today()
    month_start, month_end = month_bounds(ref)
    last_start, last_end = month_bounds(ref, -1)

    total_revenue = _delivered_cents()
    month_revenue = _delivered_cents(month_start, month_end)
    last_month_revenue = _delivered_cents(last_start, last_end)

    total_expenses = _expenses(total_revenue)
    month_expenses = _expenses(month_revenue)
    last_month_expenses = _expenses(last_month_revenue)

    net_profit = total_revenue - total_expenses
    month_profit = month_revenue - month_expenses
    last_month_profit = last_month_revenue - last_month_expenses

    pending_count, receivable, _ = _order_totals(statuses=OrderStatus.OUTSTANDING)

    return {
        "totalRevenue": format_cents(total_revenue),
        "monthRevenue": format_cents(month_revenue),
        "lastMonthRevenue": format_cents(last_month_revenue),
        "revenueChange": percent_change(month_revenue, last_month_revenue),
        "totalExpenses": format_cents(total_expenses),
        "monthExpenses": format_cents(month_expenses),
        "lastMonthExpenses": format_cents(last_month_expenses),
        "expensesChange": percent_change(month_expenses, last_month_expenses),
        "netProfit": format_cents(net_profit),
        "monthProfit": format_cents(month_profit),
        "profitChange": percent_change(month_profit, last_month_profit),
        "profitMargin": percent_of(net_profit, total_revenue),
        "accountsReceivable": format_cents(receivable),
        "pendingCount": pending_count,
        "accountsPayable": format_cents(scale_cents(total_expenses, current_app.config["PAYABLE_RATIO"])),
    }


def revenue_trend(months: int = 6, ref: date | None = None) -> list[dict]:
    return sales_monthly_trend(months, ref)


def list_invoices() -> list[Invoice]:
    return db.session.query(Invoice).order_by(Invoice.created_at.desc()).all()


def create_invoice(payload: dict) -> Invoice:
    """
    Issue the invoice for an order; the amount snapshots the order total.

    Raises:
        InvalidInput: missing order_id or bad dates
        NotFound: no such order
        Conflict: the order already has an invoice
    """
    payload = payload or {}
    order_id = payload.get("order_id")
    if not order_id:
        raise InvalidInput("order_id is required")
    issue_date = parse_optional_date(payload.get("issue_date"), "issue_date") or today()
    due_date = parse_optional_date(payload.get("due_date"), "due_date")
    if due_date is not None and due_date < issue_date:
        raise InvalidInput("due_date cannot be before issue_date")
    status = str(payload.get("status") or "Pending").strip()

    def _op():
        order = db.session.get(Order, order_id)
        if order is None:
            raise NotFound("Order not found")
        if db.session.query(Invoice.id).filter(Invoice.order_id == order_id).first() is not None:
            raise Conflict("Invoice already exists for this order")
        invoice = Invoice(
            order_id=order.id,
            amount_cents=order.amount_cents,
            issue_date=issue_date,
            due_date=due_date,
            status=status,
        )
        db.session.add(invoice)
        db.session.commit()
        return invoice

    invoice = run_with_retry(_op)
    current_app.logger.info("Invoice issued: id=%s order=%s", invoice.id, order_id)
    return invoice


# --- Impact ------------------------------------------------------------------

def _impact_figures(waste: int) -> dict:
    cfg = current_app.config
    return {
        "co2": round_half_up(waste * Decimal(str(cfg["CO2_KG_PER_KG_WASTE"]))),
        "landfill": round_half_up(waste * Decimal(str(cfg["LANDFILL_SHARE"]))),
    }


def impact_stats(ref: date | None = None) -> dict:
    ref = ref or today()
    cfg = current_app.config
    month_start = month_start_of(ref)
    next_month = add_months(ref, 1)
    last_month = add_months(ref, -1)

    waste = _production_sum()
    month_waste = _production_sum(Production.date >= month_start, Production.date < next_month)
    last_month_waste = _production_sum(Production.date >= last_month, Production.date < month_start)

    totals = _impact_figures(waste)
    month_figures = _impact_figures(month_waste)
    last_figures = _impact_figures(last_month_waste)

    cluster_count = _count(Cluster)
    return {
        "wasteProcessed": waste,
        "monthWaste": month_waste,
        "lastMonthWaste": last_month_waste,
        "wasteChange": percent_change(month_waste, last_month_waste),
        "co2Saved": totals["co2"],
        "co2Change": percent_change(month_figures["co2"], last_figures["co2"]),
        "landfillDiverted": totals["landfill"],
        "landfillChange": percent_change(month_figures["landfill"], last_figures["landfill"]),
        "farmersSupported": cluster_count * cfg["FARMERS_PER_CLUSTER"],
        "treesEquivalent": round_half_up(Decimal(totals["co2"]) / Decimal(str(cfg["CO2_KG_PER_TREE_YEAR"]))),
        "activeClusters": _count(Cluster, Cluster.status == "Active"),
        "totalClusters": cluster_count,
        "activeUsers": _client_count(),
    }


def impact_trend(months: int = 4, ref: date | None = None) -> list[dict]:
    trend = []
    for start_day in _last_months(months, ref):
        waste = _production_sum(Production.date >= start_day, Production.date < add_months(start_day, 1))
        entry = month_label(start_day)
        entry["waste"] = waste
        entry["co2"] = _impact_figures(waste)["co2"]
        trend.append(entry)
    return trend


def list_impact_metrics() -> list[ImpactMetric]:
    return db.session.query(ImpactMetric).order_by(ImpactMetric.date.desc(), ImpactMetric.created_at.desc()).all()


def record_impact_metric(payload: dict) -> ImpactMetric:
    patch = validate_payload(model=ImpactMetric, payload=payload, policy=IMPACT_POLICY, partial=False)
    for key in ("waste_processed", "co2_saved", "landfill_diverted", "farmers_supported"):
        if patch.get(key) is not None and patch[key] < 0:
            raise InvalidInput(f"{key} must be >= 0")

    def _op():
        metric = ImpactMetric(**patch)
        db.session.add(metric)
        db.session.commit()
        return metric

    metric = run_with_retry(_op)
    current_app.logger.info("Impact metric recorded: id=%s date=%s", metric.id, metric.date)
    return metric
