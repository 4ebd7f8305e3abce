"""
Reporting tests: dashboard, sales, finance and impact aggregates.

Growth and change figures are None whenever the baseline period is empty.
"""

from datetime import timedelta

import pytest

from greenverse.models import ImpactMetric, Order, OrderItem, OrderStatus, Production
from greenverse.services import reporting_service
from greenverse.time_utils import today


@pytest.fixture
def place(db_session, client_user):
    """place(product, quantity, status) writes an order with one line at the product's price."""
    def _place(product, quantity=1, status=OrderStatus.DELIVERED):
        total = product.price_cents * quantity
        order = Order(
            user_id=client_user.id,
            product_id=product.id,
            quantity=quantity,
            amount_cents=total,
            status=status,
        )
        order.items.append(OrderItem(
            product_id=product.id,
            quantity=quantity,
            unit_price_cents=product.price_cents,
            line_total_cents=total,
        ))
        db_session.add(order)
        db_session.commit()
        return order

    return _place


class TestPercentChange:
    @pytest.mark.parametrize("current, previous, expected", [
        (150, 100, 50.0),
        (50, 100, -50.0),
        (10, 0, None),
        (0, None, None),
        (1, 3, -66.7),
    ])
    def test_values(self, current, previous, expected):
        assert reporting_service.percent_change(current, previous) == expected


class TestDashboard:
    def test_empty_database(self, client, db_session):
        stats = client.get("/api/dashboard/stats").get_json()
        assert stats["totalOrders"] == 0
        assert stats["totalRevenue"] == "0.00"
        assert stats["userGrowth"] is None
        assert stats["revenueGrowth"] is None
        assert stats["wasteProcessed"] is None
        assert stats["wasteGrowth"] is None

    def test_orders_trend_has_six_months(self, client, place, make_product):
        place(make_product())
        trend = client.get("/api/dashboard/orders-trend").get_json()["trend"]
        assert len(trend) == 6
        assert [t["orders"] for t in trend] == [0, 0, 0, 0, 0, 1]
        assert trend[-1]["month"] == today().strftime("%Y-%m")

    def test_revenue_counts_delivered_only(self, client, place, make_product):
        product = make_product(price_cents=1000)
        place(product, 2)
        place(product, 5, status=OrderStatus.PENDING)

        stats = client.get("/api/dashboard/stats").get_json()
        assert stats["totalOrders"] == 2
        assert stats["todayOrders"] == 2
        assert stats["totalRevenue"] == "20.00"
        assert stats["monthlyRevenue"] == "20.00"
        assert stats["totalProductsSold"] == 2
        assert stats["activeUsers"] == 1

    def test_latest_impact_growth(self, client, db_session):
        db_session.add_all([
            ImpactMetric(date=today() - timedelta(days=30), waste_processed=100, co2_saved=30),
            ImpactMetric(date=today(), waste_processed=150, co2_saved=45),
        ])
        db_session.commit()

        stats = client.get("/api/dashboard/stats").get_json()
        assert stats["wasteProcessed"] == 150.0
        assert stats["wasteGrowth"] == 50.0
        assert stats["co2Growth"] == 50.0


class TestSales:
    def test_stats_exclude_cancelled(self, client, admin_headers, place, make_product):
        product = make_product(price_cents=1000)
        place(product, 3)
        place(product, 1, status=OrderStatus.PENDING)
        place(product, 9, status=OrderStatus.CANCELLED)

        stats = client.get("/api/orders/sales/stats", headers=admin_headers).get_json()
        assert stats["totalSales"] == "30.00"
        assert stats["monthSales"] == "40.00"
        assert stats["ordersThisMonth"] == 2
        assert stats["avgOrderValue"] == "20.00"
        assert stats["salesChange"] is None
        assert stats["conversionRate"] == 200.0

    def test_top_products(self, client, admin_headers, place, make_product):
        brush = make_product("Brush")
        plate = make_product("Plate")
        place(brush, 2)
        place(plate, 5)
        place(plate, 50, status=OrderStatus.CANCELLED)

        products = client.get("/api/orders/sales/top-products", headers=admin_headers).get_json()["products"]
        assert [(p["name"], p["sales"]) for p in products] == [("Plate", 5), ("Brush", 2)]

    def test_by_category(self, client, admin_headers, place, make_product):
        place(make_product("Brush", category="Personal Care", price_cents=2500))
        place(make_product("Plate", category="Tableware", price_cents=7500))

        categories = client.get("/api/orders/sales/by-category", headers=admin_headers).get_json()["categories"]
        assert categories == [
            {"name": "Tableware", "amount": "75.00", "percentage": 75},
            {"name": "Personal Care", "amount": "25.00", "percentage": 25},
        ]

    def test_monthly_trend(self, client, admin_headers, place, make_product):
        place(make_product(price_cents=1250))
        trend = client.get("/api/orders/sales/monthly-trend", headers=admin_headers).get_json()["trend"]
        assert len(trend) == 6
        assert trend[-1]["amount"] == "12.50"
        assert trend[0]["amount"] == "0.00"


class TestFinance:
    def test_stats(self, client, admin_headers, place, make_product):
        product = make_product(price_cents=10000)
        place(product, 1)
        place(make_product("Plate", price_cents=5000), 1, status=OrderStatus.SHIPPED)

        stats = client.get("/api/finance/stats", headers=admin_headers).get_json()
        assert stats["totalRevenue"] == "100.00"
        assert stats["totalExpenses"] == "80.00"
        assert stats["netProfit"] == "20.00"
        assert stats["profitMargin"] == 20.0
        assert stats["accountsReceivable"] == "50.00"
        assert stats["pendingCount"] == 1
        assert stats["accountsPayable"] == "12.00"
        assert stats["revenueChange"] is None

    def test_expense_breakdown(self, client, admin_headers, place, make_product):
        place(make_product(price_cents=10000))
        expenses = client.get("/api/finance/expenses", headers=admin_headers).get_json()["expenses"]
        assert [(e["category"], e["amount"]) for e in expenses] == [
            ("Raw Materials", "30.00"),
            ("Labor", "25.00"),
            ("Operations", "15.00"),
            ("Marketing", "10.00"),
        ]

    def test_invoice_lifecycle(self, client, admin_headers, place, make_product):
        order = place(make_product(price_cents=4200), 2)

        created = client.post("/api/finance/invoices", headers=admin_headers, json={"order_id": order.id})
        assert created.status_code == 201
        invoice = created.get_json()["invoice"]
        assert invoice["amount"] == "84.00"
        assert invoice["status"] == "Pending"
        assert invoice["customer"] == "Client"

        duplicate = client.post("/api/finance/invoices", headers=admin_headers, json={"order_id": order.id})
        assert duplicate.status_code == 409

        invoices = client.get("/api/finance/invoices", headers=admin_headers).get_json()["invoices"]
        assert len(invoices) == 1

    def test_invoice_errors(self, client, admin_headers, place, make_product):
        assert client.post("/api/finance/invoices", headers=admin_headers, json={}).status_code == 400
        assert client.post(
            "/api/finance/invoices", headers=admin_headers, json={"order_id": "missing"},
        ).status_code == 404

        order = place(make_product())
        resp = client.post("/api/finance/invoices", headers=admin_headers, json={
            "order_id": order.id, "issue_date": "2026-05-10", "due_date": "2026-05-01",
        })
        assert resp.status_code == 400


class TestImpact:
    def test_stats_from_production(self, client, db_session, admin_headers, cluster_a, make_product):
        cluster, _ = cluster_a
        product = make_product()
        db_session.add(Production(
            cluster_id=cluster.id, product_id=product.id, quantity=1000, shift="Morning", date=today(),
        ))
        db_session.commit()

        stats = client.get("/api/impact/stats", headers=admin_headers).get_json()
        assert stats["wasteProcessed"] == 1000
        assert stats["monthWaste"] == 1000
        assert stats["wasteChange"] is None
        assert stats["co2Saved"] == 300
        assert stats["landfillDiverted"] == 800
        assert stats["treesEquivalent"] == 15
        assert stats["farmersSupported"] == 10
        assert stats["activeClusters"] == 1

        trend = client.get("/api/impact/trend", headers=admin_headers).get_json()["trend"]
        assert len(trend) == 4
        assert trend[-1]["waste"] == 1000
        assert trend[-1]["co2"] == 300

    def test_record_metric(self, client, admin_headers):
        resp = client.post("/api/impact/metrics", headers=admin_headers, json={
            "date": today().isoformat(), "waste_processed": "120.5", "farmers_supported": 12,
        })
        assert resp.status_code == 201, resp.get_json()
        assert resp.get_json()["metric"]["waste_processed"] == 120.5

        metrics = client.get("/api/impact/metrics", headers=admin_headers).get_json()["metrics"]
        assert len(metrics) == 1

    def test_negative_metric_rejected(self, client, admin_headers):
        resp = client.post("/api/impact/metrics", headers=admin_headers, json={
            "date": today().isoformat(), "co2_saved": -1,
        })
        assert resp.status_code == 400
