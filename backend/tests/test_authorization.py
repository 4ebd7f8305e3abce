"""
Authorization tests.

Verifies:
- Protected endpoints return 401 without a token
- Role gates return 403 with the required roles listed
- Public endpoints stay reachable anonymously
"""

import pytest


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("GET", "/api/orders"),
            ("POST", "/api/orders/cart"),
            ("GET", "/api/clusters"),
            ("POST", "/api/clusters"),
            ("GET", "/api/employees"),
            ("GET", "/api/employees/hr/stats"),
            ("GET", "/api/production"),
            ("GET", "/api/production/admin/stats"),
            ("GET", "/api/attendance"),
            ("POST", "/api/attendance/bulk"),
            ("GET", "/api/materials"),
            ("GET", "/api/users"),
            ("GET", "/api/profile"),
            ("GET", "/api/finance/stats"),
            ("GET", "/api/impact/stats"),
            ("POST", "/api/products"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"


# =============================================================================
# ROLE GATES (403)
# =============================================================================


class TestClientDenied:
    """Client role cannot reach admin or cluster operations."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("PATCH", "/api/orders/some-id/status"),
            ("DELETE", "/api/orders/some-id"),
            ("GET", "/api/orders/sales/stats"),
            ("POST", "/api/products"),
            ("POST", "/api/clusters"),
            ("DELETE", "/api/clusters/some-id"),
            ("POST", "/api/employees"),
            ("POST", "/api/production"),
            ("POST", "/api/attendance"),
            ("POST", "/api/materials"),
            ("GET", "/api/users"),
            ("GET", "/api/finance/stats"),
            ("GET", "/api/impact/metrics"),
        ],
    )
    def test_forbidden(self, client, client_headers, method, path):
        resp = getattr(client, method.lower())(path, headers=client_headers, json={})
        assert resp.status_code == 403, f"{method} {path} returned {resp.status_code}"
        assert resp.get_json()["error"] == "Access denied"

    def test_status_change_lists_required_role(self, client, client_headers):
        resp = client.patch("/api/orders/x/status", headers=client_headers, json={"status": "Shipped"})
        assert resp.status_code == 403
        assert resp.get_json()["required_roles"] == ["admin"]


class TestClusterDenied:
    """Cluster role cannot reach admin-only or client-only routes."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/clusters"),
            ("GET", "/api/production/admin/weekly"),
            ("GET", "/api/employees/hr/employees"),
            ("GET", "/api/profile"),
            ("GET", "/api/finance/invoices"),
        ],
    )
    def test_forbidden(self, client, cluster_a, headers_for, method, path):
        _, manager = cluster_a
        resp = getattr(client, method.lower())(path, headers=headers_for(manager), json={})
        assert resp.status_code == 403


class TestAdminDeniedClusterWrites:
    """Cluster-only writes stay cluster-only, even for admins."""

    def test_admin_cannot_log_production(self, client, admin_headers):
        resp = client.post("/api/production", headers=admin_headers, json={})
        assert resp.status_code == 403

    def test_admin_cannot_create_material(self, client, admin_headers):
        resp = client.post("/api/materials", headers=admin_headers, json={})
        assert resp.status_code == 403


# =============================================================================
# PUBLIC ROUTES
# =============================================================================


class TestPublicRoutes:
    @pytest.mark.parametrize(
        "path",
        ["/api/products", "/api/dashboard/stats", "/api/dashboard/orders-trend", "/api/health", "/api/version"],
    )
    def test_anonymous_ok(self, client, db_session, path):
        assert client.get(path).status_code == 200

    def test_unknown_route_json_404(self, client, db_session):
        resp = client.get("/api/does-not-exist")
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "Route not found"}
