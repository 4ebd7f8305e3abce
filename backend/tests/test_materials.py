"""
Materials tests: cluster-scoped reads, own-cluster writes, cost in cents.
"""

import pytest

from greenverse.models import Material


@pytest.fixture
def material(db_session, cluster_a):
    cluster, _ = cluster_a
    row = Material(cluster_id=cluster.id, name="Coconut Husk", quantity=100, unit="kg", cost_per_unit_cents=250)
    db_session.add(row)
    db_session.commit()
    return row


class TestMaterials:
    def test_create_in_own_cluster(self, client, cluster_a, headers_for):
        cluster, manager = cluster_a
        resp = client.post("/api/materials", headers=headers_for(manager), json={
            "name": "Areca Leaves", "quantity": "12.5", "unit": "kg", "cost_per_unit": "3.75",
        })
        assert resp.status_code == 201, resp.get_json()
        body = resp.get_json()["material"]
        assert body["cluster_id"] == cluster.id
        assert body["quantity"] == "12.50"
        assert body["cost_per_unit_cents"] == 375
        assert body["cost_per_unit"] == "3.75"

    @pytest.mark.parametrize("quantity", [0, -1, "abc"])
    def test_quantity_must_be_positive(self, client, cluster_a, headers_for, quantity):
        _, manager = cluster_a
        resp = client.post("/api/materials", headers=headers_for(manager), json={
            "name": "Husk", "quantity": quantity, "unit": "kg",
        })
        assert resp.status_code == 400

    def test_list_scoped(self, client, material, cluster_b, headers_for, admin_headers):
        _, south_manager = cluster_b
        assert client.get("/api/materials", headers=headers_for(south_manager)).get_json()["materials"] == []
        assert len(client.get("/api/materials", headers=admin_headers).get_json()["materials"]) == 1

    def test_update_own(self, client, material, cluster_a, headers_for):
        _, manager = cluster_a
        resp = client.put(f"/api/materials/{material.id}", headers=headers_for(manager), json={"quality": "A"})
        assert resp.status_code == 200
        assert resp.get_json()["material"]["quality"] == "A"

    def test_other_cluster_forbidden(self, client, db_session, material, cluster_b, headers_for):
        _, south_manager = cluster_b
        headers = headers_for(south_manager)
        assert client.put(f"/api/materials/{material.id}", headers=headers, json={"quality": "B"}).status_code == 403
        assert client.delete(f"/api/materials/{material.id}", headers=headers).status_code == 403
        db_session.expire_all()
        assert db_session.query(Material).count() == 1

    def test_missing_404(self, client, cluster_a, headers_for):
        _, manager = cluster_a
        assert client.delete("/api/materials/nope", headers=headers_for(manager)).status_code == 404

    def test_delete_own(self, client, db_session, material, cluster_a, headers_for):
        _, manager = cluster_a
        assert client.delete(f"/api/materials/{material.id}", headers=headers_for(manager)).status_code == 200
        db_session.expire_all()
        assert db_session.query(Material).count() == 0
