"""
Client profile tests: all-or-nothing save, create vs update, completeness check.
"""

from greenverse.models import ClientProfile

FULL_PROFILE = {
    "phone": "9876543210",
    "city": "Pune",
    "district": "Pune",
    "state": "Maharashtra",
    "address_line": "12 Green Street",
}


class TestSaveProfile:
    def test_missing_fields_reported_per_field(self, client, client_headers):
        resp = client.post("/api/profile", headers=client_headers, json={"phone": "9876543210", "city": " "})
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["error"] == "All fields are required"
        assert body["missing"] == {
            "phone": False,
            "city": True,
            "district": True,
            "state": True,
            "address_line": True,
        }

    def test_create_then_update(self, client, db_session, client_headers, client_user):
        created = client.post("/api/profile", headers=client_headers, json=FULL_PROFILE)
        assert created.status_code == 201
        assert created.get_json()["message"] == "Profile created successfully"

        updated = client.post("/api/profile", headers=client_headers, json={**FULL_PROFILE, "city": "Nashik"})
        assert updated.status_code == 200
        assert updated.get_json()["profile"]["city"] == "Nashik"

        db_session.expire_all()
        assert db_session.query(ClientProfile).filter_by(user_id=client_user.id).count() == 1

    def test_unknown_keys_ignored(self, client, client_headers):
        resp = client.post("/api/profile", headers=client_headers, json={**FULL_PROFILE, "user_id": "someone-else"})
        assert resp.status_code == 201


class TestReadProfile:
    def test_no_profile_yet(self, client, client_headers):
        assert client.get("/api/profile", headers=client_headers).get_json() == {"profile": None}

        check = client.get("/api/profile/check", headers=client_headers).get_json()
        assert check["isComplete"] is False
        assert check["profile"] is None
        assert check["missing_fields"] == ["phone", "city", "district", "state", "address_line"]

    def test_complete_profile(self, client, client_headers, complete_profile):
        check = client.get("/api/profile/check", headers=client_headers).get_json()
        assert check["isComplete"] is True
        assert check["missing_fields"] == []
        assert check["profile"]["address_line"] == "12 Green Street"

    def test_admin_has_no_profile_routes(self, client, admin_headers):
        assert client.get("/api/profile", headers=admin_headers).status_code == 403
