"""
Attendance tests.

Verifies:
- Bulk submission replaces the cluster's records per submitted date
- Employees of another cluster cannot be marked (403)
- Reads and stats are scoped to the caller's cluster
"""

from datetime import timedelta

from greenverse.models import Attendance, Employee
from greenverse.time_utils import today


def _employee(db_session, cluster, name="Ravi"):
    employee = Employee(name=name, city="Pune", role="Sorter", cluster_id=cluster.id)
    db_session.add(employee)
    db_session.commit()
    return employee


class TestBulkAttendance:
    def test_replaces_existing_day(self, client, db_session, cluster_a, headers_for):
        cluster, manager = cluster_a
        ravi = _employee(db_session, cluster, "Ravi")
        meena = _employee(db_session, cluster, "Meena")
        day = today().isoformat()
        headers = headers_for(manager)

        first = client.post("/api/attendance/bulk", headers=headers, json={"attendanceRecords": [
            {"employee_id": ravi.id, "worker_name": "Ravi", "status": "Present", "date": day},
            {"employee_id": meena.id, "worker_name": "Meena", "status": "Present", "date": day},
        ]})
        assert first.status_code == 201, first.get_json()

        second = client.post("/api/attendance/bulk", headers=headers, json={"attendanceRecords": [
            {"employee_id": ravi.id, "worker_name": "Ravi", "status": "Leave", "date": day},
        ]})
        assert second.status_code == 201
        assert second.get_json()["count"] == 1

        db_session.expire_all()
        rows = db_session.query(Attendance).filter_by(cluster_id=cluster.id).all()
        assert [(r.worker_name, r.status) for r in rows] == [("Ravi", "Leave")]

    def test_other_dates_untouched(self, client, db_session, cluster_a, headers_for):
        cluster, manager = cluster_a
        yesterday = today() - timedelta(days=1)
        db_session.add(Attendance(cluster_id=cluster.id, worker_name="Old", date=yesterday, status="Present"))
        db_session.commit()

        client.post("/api/attendance/bulk", headers=headers_for(manager), json={"attendanceRecords": [
            {"worker_name": "New", "status": "Present", "date": today().isoformat()},
        ]})

        db_session.expire_all()
        assert db_session.query(Attendance).count() == 2

    def test_other_cluster_untouched(self, client, db_session, cluster_a, cluster_b, headers_for):
        (north, north_manager), (south, _) = cluster_a, cluster_b
        db_session.add(Attendance(cluster_id=south.id, worker_name="South", date=today(), status="Present"))
        db_session.commit()

        client.post("/api/attendance/bulk", headers=headers_for(north_manager), json={"attendanceRecords": [
            {"worker_name": "North", "status": "Absent", "date": today().isoformat()},
        ]})

        db_session.expire_all()
        assert db_session.query(Attendance).filter_by(cluster_id=south.id).count() == 1
        assert db_session.query(Attendance).filter_by(cluster_id=north.id).count() == 1

    def test_foreign_employee_forbidden(self, client, db_session, cluster_a, cluster_b, headers_for):
        (_, north_manager), (south, _) = cluster_a, cluster_b
        outsider = _employee(db_session, south, "Outsider")

        resp = client.post("/api/attendance/bulk", headers=headers_for(north_manager), json={"attendanceRecords": [
            {"employee_id": outsider.id, "worker_name": "Outsider", "status": "Present",
             "date": today().isoformat()},
        ]})
        assert resp.status_code == 403
        assert resp.get_json()["employee_ids"] == [outsider.id]
        assert db_session.query(Attendance).count() == 0

    def test_empty_records_rejected(self, client, cluster_a, headers_for):
        _, manager = cluster_a
        resp = client.post("/api/attendance/bulk", headers=headers_for(manager), json={"attendanceRecords": []})
        assert resp.status_code == 400

    def test_invalid_status_rejected(self, client, db_session, cluster_a, headers_for):
        _, manager = cluster_a
        resp = client.post("/api/attendance/bulk", headers=headers_for(manager), json={"attendanceRecords": [
            {"worker_name": "Ravi", "status": "Half Day", "date": today().isoformat()},
        ]})
        assert resp.status_code == 400
        assert "attendanceRecords[0]" in resp.get_json()["error"]


class TestSingleAttendance:
    def test_mark_attendance(self, client, cluster_a, headers_for):
        cluster, manager = cluster_a
        resp = client.post("/api/attendance", headers=headers_for(manager), json={
            "worker_name": "Ravi", "status": "Absent", "date": today().isoformat(), "shift": "Night",
        })
        assert resp.status_code == 201
        body = resp.get_json()["attendance"]
        assert body["cluster_id"] == cluster.id
        assert body["shift"] == "Night"

    def test_missing_fields(self, client, cluster_a, headers_for):
        _, manager = cluster_a
        resp = client.post("/api/attendance", headers=headers_for(manager), json={"worker_name": "Ravi"})
        assert resp.status_code == 400


class TestAttendanceReads:
    def test_date_filter_and_scope(self, client, db_session, cluster_a, cluster_b, headers_for):
        (north, north_manager), (south, _) = cluster_a, cluster_b
        yesterday = today() - timedelta(days=1)
        db_session.add_all([
            Attendance(cluster_id=north.id, worker_name="A", date=today(), status="Present"),
            Attendance(cluster_id=north.id, worker_name="B", date=yesterday, status="Present"),
            Attendance(cluster_id=south.id, worker_name="C", date=today(), status="Present"),
        ])
        db_session.commit()

        resp = client.get(f"/api/attendance/date/{today().isoformat()}", headers=headers_for(north_manager))
        assert [r["worker_name"] for r in resp.get_json()["attendance"]] == ["A"]

    def test_bad_date_rejected(self, client, cluster_a, headers_for):
        _, manager = cluster_a
        assert client.get("/api/attendance/date/not-a-date", headers=headers_for(manager)).status_code == 400

    def test_stats(self, client, db_session, cluster_a, headers_for):
        cluster, manager = cluster_a
        for name, status in [("A", "Present"), ("B", "Present"), ("C", "Absent")]:
            db_session.add(Attendance(cluster_id=cluster.id, worker_name=name, date=today(), status=status))
        db_session.commit()

        stats = client.get("/api/attendance/stats", headers=headers_for(manager)).get_json()
        assert stats["total"] == 3
        assert stats["present"] == 2
        assert stats["absent"] == 1
        assert stats["leave"] == 0
        assert stats["presentPercentage"] == 67

    def test_stats_empty_day(self, client, cluster_a, headers_for):
        _, manager = cluster_a
        stats = client.get("/api/attendance/stats?date=2020-01-01", headers=headers_for(manager)).get_json()
        assert stats["total"] == 0
        assert stats["presentPercentage"] == 0
