"""
Tests for maintenance jobs, the admin endpoint and the CLI scripts.
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.database.supabase_client import SupabaseClient
from app.modules.maintenance import jobs
from app.scripts import cleanup_empty_rooms as cleanup_rooms_script
from app.scripts import cleanup_old_messages as cleanup_messages_script
from app.scripts import update_room_analytics as analytics_script
from tests.conftest import API


def _ago(**delta) -> str:
    return (datetime.now(timezone.utc) - timedelta(**delta)).isoformat()


@pytest.fixture
def rooms(db):
    """busy: someone inside; empty: nobody ever; abandoned: everyone left; ended: already over"""
    busy = db.seed("rooms", name="busy", is_active=True, created_at=_ago(days=3))
    empty = db.seed("rooms", name="empty", is_active=True, created_at=_ago(days=3))
    abandoned = db.seed("rooms", name="abandoned", is_active=True, created_at=_ago(hours=1))
    ended = db.seed("rooms", name="ended", is_active=False, created_at=_ago(days=3))

    db.seed("room_participants", room_id=busy["id"], profile_id="a", is_active=True)
    db.seed("room_participants", room_id=abandoned["id"], profile_id="b", is_active=False)
    db.seed("room_messages", room_id=abandoned["id"], content="bye")
    return {"busy": busy, "empty": empty, "abandoned": abandoned, "ended": ended}


def _room_names(db):
    return sorted(r["name"] for r in db.rows("rooms"))


# =============================================================================
# JOBS
# =============================================================================


class TestCleanupEmptyRooms:
    def test_dry_run_reports_without_deleting(self, db, rooms):
        ids = jobs.cleanup_empty_rooms(db, dry_run=True)
        assert sorted(ids) == sorted([rooms["empty"]["id"], rooms["abandoned"]["id"]])
        assert _room_names(db) == ["abandoned", "busy", "empty", "ended"]

    def test_deletes_rooms_participants_and_messages(self, db, rooms):
        jobs.cleanup_empty_rooms(db)
        assert _room_names(db) == ["busy", "ended"]
        assert [p["room_id"] for p in db.rows("room_participants")] == [rooms["busy"]["id"]]
        assert db.rows("room_messages") == []

        [entry] = [a for a in db.rows("activity_logs") if a["action"] == "cleanup_empty_rooms"]
        assert entry["details"]["rooms_deleted"] == 2

    def test_messages_can_be_kept(self, db, rooms):
        jobs.cleanup_empty_rooms(db, delete_messages=False)
        assert len(db.rows("room_messages")) == 1

    def test_age_cutoff(self, db, rooms):
        ids = jobs.cleanup_empty_rooms(db, older_than_days=1)
        assert ids == [rooms["empty"]["id"]]
        assert "abandoned" in _room_names(db)

    def test_deletes_in_batches(self, db):
        for i in range(23):
            db.seed("rooms", name=f"r{i}", is_active=True)
        assert len(jobs.cleanup_empty_rooms(db)) == 23
        room_deletes = [op for op in db.executed if op == ("rooms", "delete")]
        assert len(room_deletes) == 3

    def test_nothing_to_do(self, db):
        assert jobs.cleanup_empty_rooms(db) == []


class TestMaintenancePass:
    def test_runs_every_step(self, db, rooms):
        db.seed("room_messages", room_id=rooms["busy"]["id"], content="ancient", created_at=_ago(days=90))
        results = jobs.run_maintenance_pass(db)
        assert results["update_analytics"] == 3
        assert sorted(results["cleanup_empty_rooms"]) == sorted([rooms["empty"]["id"], rooms["abandoned"]["id"]])
        assert results["cleanup_old_messages"] == 1

    def test_failing_step_does_not_stop_the_rest(self, db):
        db.seed("room_messages", room_id="r1", content="ancient", created_at=_ago(days=90))
        db.fail_tables["rooms"] = "select"
        results = jobs.run_maintenance_pass(db)
        assert results["update_analytics"] is None
        assert results["cleanup_empty_rooms"] is None
        assert results["cleanup_old_messages"] == 1


# =============================================================================
# ADMIN ENDPOINT
# =============================================================================


class TestAdminMaintenance:
    def test_super_user_runs_task(self, client, db, make_user, rooms):
        admin = make_user("admin@example.com", super_user=True)
        response = client.post(f"{API}/admin/maintenance/cleanup-empty-rooms", headers=admin["headers"])
        assert response.status_code == 200
        assert len(response.json()["result"]) == 2
        assert _room_names(db) == ["busy", "ended"]

    def test_dry_run_flag(self, client, db, make_user, rooms):
        admin = make_user("admin@example.com", super_user=True)
        response = client.post(
            f"{API}/admin/maintenance/cleanup-empty-rooms",
            params={"dry_run": True},
            headers=admin["headers"],
        )
        assert response.json()["dry_run"] is True
        assert len(db.rows("rooms")) == 4

    def test_analytics_dry_run_writes_nothing(self, client, db, make_user, rooms):
        admin = make_user("admin@example.com", super_user=True)
        response = client.post(
            f"{API}/admin/maintenance/update-analytics",
            params={"dry_run": True},
            headers=admin["headers"],
        )
        assert response.status_code == 200
        assert response.json()["result"] == 3
        assert db.rows("room_analytics") == []
        assert ("room_analytics", "upsert") not in db.executed

    def test_unknown_task(self, client, make_user):
        admin = make_user("admin@example.com", super_user=True)
        response = client.post(f"{API}/admin/maintenance/drop-database", headers=admin["headers"])
        assert response.status_code == 404

    def test_regular_users_are_refused(self, client, host):
        response = client.post(f"{API}/admin/maintenance/update-analytics", headers=host["headers"])
        assert response.status_code == 403

    def test_guests_are_refused(self, client, make_guest):
        guest = make_guest()
        response = client.post(f"{API}/admin/maintenance/update-analytics", headers=guest["headers"])
        assert response.status_code == 403

    def test_lists_tasks(self, client, make_user):
        admin = make_user("admin@example.com", super_user=True)
        tasks = client.get(f"{API}/admin/maintenance", headers=admin["headers"]).json()["tasks"]
        assert tasks == ["cleanup-empty-rooms", "cleanup-old-messages", "update-analytics"]


# =============================================================================
# SCRIPTS
# =============================================================================


class TestScripts:
    def test_cleanup_rooms_flags(self):
        args = cleanup_rooms_script.parse_args(["--dry-run", "--older-than", "7", "--no-messages"])
        assert args.dry_run is True
        assert args.older_than == 7
        assert args.no_messages is True

    def test_cleanup_rooms_main(self, db, rooms, monkeypatch):
        monkeypatch.setattr(SupabaseClient, "get_service_client", lambda: db)
        cleanup_rooms_script.main(["--no-messages"])
        assert _room_names(db) == ["busy", "ended"]
        assert len(db.rows("room_messages")) == 1

    def test_cleanup_messages_main(self, db, monkeypatch):
        db.seed("room_messages", room_id="r1", content="old", created_at=_ago(days=10))
        monkeypatch.setattr(SupabaseClient, "get_service_client", lambda: db)
        cleanup_messages_script.main(["--days", "7"])
        assert db.rows("room_messages") == []

    def test_script_failure_exits_non_zero(self, db, monkeypatch):
        db.fail_tables["rooms"] = "*"
        monkeypatch.setattr(SupabaseClient, "get_service_client", lambda: db)
        with pytest.raises(SystemExit) as exc_info:
            cleanup_rooms_script.main([])
        assert exc_info.value.code == 1

    def test_analytics_script_dry_run(self, db, rooms, monkeypatch):
        monkeypatch.setattr(SupabaseClient, "get_service_client", lambda: db)
        analytics_script.main(["--dry-run"])
        assert db.rows("room_analytics") == []
        analytics_script.main([])
        assert len(db.rows("room_analytics")) == 3
