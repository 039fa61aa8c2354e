"""
Tests for in-app notifications.
"""

from app.modules.notifications.service import NotificationService
from tests.conftest import API


class TestNotifications:
    def test_list_and_mark_read(self, client, db, host):
        service = NotificationService(db)
        first = service.send_notification(host["id"], "Hello", "Welcome aboard")
        service.send_notification(host["id"], "Again", "Still here")

        unread = client.get(f"{API}/notifications", params={"unread_only": True}, headers=host["headers"]).json()
        assert len(unread) == 2

        response = client.post(f"{API}/notifications/{first.id}/read", headers=host["headers"])
        assert response.status_code == 200
        assert response.json()["read"] is True

        assert client.post(f"{API}/notifications/read-all", headers=host["headers"]).json() == {"updated": 1}
        unread = client.get(f"{API}/notifications", params={"unread_only": True}, headers=host["headers"]).json()
        assert unread == []

    def test_cannot_mark_someone_elses_notification(self, client, db, host, make_user):
        other = make_user("other@example.com")
        note = NotificationService(db).send_notification(other["id"], "Private", "Not yours")
        response = client.post(f"{API}/notifications/{note.id}/read", headers=host["headers"])
        assert response.status_code == 404

    def test_failed_delivery_returns_none(self, db):
        db.fail_tables["notifications"] = "insert"
        assert NotificationService(db).send_notification("p1", "Hi", "There") is None

    def test_requires_identity(self, client):
        assert client.get(f"{API}/notifications").status_code == 401
