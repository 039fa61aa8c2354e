"""
Tests for profile lookup and self-service edits.
"""

from app.modules.profiles.service import ProfileService
from tests.conftest import API


class TestProfiles:
    def test_get_my_profile(self, client, host):
        response = client.get(f"{API}/profiles/me", headers=host["headers"])
        assert response.status_code == 200
        assert response.json()["username"] == "host"
        assert response.json()["is_guest"] is False

    def test_update_my_profile(self, client, host):
        response = client.put(
            f"{API}/profiles/me",
            json={"bio": "Hosting daily", "theme_color": "#ff5733", "onboarding_completed": True},
            headers=host["headers"],
        )
        assert response.status_code == 200
        data = response.json()
        assert data["bio"] == "Hosting daily"
        assert data["onboarding_completed"] is True
        assert data["updated_at"] is not None

    def test_guest_updates_profile(self, client, make_guest):
        guest = make_guest("Robin")
        response = client.put(f"{API}/profiles/me", json={"display_name": "Robin H."}, headers=guest["headers"])
        assert response.json()["display_name"] == "Robin H."

    def test_username_must_be_unique(self, client, host, make_user):
        make_user("other@example.com", username="taken")
        response = client.put(f"{API}/profiles/me", json={"username": "taken"}, headers=host["headers"])
        assert response.status_code == 409

    def test_lookup_by_id_and_username(self, client, host):
        assert client.get(f"{API}/profiles/{host['id']}").json()["username"] == "host"
        assert client.get(f"{API}/profiles/by-username/host").json()["id"] == host["id"]

    def test_missing_profile(self, client):
        assert client.get(f"{API}/profiles/nope").status_code == 404
        assert client.get(f"{API}/profiles/by-username/nobody").status_code == 404

    def test_list_profiles_batches_and_skips_unknown(self, db, host, make_user):
        other = make_user("other@example.com")
        profiles = ProfileService(db).list_profiles([host["id"], other["id"], host["id"], "missing", None])
        assert sorted(p.id for p in profiles) == sorted([host["id"], other["id"]])
        assert ProfileService(db).list_profiles([]) == []
