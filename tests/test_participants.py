"""
Tests for joining, leaving, stage management and moderation inside a room.
"""

from app.core.dependencies import build_guest_actor
from app.modules.participants.service import ParticipantService
from tests.conftest import API


def _participant_rows(db, room_id):
    return [p for p in db.rows("room_participants") if p["room_id"] == room_id]


# =============================================================================
# JOIN / LEAVE
# =============================================================================


class TestJoinLeave:
    def test_guest_joins_as_muted_listener(self, room, make_guest, join):
        guest = make_guest("Robin")
        seat = join(room["id"], guest)
        assert seat["profile_id"] == guest["id"]
        assert seat["guest_id"] == guest["id"]
        assert seat["user_id"] is None
        assert seat["is_speaker"] is False
        assert seat["is_muted"] is True
        assert seat["is_active"] is True

    def test_joining_twice_keeps_one_row(self, db, room, make_guest, join):
        guest = make_guest()
        first = join(room["id"], guest)
        second = join(room["id"], guest)
        assert first["id"] == second["id"]
        assert len(_participant_rows(db, room["id"])) == 2  # host + guest

    def test_leave_then_rejoin_reactivates_row(self, client, db, room, make_guest, join):
        guest = make_guest()
        seat = join(room["id"], guest)
        left = client.post(f"{API}/rooms/{room['id']}/leave", headers=guest["headers"]).json()
        assert left["is_active"] is False

        again = join(room["id"], guest)
        assert again["id"] == seat["id"]
        assert again["is_active"] is True
        actions = [a["action"] for a in db.rows("activity_logs")]
        assert "rejoined" in actions

    def test_concurrent_join_reuses_existing_row(self, db, room, make_guest, join):
        guest = make_guest()
        seat = join(room["id"], guest)
        profile = next(p for p in db.rows("profiles") if p["id"] == guest["id"])

        service = ParticipantService(db)
        real_lookup = service.get_participant
        calls = {"n": 0}

        def lookup_misses_once(room_id, actor):
            # The first lookup races with another request that inserts the row
            calls["n"] += 1
            return None if calls["n"] == 1 else real_lookup(room_id, actor)

        service.get_participant = lookup_misses_once
        result = service.join_room(room["id"], build_guest_actor(profile))
        assert result.id == seat["id"]
        assert len(_participant_rows(db, room["id"])) == 2

    def test_join_missing_room(self, client, make_guest):
        guest = make_guest()
        assert client.post(f"{API}/rooms/nope/join", headers=guest["headers"]).status_code == 404

    def test_listing_puts_stage_first(self, client, host, room, make_guest, join):
        join(room["id"], make_guest("Robin"))
        response = client.get(f"{API}/rooms/{room['id']}/participants")
        assert response.status_code == 200
        participants = response.json()
        assert participants[0]["profile_id"] == host["id"]
        assert participants[1]["profile"]["username"] == "Robin"

    def test_my_participation_requires_membership(self, client, room, make_guest):
        guest = make_guest()
        response = client.get(f"{API}/rooms/{room['id']}/participants/me", headers=guest["headers"])
        assert response.status_code == 403
        assert response.json()["detail"] == "You are not in this room"


# =============================================================================
# SELF CONTROLS
# =============================================================================


class TestSelfControls:
    def test_listener_cannot_unmute(self, client, room, make_guest, join):
        guest = make_guest()
        join(room["id"], guest)
        url = f"{API}/rooms/{room['id']}/participants/me/mute"
        assert client.post(url, json={"muted": False}, headers=guest["headers"]).status_code == 403
        assert client.post(url, json={"muted": True}, headers=guest["headers"]).status_code == 200

    def test_speaker_can_unmute(self, client, host, room):
        url = f"{API}/rooms/{room['id']}/participants/me/mute"
        response = client.post(url, json={"muted": False}, headers=host["headers"])
        assert response.status_code == 200
        assert response.json()["is_muted"] is False

    def test_raise_and_lower_hand(self, client, room, make_guest, join):
        guest = make_guest()
        join(room["id"], guest)
        url = f"{API}/rooms/{room['id']}/participants/me/hand"
        assert client.post(url, headers=guest["headers"]).json()["has_raised_hand"] is True
        assert client.delete(url, headers=guest["headers"]).json()["has_raised_hand"] is False

    def test_speakers_do_not_raise_hands(self, client, host, room):
        url = f"{API}/rooms/{room['id']}/participants/me/hand"
        assert client.post(url, headers=host["headers"]).status_code == 400


# =============================================================================
# MODERATION
# =============================================================================


class TestModeration:
    def test_promote_brings_listener_on_stage(self, client, host, room, make_guest, join):
        guest = make_guest()
        join(room["id"], guest)
        client.post(f"{API}/rooms/{room['id']}/participants/me/hand", headers=guest["headers"])

        response = client.post(
            f"{API}/rooms/{room['id']}/participants/{guest['id']}/promote",
            headers=host["headers"],
        )
        assert response.status_code == 200
        seat = response.json()
        assert seat["is_speaker"] is True
        assert seat["is_muted"] is False
        assert seat["has_raised_hand"] is False

        notifications = client.get(f"{API}/notifications", headers=guest["headers"]).json()
        assert notifications[0]["type"] == "promoted_to_speaker"
        assert notifications[0]["data"] == {"room_id": room["id"]}

    def test_listener_cannot_promote(self, client, room, make_guest, join):
        first, second = make_guest(), make_guest()
        join(room["id"], first)
        join(room["id"], second)
        response = client.post(
            f"{API}/rooms/{room['id']}/participants/{second['id']}/promote",
            headers=first["headers"],
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "Insufficient room permissions. Required: participant:promote"

    def test_demote_returns_speaker_to_audience(self, client, host, room, make_guest, join):
        guest = make_guest()
        join(room["id"], guest)
        base = f"{API}/rooms/{room['id']}/participants/{guest['id']}"
        client.post(f"{base}/promote", headers=host["headers"])
        seat = client.post(f"{base}/demote", headers=host["headers"]).json()
        assert seat["is_speaker"] is False
        assert seat["is_muted"] is True

    def test_creator_cannot_be_demoted(self, client, host, room):
        response = client.post(
            f"{API}/rooms/{room['id']}/participants/{host['id']}/demote",
            headers=host["headers"],
        )
        assert response.status_code == 400

    def test_moderator_mutes_speaker(self, client, host, room, make_guest, join):
        guest = make_guest()
        join(room["id"], guest)
        base = f"{API}/rooms/{room['id']}/participants/{guest['id']}"
        client.post(f"{base}/promote", headers=host["headers"])
        assert client.post(f"{base}/mute", headers=host["headers"]).json()["is_muted"] is True

    def test_kick_removes_participant(self, client, db, host, room, make_guest, join):
        guest = make_guest()
        join(room["id"], guest)
        response = client.delete(
            f"{API}/rooms/{room['id']}/participants/{guest['id']}",
            headers=host["headers"],
        )
        assert response.status_code == 204
        assert [p["profile_id"] for p in _participant_rows(db, room["id"])] == [host["id"]]
        [note] = [n for n in db.rows("notifications") if n["profile_id"] == guest["id"]]
        assert note["type"] == "removed_from_room"

    def test_cannot_kick_yourself(self, client, host, room):
        response = client.delete(
            f"{API}/rooms/{room['id']}/participants/{host['id']}",
            headers=host["headers"],
        )
        assert response.status_code == 400

    def test_cannot_kick_room_creator(self, client, db, host, room, make_guest, join):
        cohost = make_guest()
        join(room["id"], cohost)
        for row in _participant_rows(db, room["id"]):
            if row["profile_id"] == cohost["id"]:
                row["is_moderator"] = True
        response = client.delete(
            f"{API}/rooms/{room['id']}/participants/{host['id']}",
            headers=cohost["headers"],
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "The room creator cannot be removed"
        assert host["id"] in [p["profile_id"] for p in _participant_rows(db, room["id"])]

    def test_unknown_target(self, client, host, room):
        response = client.post(
            f"{API}/rooms/{room['id']}/participants/nobody/mute",
            headers=host["headers"],
        )
        assert response.status_code == 404


# =============================================================================
# VIDEO PEERS
# =============================================================================


class TestPeers:
    def test_peer_roster_follows_status(self, client, room, make_guest, join):
        guest = make_guest()
        join(room["id"], guest)
        url = f"{API}/rooms/{room['id']}/peers"

        assert client.get(url).json()["peers"] == []
        assert client.post(url, headers=guest["headers"]).json()["peers"] == [guest["id"]]
        assert client.delete(url, headers=guest["headers"]).json()["peers"] == []


# =============================================================================
# CAPABILITIES
# =============================================================================


class TestCapabilities:
    def test_listener_capabilities(self, client, room, make_guest, join):
        guest = make_guest()
        join(room["id"], guest)
        data = client.get(f"{API}/rooms/{room['id']}/capabilities", headers=guest["headers"]).json()
        assert data["role"] == "listener"
        assert "self:raise_hand" in data["actions"]
        assert "participant:kick" not in data["actions"]

    def test_host_is_moderator(self, client, host, room):
        data = client.get(f"{API}/rooms/{room['id']}/capabilities", headers=host["headers"]).json()
        assert data["role"] == "moderator"
        assert "room:end" in data["actions"]

    def test_anonymous_has_no_role(self, client, room):
        data = client.get(f"{API}/rooms/{room['id']}/capabilities").json()
        assert data["role"] is None
        assert data["actions"] == []
