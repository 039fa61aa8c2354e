from supabase import Client
from app.config.room_permissions import get_room_role, role_allows
from app.modules.participants.schemas import ParticipantResponse
from app.modules.rooms.service import RoomService
from app.modules.activity.service import ActivityService, attach_profiles
from app.modules.notifications.service import NotificationService
from app.modules.realtime.hub import hub
from app.database.supabase_client import fetch_one, is_unique_violation, utcnow_iso
from typing import Any, Dict, List, Optional, Tuple
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def identity_column(actor: dict) -> Tuple[str, str]:
    """Column and value that identify the actor's rows in per-room tables"""
    if actor.get("is_guest"):
        return "guest_id", actor["guest_id"]
    return "user_id", actor["user_id"]


class ParticipantService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.rooms = RoomService(supabase)
        self.activity = ActivityService(supabase)

    def get_participant(self, room_id: str, actor: dict) -> Optional[Dict[str, Any]]:
        """Return the actor's participant row in the room (active or not), or None"""
        column, value = identity_column(actor)
        return fetch_one(
            self.supabase.table("room_participants")
            .select("*")
            .eq("room_id", room_id)
            .eq(column, value)
            .maybe_single()
        )

    def get_active_participant(self, room_id: str, actor: dict) -> Dict[str, Any]:
        participant = self.get_participant(room_id, actor)
        if not participant or not participant.get("is_active"):
            raise HTTPException(status_code=403, detail="You are not in this room")
        return participant

    def _get_target(self, room_id: str, profile_id: str) -> Dict[str, Any]:
        target = fetch_one(
            self.supabase.table("room_participants")
            .select("*")
            .eq("room_id", room_id)
            .eq("profile_id", profile_id)
            .maybe_single()
        )
        if not target:
            raise HTTPException(status_code=404, detail="Participant not found")
        return target

    def _update(self, participant: Dict[str, Any], update_data: Dict[str, Any]) -> ParticipantResponse:
        update_data["updated_at"] = utcnow_iso()
        result = self.supabase.table("room_participants")\
            .update(update_data)\
            .eq("id", participant["id"])\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Participant not found")
        row = result.data[0]
        hub.publish(row["room_id"], "room_participants", "UPDATE", new=row, old=participant)
        return ParticipantResponse(**row)

    def join_room(self, room_id: str, actor: dict) -> ParticipantResponse:
        """Join as a muted listener, or reactivate the existing row. One row per (room, identity)."""
        try:
            self.rooms.get_active_room(room_id)
            existing = self.get_participant(room_id, actor)
            if existing is None:
                column, value = identity_column(actor)
                try:
                    result = self.supabase.table("room_participants").insert({
                        "room_id": room_id,
                        "profile_id": actor["id"],
                        "user_id": actor.get("user_id"),
                        "guest_id": actor.get("guest_id"),
                        "is_moderator": False,
                        "is_speaker": False,
                        "is_muted": True,
                        "has_raised_hand": False,
                        "is_active": True,
                        "joined_at": utcnow_iso(),
                    }).execute()
                    if not result.data:
                        raise HTTPException(status_code=500, detail="Failed to join room")
                    row = result.data[0]
                    hub.publish(room_id, "room_participants", "INSERT", new=row)
                    self.rooms.touch_room(room_id)
                    self.activity.log(room_id, actor, "joined")
                    return ParticipantResponse(**row)
                except HTTPException:
                    raise
                except Exception as e:
                    if not is_unique_violation(e):
                        raise
                    logger.info(f"Concurrent join for {column}={value} in room {room_id}; reusing existing row")
                    existing = self.get_participant(room_id, actor)
                    if existing is None:
                        raise HTTPException(status_code=500, detail="Failed to join room")

            participant = self._update(existing, {"is_active": True})
            self.rooms.touch_room(room_id)
            self.activity.log(room_id, actor, "rejoined" if not existing.get("is_active") else "joined")
            return participant
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def leave_room(self, room_id: str, actor: dict) -> ParticipantResponse:
        participant = self.get_participant(room_id, actor)
        if not participant:
            raise HTTPException(status_code=404, detail="You are not in this room")
        result = self._update(participant, {"is_active": False, "has_raised_hand": False})
        self.activity.log(room_id, actor, "left")
        return result

    def list_participants(self, room_id: str, active_only: bool = True) -> List[ParticipantResponse]:
        """Participants with profiles: moderators, then speakers, then listeners, each by join time"""
        try:
            self.rooms.get_room(room_id)
            query = self.supabase.table("room_participants").select("*").eq("room_id", room_id)
            if active_only:
                query = query.eq("is_active", True)
            result = query.execute()
            rows = attach_profiles(self.supabase, result.data or [], key_fields=("profile_id",))
            rows.sort(key=lambda p: (
                not p.get("is_moderator", False),
                not p.get("is_speaker", False),
                p.get("joined_at") or p.get("created_at") or "",
            ))
            return [ParticipantResponse(**row) for row in rows]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def set_muted(self, room_id: str, actor: dict, muted: bool) -> ParticipantResponse:
        participant = self.get_active_participant(room_id, actor)
        if not muted and not role_allows(get_room_role(participant), "self:unmute"):
            raise HTTPException(status_code=403, detail="Only speakers can unmute")
        result = self._update(participant, {"is_muted": muted})
        self.activity.log(room_id, actor, "muted" if muted else "unmuted")
        return result

    def raise_hand(self, room_id: str, actor: dict) -> ParticipantResponse:
        participant = self.get_active_participant(room_id, actor)
        if participant.get("is_speaker"):
            raise HTTPException(status_code=400, detail="Speakers are already on stage")
        result = self._update(participant, {"has_raised_hand": True})
        self.activity.log(room_id, actor, "raised_hand")
        return result

    def lower_hand(self, room_id: str, actor: dict) -> ParticipantResponse:
        participant = self.get_active_participant(room_id, actor)
        result = self._update(participant, {"has_raised_hand": False})
        self.activity.log(room_id, actor, "lowered_hand")
        return result

    def promote_to_speaker(self, room_id: str, profile_id: str, actor: dict) -> ParticipantResponse:
        target = self._get_target(room_id, profile_id)
        if not target.get("is_active"):
            raise HTTPException(status_code=400, detail="Participant has left the room")
        result = self._update(target, {"is_speaker": True, "has_raised_hand": False, "is_muted": False})
        self.activity.log(room_id, actor, "promoted", {"profile_id": profile_id})
        NotificationService(self.supabase).send_notification(
            profile_id,
            title="You're on stage",
            body="A moderator invited you to speak.",
            type="promoted_to_speaker",
            data={"room_id": room_id},
        )
        return result

    def demote_to_listener(self, room_id: str, profile_id: str, actor: dict) -> ParticipantResponse:
        room = self.rooms.get_room(room_id)
        if room.created_by == profile_id:
            raise HTTPException(status_code=400, detail="The room creator cannot be moved off stage")
        target = self._get_target(room_id, profile_id)
        result = self._update(target, {"is_speaker": False, "is_moderator": False, "is_muted": True, "has_raised_hand": False})
        self.activity.log(room_id, actor, "demoted", {"profile_id": profile_id})
        return result

    def mute_participant(self, room_id: str, profile_id: str, actor: dict) -> ParticipantResponse:
        target = self._get_target(room_id, profile_id)
        result = self._update(target, {"is_muted": True})
        self.activity.log(room_id, actor, "muted_participant", {"profile_id": profile_id})
        return result

    def kick_participant(self, room_id: str, profile_id: str, actor: dict) -> bool:
        if profile_id == actor["id"]:
            raise HTTPException(status_code=400, detail="Use leave to exit the room")
        room = self.rooms.get_room(room_id)
        if room.created_by == profile_id:
            raise HTTPException(status_code=400, detail="The room creator cannot be removed")
        target = self._get_target(room_id, profile_id)
        try:
            result = self.supabase.table("room_participants")\
                .delete()\
                .eq("id", target["id"])\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        hub.publish(room_id, "room_participants", "DELETE", old=target)
        self.activity.log(room_id, actor, "kicked", {"profile_id": profile_id})
        NotificationService(self.supabase).send_notification(
            profile_id,
            title="Removed from room",
            body=f"A moderator removed you from {room.name}.",
            type="removed_from_room",
            data={"room_id": room_id},
        )
        return len(result.data) > 0

    def get_peers(self, room_id: str) -> List[str]:
        """Profile ids of active participants whose video presence is online"""
        try:
            result = self.supabase.table("room_participants")\
                .select("profile_id")\
                .eq("room_id", room_id)\
                .eq("is_active", True)\
                .eq("status", "online")\
                .execute()
            return [row["profile_id"] for row in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def set_peer_status(self, room_id: str, actor: dict, online: bool) -> List[str]:
        participant = self.get_active_participant(room_id, actor)
        self._update(participant, {"status": "online" if online else "offline"})
        self.activity.log(room_id, actor, "joined_video_call" if online else "left_video_call")
        return self.get_peers(room_id)
