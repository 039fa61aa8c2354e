from supabase import Client
from app.modules.rooms.schemas import RoomCreate, RoomUpdate, RoomResponse, RoomWithParticipantsResponse
from app.modules.activity.service import ActivityService
from app.modules.files.storage import get_file_storage
from app.modules.realtime.hub import hub
from app.database.supabase_client import fetch_one, utcnow_iso
from typing import Dict, List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class RoomService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_room(self, room_data: RoomCreate, actor: dict) -> RoomResponse:
        """Create a room and seat its creator as moderator on stage"""
        try:
            now = utcnow_iso()
            result = self.supabase.table("rooms").insert({
                "name": room_data.name,
                "description": room_data.description,
                "is_private": room_data.is_private,
                "has_camera": room_data.has_camera,
                "topics": room_data.topics,
                "created_by": actor["id"],
                "is_active": True,
                "last_active_at": now,
                "created_at": now,
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create room")
            room = result.data[0]

            try:
                host = self.supabase.table("room_participants").insert({
                    "room_id": room["id"],
                    "profile_id": actor["id"],
                    "user_id": actor.get("user_id"),
                    "guest_id": actor.get("guest_id"),
                    "is_moderator": True,
                    "is_speaker": True,
                    "is_muted": True,
                    "has_raised_hand": False,
                    "is_active": True,
                    "joined_at": now,
                }).execute()
                if host.data:
                    hub.publish(room["id"], "room_participants", "INSERT", new=host.data[0])
            except Exception as e:
                # The room exists; the creator can still join it explicitly
                logger.error(f"Error adding creator {actor['id']} as host of room {room['id']}: {e}")

            ActivityService(self.supabase).log(room["id"], actor, "room_created", {"name": room["name"]})
            hub.publish(room["id"], "rooms", "INSERT", new=room)
            return RoomResponse(**room)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_room(self, room_id: str) -> RoomResponse:
        """Get room by ID"""
        try:
            room = fetch_one(
                self.supabase.table("rooms")
                .select("*")
                .eq("id", room_id)
                .maybe_single()
            )
            if not room:
                raise HTTPException(status_code=404, detail="Room not found")
            return RoomResponse(**room)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_active_room(self, room_id: str) -> RoomResponse:
        room = self.get_room(room_id)
        if not room.is_active:
            raise HTTPException(status_code=409, detail="Room has ended")
        return room

    def list_active_rooms(
        self,
        limit: int = 20,
        offset: int = 0,
        include_private: bool = False,
        topic: Optional[str] = None
    ) -> List[RoomWithParticipantsResponse]:
        """Active rooms newest first, each with its active participants and host profile"""
        try:
            query = self.supabase.table("rooms").select("*").eq("is_active", True)
            if not include_private:
                query = query.eq("is_private", False)
            if topic:
                query = query.contains("topics", [topic.strip().lower()])
            result = query.order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            rooms = result.data or []
            if not rooms:
                return []

            room_ids = [r["id"] for r in rooms]
            participants_result = self.supabase.table("room_participants")\
                .select("*")\
                .in_("room_id", room_ids)\
                .eq("is_active", True)\
                .execute()
            participants = participants_result.data or []

            profile_ids = {p["profile_id"] for p in participants if p.get("profile_id")}
            profile_ids.update(r["created_by"] for r in rooms if r.get("created_by"))
            profiles = self._profiles_by_id(list(profile_ids))

            by_room: Dict[str, List[dict]] = {room_id: [] for room_id in room_ids}
            for p in participants:
                p["profile"] = profiles.get(p.get("profile_id"))
                by_room.setdefault(p["room_id"], []).append(p)

            response = []
            for room in rooms:
                room_participants = by_room.get(room["id"], [])
                response.append(RoomWithParticipantsResponse(
                    **room,
                    participants=room_participants,
                    active_participant_count=len(room_participants),
                    host_profile=profiles.get(room.get("created_by")),
                ))
            return response
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _profiles_by_id(self, profile_ids: List[str]) -> Dict[str, dict]:
        if not profile_ids:
            return {}
        result = self.supabase.table("profiles")\
            .select("id, username, display_name, avatar_url, is_guest")\
            .in_("id", profile_ids)\
            .execute()
        return {p["id"]: p for p in (result.data or [])}

    def update_room(self, room_id: str, room_data: RoomUpdate) -> RoomResponse:
        """Update room settings"""
        try:
            self.get_room(room_id)
            update_data = room_data.model_dump(exclude_none=True)
            if "name" in update_data:
                update_data["name"] = update_data["name"].strip()
                if not update_data["name"]:
                    raise HTTPException(status_code=400, detail="Room name cannot be empty")
            update_data["updated_at"] = utcnow_iso()

            result = self.supabase.table("rooms")\
                .update(update_data)\
                .eq("id", room_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Room not found")

            hub.publish(room_id, "rooms", "UPDATE", new=result.data[0])
            return RoomResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def end_room(self, room_id: str, actor: Optional[dict] = None) -> RoomResponse:
        """Mark a room as ended and move everyone out of it"""
        try:
            self.get_room(room_id)
            now = utcnow_iso()
            result = self.supabase.table("rooms")\
                .update({"is_active": False, "updated_at": now})\
                .eq("id", room_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Room not found")

            self.supabase.table("room_participants")\
                .update({"is_active": False, "has_raised_hand": False, "updated_at": now})\
                .eq("room_id", room_id)\
                .execute()

            ActivityService(self.supabase).log(room_id, actor, "room_ended")
            hub.publish(room_id, "rooms", "UPDATE", new=result.data[0])
            return RoomResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_room(self, room_id: str) -> bool:
        """Delete a room and every row that belongs to it"""
        try:
            room = self.get_room(room_id)

            polls = self.supabase.table("polls").select("id").eq("room_id", room_id).execute()
            poll_ids = [p["id"] for p in (polls.data or [])]
            if poll_ids:
                self.supabase.table("poll_votes").delete().in_("poll_id", poll_ids).execute()
            self.supabase.table("polls").delete().eq("room_id", room_id).execute()

            files = self.supabase.table("files").select("file_path").eq("room_id", room_id).execute()
            paths = [f["file_path"] for f in (files.data or []) if f.get("file_path")]
            if paths:
                try:
                    get_file_storage(self.supabase).delete_files(paths)
                except Exception as e:
                    logger.warning(f"Could not remove stored files for room {room_id}: {e}")
            self.supabase.table("files").delete().eq("room_id", room_id).execute()

            self.supabase.table("room_messages").delete().eq("room_id", room_id).execute()
            self.supabase.table("room_participants").delete().eq("room_id", room_id).execute()
            self.supabase.table("room_analytics").delete().eq("room_id", room_id).execute()

            result = self.supabase.table("rooms")\
                .delete()\
                .eq("id", room_id)\
                .execute()

            hub.publish(room_id, "rooms", "DELETE", old=room.model_dump(mode="json"))
            return len(result.data) > 0
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def touch_room(self, room_id: str) -> None:
        """Bump last_active_at; failures only delay trending updates"""
        try:
            self.supabase.table("rooms")\
                .update({"last_active_at": utcnow_iso()})\
                .eq("id", room_id)\
                .execute()
        except Exception as e:
            logger.warning(f"Could not touch room {room_id}: {e}")
