from supabase import Client
from app.config.room_permissions import get_room_role, role_allows
from app.modules.polls.schemas import PollCreate, PollResponse, PollOptionResult
from app.modules.participants.service import ParticipantService
from app.modules.rooms.service import RoomService
from app.modules.activity.service import ActivityService
from app.modules.realtime.hub import hub
from app.database.supabase_client import fetch_one, is_unique_violation, utcnow_iso
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def tally_votes(options: List[str], votes: List[Dict[str, Any]]) -> List[PollOptionResult]:
    """Per-option counts with whole-number percentages (0 when nobody voted)"""
    counts = [0] * len(options)
    for vote in votes:
        index = vote.get("option_index")
        if isinstance(index, int) and 0 <= index < len(counts):
            counts[index] += 1
    total = sum(counts)
    return [
        PollOptionResult(
            index=i,
            option=option,
            votes=counts[i],
            # halves round up, 1 of 8 is 13%
            percentage=int(counts[i] * 100 / total + 0.5) if total else 0,
        )
        for i, option in enumerate(options)
    ]


class PollService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.rooms = RoomService(supabase)
        self.participants = ParticipantService(supabase)
        self.activity = ActivityService(supabase)

    def _build_response(self, poll: Dict[str, Any], votes: List[Dict[str, Any]], viewer_id: Optional[str]) -> PollResponse:
        results = tally_votes(poll["options"], votes)
        my_vote = next((v["option_index"] for v in votes if viewer_id and v.get("profile_id") == viewer_id), None)
        return PollResponse(
            **poll,
            results=results,
            total_votes=sum(r.votes for r in results),
            has_voted=my_vote is not None,
            my_vote=my_vote,
        )

    def _get_poll_row(self, poll_id: str) -> Dict[str, Any]:
        poll = fetch_one(
            self.supabase.table("polls")
            .select("*")
            .eq("id", poll_id)
            .maybe_single()
        )
        if not poll:
            raise HTTPException(status_code=404, detail="Poll not found")
        return poll

    def _votes_for(self, poll_ids: List[str]) -> List[Dict[str, Any]]:
        if not poll_ids:
            return []
        result = self.supabase.table("poll_votes")\
            .select("poll_id, profile_id, option_index")\
            .in_("poll_id", poll_ids)\
            .execute()
        return result.data or []

    def create_poll(self, room_id: str, actor: dict, poll_data: PollCreate) -> PollResponse:
        """Create a poll in a room (moderators only)"""
        self.rooms.get_active_room(room_id)
        try:
            result = self.supabase.table("polls").insert({
                "room_id": room_id,
                "created_by": actor["id"],
                "question": poll_data.question,
                "options": poll_data.options,
                "is_closed": False,
                "created_at": utcnow_iso(),
            }).execute()
        except Exception as e:
            logger.error(f"Error creating poll in room {room_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to create poll")
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to create poll")

        poll = result.data[0]
        hub.publish(room_id, "polls", "INSERT", new=poll)
        self.activity.log(room_id, actor, "poll_created", {"poll_id": poll["id"], "question": poll["question"]})
        return self._build_response(poll, [], actor["id"])

    def get_poll(self, poll_id: str, viewer_id: Optional[str] = None) -> PollResponse:
        poll = self._get_poll_row(poll_id)
        return self._build_response(poll, self._votes_for([poll_id]), viewer_id)

    def list_polls(self, room_id: str, viewer_id: Optional[str] = None) -> List[PollResponse]:
        """Polls in a room, newest first, with tallies from one batched votes query"""
        try:
            self.rooms.get_room(room_id)
            result = self.supabase.table("polls")\
                .select("*")\
                .eq("room_id", room_id)\
                .order("created_at", desc=True)\
                .execute()
            polls = result.data or []
            votes = self._votes_for([p["id"] for p in polls])
            by_poll: Dict[str, List[Dict[str, Any]]] = {}
            for vote in votes:
                by_poll.setdefault(vote["poll_id"], []).append(vote)
            return [self._build_response(p, by_poll.get(p["id"], []), viewer_id) for p in polls]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def vote(self, poll_id: str, actor: dict, option_index: int) -> PollResponse:
        poll = self._get_poll_row(poll_id)
        if poll.get("is_closed"):
            raise HTTPException(status_code=409, detail="Poll is closed")
        if not 0 <= option_index < len(poll["options"]):
            raise HTTPException(status_code=400, detail="Invalid poll option")

        participant = self.participants.get_active_participant(poll["room_id"], actor)
        if not role_allows(get_room_role(participant), "poll:vote"):
            raise HTTPException(status_code=403, detail="You cannot vote in this room")

        existing = fetch_one(
            self.supabase.table("poll_votes")
            .select("id")
            .eq("poll_id", poll_id)
            .eq("profile_id", actor["id"])
            .maybe_single()
        )
        if existing:
            raise HTTPException(status_code=409, detail="You've already voted in this poll")

        try:
            result = self.supabase.table("poll_votes").insert({
                "poll_id": poll_id,
                "profile_id": actor["id"],
                "option_index": option_index,
                "created_at": utcnow_iso(),
            }).execute()
        except Exception as e:
            if is_unique_violation(e):
                raise HTTPException(status_code=409, detail="You've already voted in this poll")
            logger.error(f"Error voting in poll {poll_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to submit vote")

        if result.data:
            hub.publish(poll["room_id"], "poll_votes", "INSERT", new=result.data[0])
        return self.get_poll(poll_id, viewer_id=actor["id"])

    def close_poll(self, poll_id: str, actor: dict) -> PollResponse:
        poll = self._get_poll_row(poll_id)
        if poll.get("is_closed"):
            return self.get_poll(poll_id, viewer_id=actor["id"])
        try:
            result = self.supabase.table("polls")\
                .update({"is_closed": True})\
                .eq("id", poll_id)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if result.data:
            hub.publish(poll["room_id"], "polls", "UPDATE", new=result.data[0], old=poll)
        self.activity.log(poll["room_id"], actor, "poll_closed", {"poll_id": poll_id})
        return self.get_poll(poll_id, viewer_id=actor["id"])

    def get_room_id(self, poll_id: str) -> str:
        return self._get_poll_row(poll_id)["room_id"]
