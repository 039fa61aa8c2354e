"""
Room Roles and Capabilities Configuration
This config defines which in-room actions each participant role may perform.
Roles are derived from room_participants flags, not stored separately.
"""

from typing import Dict, List, Optional

# Define room resources and their actions
RESOURCES = {
    "room": {
        "actions": ["update", "end"],
        "description": "Room settings and lifecycle"
    },
    "participant": {
        "actions": ["promote", "demote", "mute", "kick"],
        "description": "Moderation of other participants"
    },
    "poll": {
        "actions": ["create", "close", "vote"],
        "description": "Room polls"
    },
    "message": {
        "actions": ["send", "moderate"],
        "description": "Room chat"
    },
    "file": {
        "actions": ["upload", "moderate"],
        "description": "Shared room files"
    },
    "self": {
        "actions": ["unmute", "raise_hand"],
        "description": "Actions a participant takes on their own row"
    }
}

# Role definitions, most privileged first
ROLE_TYPES = {
    "moderator": {
        "permissions": [
            "room:update", "room:end",
            "participant:promote", "participant:demote", "participant:mute", "participant:kick",
            "poll:create", "poll:close", "poll:vote",
            "message:send", "message:moderate",
            "file:upload", "file:moderate",
            "self:unmute",
        ],
        "description": "Room host or co-host"
    },
    "speaker": {
        "permissions": ["poll:vote", "message:send", "file:upload", "self:unmute"],
        "description": "On stage, may unmute"
    },
    "listener": {
        "permissions": ["poll:vote", "message:send", "file:upload", "self:raise_hand"],
        "description": "In the audience, may raise a hand"
    }
}


def get_room_role(participant: Optional[Dict]) -> Optional[str]:
    """Derive the room role from a room_participants row. Inactive or missing rows have no role."""
    if not participant or not participant.get("is_active", False):
        return None
    if participant.get("is_moderator"):
        return "moderator"
    if participant.get("is_speaker"):
        return "speaker"
    return "listener"


def role_allows(role: Optional[str], action: str) -> bool:
    if role is None:
        return False
    return action in ROLE_TYPES.get(role, {}).get("permissions", [])


def get_capability_matrix() -> Dict[str, List[str]]:
    """
    Returns every known action with the roles allowed to perform it.
    Format: {"room:update": ["moderator"], "poll:vote": ["moderator", "speaker", "listener"], ...}
    """
    matrix: Dict[str, List[str]] = {}
    for resource, config in RESOURCES.items():
        for action in config["actions"]:
            name = f"{resource}:{action}"
            matrix[name] = [role for role in ROLE_TYPES if role_allows(role, name)]
    return matrix
