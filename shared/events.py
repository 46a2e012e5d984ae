from enum import Enum
from dataclasses import dataclass
from datetime import datetime
import json


class EventType(str, Enum):
    TOURNAMENT_CREATED = "tournament.created"
    TOURNAMENT_UPDATED = "tournament.updated"
    TOURNAMENT_DELETED = "tournament.deleted"
    TOURNAMENT_COMPLETED = "tournament.completed"
    TOURNAMENT_CANCELLED = "tournament.cancelled"
    TOURNAMENT_REINSTATED = "tournament.reinstated"
    VISIBILITY_CHANGED = "tournament.visibility_changed"
    PARTICIPANTS_CHANGED = "tournament.participants_changed"

    # Calendar-driven status moves
    STATE_CHANGED = "state.changed"


@dataclass
class Event:
    type: EventType
    tournament_id: str
    timestamp: str = None
    data: dict = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.utcnow().isoformat() + "Z"
        if self.data is None:
            self.data = {}

    def to_dict(self) -> dict:
        return {
            "type": self.type.value if isinstance(self.type, EventType) else self.type,
            "tournament_id": self.tournament_id,
            "timestamp": self.timestamp,
            "data": self.data
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def state_changed_event(tournament_id: str, from_state: str, to_state: str) -> Event:
    return Event(
        type=EventType.STATE_CHANGED,
        tournament_id=tournament_id,
        data={
            "from_state": from_state,
            "to_state": to_state
        }
    )


def tournament_completed_event(tournament_id: str, winner: str, final_participants: int) -> Event:
    return Event(
        type=EventType.TOURNAMENT_COMPLETED,
        tournament_id=tournament_id,
        data={
            "winner": winner,
            "final_participants": final_participants
        }
    )


def participants_changed_event(tournament_id: str, current: int, maximum: int) -> Event:
    return Event(
        type=EventType.PARTICIPANTS_CHANGED,
        tournament_id=tournament_id,
        data={
            "current_participants": current,
            "max_participants": maximum
        }
    )


def visibility_changed_event(tournament_id: str, is_active: bool) -> Event:
    return Event(
        type=EventType.VISIBILITY_CHANGED,
        tournament_id=tournament_id,
        data={"is_active": is_active}
    )
