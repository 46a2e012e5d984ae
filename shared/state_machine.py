from enum import Enum
from datetime import date, datetime
from typing import Optional, Union
from dataclasses import dataclass


class TournamentStatus(str, Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Category(str, Enum):
    OPEN = "Open Tournament"
    YOUTH = "Youth (Under 18)"
    ONLINE_BLITZ = "Online Blitz"
    RAPID = "Rapid"
    CLASSICAL = "Classical"
    BLITZ = "Blitz"


STATUS_VALUES = [s.value for s in TournamentStatus]
CATEGORY_VALUES = [c.value for c in Category]

# Statuses a tournament may hold while still shown on the public listing
LISTABLE_STATUSES = [TournamentStatus.UPCOMING.value, TournamentStatus.ONGOING.value]


class TransitionError(Exception):
    def __init__(self, from_state: str, to_state: str, reason: str = None):
        self.from_state = from_state
        self.to_state = to_state
        self.reason = reason or f"Cannot transition from {from_state} to {to_state}"
        super().__init__(self.reason)


@dataclass
class Transition:
    from_state: TournamentStatus
    to_state: TournamentStatus
    action: str


def _as_day(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def status_for_day(scheduled: Union[date, datetime], now: Union[date, datetime]) -> TournamentStatus:
    """Calendar-derived status, ignoring any administrator decision."""
    today = _as_day(now)
    day = _as_day(scheduled)
    if today > day:
        return TournamentStatus.COMPLETED
    if today == day:
        return TournamentStatus.ONGOING
    return TournamentStatus.UPCOMING


def reconcile_status(
    status: str,
    scheduled: Union[date, datetime],
    now: Union[date, datetime],
    winner: Optional[str] = None
) -> TournamentStatus:
    """
    Recompute a tournament's status from the calendar.

    Pure and idempotent. Cancelled tournaments never move, and neither does a
    tournament an administrator completed with a winner.
    """
    current = TournamentStatus(status)
    if current == TournamentStatus.CANCELLED:
        return current
    if current == TournamentStatus.COMPLETED and winner:
        return current
    return status_for_day(scheduled, now)


def is_publicly_listed(is_active: bool, list_until: Union[date, datetime],
                       status: str, now: Union[date, datetime]) -> bool:
    return bool(is_active) and _as_day(list_until) >= _as_day(now) and status in LISTABLE_STATUSES


def is_publicly_past(is_active: bool, status: str, winner: Optional[str]) -> bool:
    return bool(is_active) and status == TournamentStatus.COMPLETED.value and winner is not None


class TournamentStateMachine:
    """Administrator-driven transitions. Calendar moves go through reconcile_status."""

    TRANSITIONS = [
        Transition(TournamentStatus.UPCOMING, TournamentStatus.COMPLETED, "complete"),
        Transition(TournamentStatus.ONGOING, TournamentStatus.COMPLETED, "complete"),
        Transition(TournamentStatus.COMPLETED, TournamentStatus.COMPLETED, "complete"),
        Transition(TournamentStatus.CANCELLED, TournamentStatus.COMPLETED, "complete"),
        Transition(TournamentStatus.UPCOMING, TournamentStatus.CANCELLED, "cancel"),
        Transition(TournamentStatus.ONGOING, TournamentStatus.CANCELLED, "cancel"),
        # reinstated tournaments land on upcoming and are reconciled right after
        Transition(TournamentStatus.CANCELLED, TournamentStatus.UPCOMING, "reinstate"),
    ]

    def __init__(self, initial_state: TournamentStatus = TournamentStatus.UPCOMING):
        self._state = initial_state

    @property
    def state(self) -> TournamentStatus:
        return self._state

    def transition(self, action: str) -> TournamentStatus:
        for t in self.TRANSITIONS:
            if t.from_state == self._state and t.action == action:
                self._state = t.to_state
                return self._state

        raise TransitionError(
            self._state.value,
            "unknown",
            f"No valid transition for action '{action}' from state '{self._state.value}'"
        )

    @classmethod
    def from_state_string(cls, state_str: str) -> "TournamentStateMachine":
        try:
            state = TournamentStatus(state_str)
        except ValueError:
            state = TournamentStatus.UPCOMING
        return cls(initial_state=state)
