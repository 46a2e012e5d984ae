import uuid
from dataclasses import dataclass, asdict, replace
from datetime import date, datetime
from typing import Optional

from flask_sqlalchemy import SQLAlchemy

from shared.state_machine import TournamentStatus

db = SQLAlchemy()

DEFAULT_POSTER = '🏆'


def generate_tournament_id() -> str:
    return f"t_{uuid.uuid4().hex[:12]}"


class Tournament(db.Model):
    __tablename__ = 'tournaments'

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(db.String(50), unique=True, nullable=False, index=True)
    name = db.Column(db.String(150), nullable=False)
    date = db.Column(db.Date, nullable=False)
    time = db.Column(db.String(50), nullable=False)
    location = db.Column(db.String(200), nullable=False)
    address = db.Column(db.String(300), nullable=False)
    entry_fee = db.Column(db.String(100), nullable=False)
    prize_pool = db.Column(db.String(100), nullable=False)
    max_participants = db.Column(db.Integer, nullable=False)
    current_participants = db.Column(db.Integer, nullable=False, default=0)
    format = db.Column(db.String(100), nullable=False)
    time_control = db.Column(db.String(100), nullable=False)
    category = db.Column(db.String(50), nullable=False)
    registration_link = db.Column(db.String(500), nullable=False)
    poster = db.Column(db.String(16), nullable=False, default=DEFAULT_POSTER)
    poster_image = db.Column(db.String(500), nullable=True)  # URL in the blob store
    description = db.Column(db.String(1000), nullable=False)
    list_until = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=TournamentStatus.UPCOMING.value)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # Results
    winner = db.Column(db.String(150), nullable=True)
    final_participants = db.Column(db.Integer, nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.Index('ix_tournaments_date_status', 'date', 'status'),
        db.Index('ix_tournaments_list_until_active', 'list_until', 'is_active'),
    )

    def to_record(self) -> 'TournamentRecord':
        return TournamentRecord(
            id=self.tournament_id,
            name=self.name,
            date=self.date,
            time=self.time,
            location=self.location,
            address=self.address,
            entry_fee=self.entry_fee,
            prize_pool=self.prize_pool,
            max_participants=self.max_participants,
            current_participants=self.current_participants,
            format=self.format,
            time_control=self.time_control,
            category=self.category,
            registration_link=self.registration_link,
            poster=self.poster,
            poster_image=self.poster_image,
            description=self.description,
            list_until=self.list_until,
            status=self.status,
            is_active=self.is_active,
            winner=self.winner,
            final_participants=self.final_participants,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


@dataclass
class TournamentRecord:
    """Detached view of a stored tournament, handed to callers instead of ORM rows."""

    id: str
    name: str
    date: date
    time: str
    location: str
    address: str
    entry_fee: str
    prize_pool: str
    max_participants: int
    current_participants: int
    format: str
    time_control: str
    category: str
    registration_link: str
    description: str
    list_until: date
    status: str = TournamentStatus.UPCOMING.value
    is_active: bool = True
    poster: str = DEFAULT_POSTER
    poster_image: Optional[str] = None
    winner: Optional[str] = None
    final_participants: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def with_changes(self, **changes) -> 'TournamentRecord':
        return replace(self, **changes)

    def to_dict(self) -> dict:
        data = asdict(self)
        for key in ('date', 'list_until', 'created_at', 'updated_at'):
            value = data[key]
            data[key] = value.isoformat() if value else None
        return data


@dataclass
class PastTournament:
    name: str
    date: date
    winner: str
    final_participants: Optional[int] = None
    prize_pool: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'date': self.date.isoformat() if self.date else None,
            'winner': self.winner,
            'final_participants': self.final_participants,
            'prize_pool': self.prize_pool,
        }
