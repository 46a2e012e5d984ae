import logging
import re
from contextlib import contextmanager
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from shared.errors import NotFoundError, UpstreamError, ValidationError
from .models import db, Tournament, TournamentRecord, generate_tournament_id
from .queries import TournamentFilter

logger = logging.getLogger(__name__)

TOURNAMENT_ID_PATTERN = re.compile(r'^t_[0-9a-f]{12}$')

SORTABLE_COLUMNS = {
    'date': Tournament.date,
    'name': Tournament.name,
    'created_at': Tournament.created_at,
    'list_until': Tournament.list_until,
}

SEARCH_COLUMNS = (Tournament.name, Tournament.location, Tournament.category)

WRITABLE_FIELDS = frozenset(
    column.name for column in Tournament.__table__.columns
    if column.name not in ('id', 'tournament_id', 'created_at', 'updated_at')
)


def check_tournament_id(tournament_id: str) -> str:
    if not isinstance(tournament_id, str) or not TOURNAMENT_ID_PATTERN.match(tournament_id):
        raise ValidationError("Invalid tournament ID", field='id')
    return tournament_id


class TournamentRecordStore:
    """
    Document-style access to tournaments: lookups by opaque id, filtered finds,
    counts, inserts, partial updates and deletes. Every call hands back detached
    ``TournamentRecord`` values; database failures surface as ``UpstreamError``.
    """

    @contextmanager
    def _unit_of_work(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Record store failed to {action}: {e}")
            raise UpstreamError('record store', f"failed to {action}", cause=e) from e

    def _load(self, tournament_id: str) -> Tournament:
        check_tournament_id(tournament_id)
        row = Tournament.query.filter_by(tournament_id=tournament_id).first()
        if row is None:
            raise NotFoundError('Tournament', tournament_id)
        return row

    def _filtered_query(self, query_filter: TournamentFilter):
        query = Tournament.query

        if query_filter.search:
            term = query_filter.search
            query = query.filter(or_(*[
                column.icontains(term, autoescape=True) for column in SEARCH_COLUMNS
            ]))

        if query_filter.is_active is not None:
            query = query.filter(Tournament.is_active == query_filter.is_active)

        if query_filter.statuses:
            query = query.filter(Tournament.status.in_(query_filter.statuses))

        if query_filter.category:
            query = query.filter(Tournament.category == query_filter.category)

        if query_filter.list_until_from is not None:
            query = query.filter(Tournament.list_until >= query_filter.list_until_from)

        if query_filter.winner_required:
            query = query.filter(Tournament.winner.isnot(None))

        return query

    def find(
        self,
        query_filter: TournamentFilter,
        sort: List[Tuple[str, bool]] = None,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> List[TournamentRecord]:
        with self._unit_of_work('find tournaments'):
            query = self._filtered_query(query_filter)

            for field_name, descending in sort or []:
                column = SORTABLE_COLUMNS[field_name]
                query = query.order_by(column.desc() if descending else column.asc())
            # stable ordering between rows sharing a date
            query = query.order_by(Tournament.id.asc())

            if skip:
                query = query.offset(skip)
            if limit is not None:
                query = query.limit(limit)

            return [row.to_record() for row in query.all()]

    def count(self, query_filter: TournamentFilter) -> int:
        with self._unit_of_work('count tournaments'):
            return self._filtered_query(query_filter).count()

    def get(self, tournament_id: str) -> TournamentRecord:
        with self._unit_of_work('load tournament'):
            return self._load(tournament_id).to_record()

    def insert(self, fields: dict) -> TournamentRecord:
        unknown = set(fields) - WRITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown tournament fields: {', '.join(sorted(unknown))}")

        with self._unit_of_work('insert tournament'):
            row = Tournament(tournament_id=generate_tournament_id(), **fields)
            db.session.add(row)
            db.session.commit()
            return row.to_record()

    def update(self, tournament_id: str, fields: dict) -> TournamentRecord:
        unknown = set(fields) - WRITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown tournament fields: {', '.join(sorted(unknown))}")

        with self._unit_of_work('update tournament'):
            row = self._load(tournament_id)
            for key, value in fields.items():
                setattr(row, key, value)
            db.session.commit()
            return row.to_record()

    def delete(self, tournament_id: str) -> bool:
        with self._unit_of_work('delete tournament'):
            row = self._load(tournament_id)
            db.session.delete(row)
            db.session.commit()
            return True
