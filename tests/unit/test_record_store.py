"""
Unit tests for TournamentRecordStore.
Tests: insert, get, find (filters, sort, pagination), count, update, delete, failure mapping
"""
import pytest
from datetime import date

from sqlalchemy.exc import OperationalError

from academy.models import db
from academy.queries import TournamentFilter
from shared.errors import NotFoundError, UpstreamError, ValidationError


class TestInsertAndGet:
    """Tests for insert and get."""

    def test_insert_assigns_id_and_timestamps(self, make_tournament):
        record = make_tournament()

        assert record.id.startswith('t_')
        assert len(record.id) == 14
        assert record.created_at is not None
        assert record.updated_at is not None
        assert record.poster == '🏆'
        assert record.is_active is True

    def test_get_round_trips_fields(self, store, make_tournament):
        created = make_tournament(name='Youth Cup', category='Youth (Under 18)')

        found = store.get(created.id)

        assert found.name == 'Youth Cup'
        assert found.category == 'Youth (Under 18)'
        assert found.date == date(2026, 5, 20)

    def test_get_missing(self, store):
        with pytest.raises(NotFoundError):
            store.get('t_000000000000')

    @pytest.mark.parametrize("bad_id", ['nonexistent', '123', 't_XYZ', None])
    def test_get_malformed_id(self, store, bad_id):
        with pytest.raises(ValidationError) as exc_info:
            store.get(bad_id)
        assert exc_info.value.message == 'Invalid tournament ID'

    def test_insert_unknown_field(self, store):
        with pytest.raises(ValidationError):
            store.insert({'name': 'x', 'sponsor': 'ACME'})


class TestFind:
    """Tests for find and count."""

    def test_search_is_case_insensitive_across_fields(self, store, make_tournament):
        make_tournament(name='Monsoon BLITZ Night', category='Blitz')
        make_tournament(name='Summer Classic', location='Blitzburg Hall', category='Classical')
        make_tournament(name='Rapid Open', category='Online Blitz')
        make_tournament(name='Quiet Classical', category='Classical')

        found = store.find(TournamentFilter(search='blitz'))

        assert len(found) == 3
        assert store.count(TournamentFilter(search='blitz')) == 3

    def test_search_treats_wildcards_literally(self, store, make_tournament):
        make_tournament(name='Open 100%')
        make_tournament(name='Open 1000')

        assert store.count(TournamentFilter(search='100%')) == 1

    def test_active_status_and_category_filters(self, store, make_tournament):
        make_tournament(is_active=False)
        make_tournament(status='cancelled')
        make_tournament(category='Blitz')

        assert store.count(TournamentFilter(is_active=False)) == 1
        assert store.count(TournamentFilter(statuses=['cancelled'])) == 1
        assert store.count(TournamentFilter(category='Blitz')) == 1
        assert store.count(TournamentFilter()) == 3

    def test_list_until_and_winner_filters(self, store, make_tournament):
        make_tournament(list_until=date(2026, 5, 9))
        make_tournament(list_until=date(2026, 5, 10))
        make_tournament(status='completed', winner='Alice')

        assert store.count(TournamentFilter(list_until_from=date(2026, 5, 10))) == 2
        assert store.count(TournamentFilter(winner_required=True)) == 1

    def test_sort_and_pagination(self, store, make_tournament):
        for day in (3, 1, 2, 5, 4):
            make_tournament(name=f'Day {day}', date=date(2026, 7, day))

        ascending = store.find(TournamentFilter(), sort=[('date', False)])
        assert [r.name for r in ascending] == ['Day 1', 'Day 2', 'Day 3', 'Day 4', 'Day 5']

        page = store.find(TournamentFilter(), sort=[('date', True)], skip=2, limit=2)
        assert [r.name for r in page] == ['Day 3', 'Day 2']


class TestUpdateAndDelete:
    """Tests for update and delete."""

    def test_partial_update(self, store, make_tournament):
        created = make_tournament()

        updated = store.update(created.id, {'current_participants': 12})

        assert updated.current_participants == 12
        assert updated.name == created.name
        assert store.get(created.id).current_participants == 12

    def test_update_missing(self, store):
        with pytest.raises(NotFoundError):
            store.update('t_000000000000', {'is_active': False})

    def test_update_unknown_field(self, store, make_tournament):
        created = make_tournament()
        with pytest.raises(ValidationError):
            store.update(created.id, {'tournament_id': 't_111111111111'})

    def test_delete(self, store, make_tournament):
        created = make_tournament()

        assert store.delete(created.id) is True

        with pytest.raises(NotFoundError):
            store.get(created.id)

    def test_delete_missing(self, store):
        with pytest.raises(NotFoundError):
            store.delete('t_000000000000')


class TestFailureMapping:
    """Database failures surface as UpstreamError."""

    def test_commit_failure(self, store, make_tournament, mocker):
        created = make_tournament()
        mocker.patch.object(
            db.session, 'commit',
            side_effect=OperationalError('UPDATE tournaments', {}, Exception('database is locked'))
        )

        with pytest.raises(UpstreamError) as exc_info:
            store.update(created.id, {'is_active': False})

        assert exc_info.value.service == 'record store'
        assert isinstance(exc_info.value.cause, OperationalError)
