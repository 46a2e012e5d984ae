import logging
from datetime import date, datetime
from typing import Callable, List, Optional, Union

from shared.errors import NotFoundError, UpstreamError, ValidationError
from shared.events import (
    Event,
    EventType,
    participants_changed_event,
    state_changed_event,
    tournament_completed_event,
    visibility_changed_event,
)
from shared.pubsub import EventPublisher
from shared.state_machine import (
    TournamentStateMachine,
    TournamentStatus,
    TransitionError,
    is_publicly_listed,
    is_publicly_past,
    reconcile_status,
    status_for_day,
)
from .models import PastTournament, TournamentRecord
from .mutations import MutationCoordinator
from .queries import (
    Page,
    build_page,
    past_winners_query,
    project_admin_query,
    public_listing_query,
)
from .record_store import check_tournament_id
from .validation import (
    ImagePayload,
    parse_int,
    validate_tournament_fields,
    validate_winner,
)

logger = logging.getLogger(__name__)


def status_fields(status: str) -> dict:
    """Fields to write for a status change; results only survive on completed tournaments."""
    fields = {'status': status}
    if status != TournamentStatus.COMPLETED.value:
        fields['winner'] = None
        fields['final_participants'] = None
    return fields


class TournamentRegistry:
    """
    Manages tournament lifecycle:
    - Create/update/delete tournament records (with poster images)
    - Keep status in line with the calendar on every read
    - Administrator actions: participants, completion, visibility, cancellation
    - Public listings and the admin listing
    """

    def __init__(
        self,
        store,
        coordinator: MutationCoordinator,
        publisher: Optional[EventPublisher] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
        past_limit: int = 6,
        page_size: int = 10
    ):
        self.store = store
        self.coordinator = coordinator
        self.publisher = publisher
        self.clock = clock
        self.past_limit = past_limit
        self.page_size = page_size

    def _publish(self, event: Event):
        if self.publisher:
            self.publisher.publish_tournament_event(event)

    def reconcile(self, record: TournamentRecord, now: Union[date, datetime] = None) -> TournamentRecord:
        """
        Return the record with its calendar-derived status, writing the new status
        through when it changed. A failed write is logged; the computed value is
        returned regardless.
        """
        now = now or self.clock()
        computed = self._computed_status(record, record.date, now)
        if computed == record.status:
            return record

        fields = status_fields(computed)
        reconciled = record.with_changes(**fields)
        try:
            self.store.update(record.id, fields)
        except (NotFoundError, UpstreamError) as e:
            logger.warning(f"Could not persist status {computed} for {record.id}: {e}")
            return reconciled

        logger.info(f"Tournament {record.id} moved {record.status} -> {computed}")
        self._publish(state_changed_event(record.id, record.status, computed))
        return reconciled

    @staticmethod
    def _computed_status(record: TournamentRecord, scheduled: date, now: Union[date, datetime]) -> str:
        try:
            return reconcile_status(record.status, scheduled, now, record.winner).value
        except ValueError:
            logger.warning(f"Tournament {record.id} has unrecognised status '{record.status}', leaving it as stored")
            return record.status

    # ==================== Reads ====================

    def get_tournament(self, tournament_id: str, now: Union[date, datetime] = None) -> TournamentRecord:
        return self.reconcile(self.store.get(tournament_id), now)

    def list_public(self, now: Union[date, datetime] = None) -> List[TournamentRecord]:
        """Publicly listed tournaments, soonest first, with statuses reconciled."""
        now = now or self.clock()
        descriptor = public_listing_query(now)
        records = self.store.find(descriptor.filter, descriptor.sort, descriptor.skip, descriptor.limit)

        listed = []
        for record in records:
            record = self.reconcile(record, now)
            if is_publicly_listed(record.is_active, record.list_until, record.status, now):
                listed.append(record)
        return listed

    def list_past(self, limit: Union[int, str] = None) -> List[PastTournament]:
        descriptor = past_winners_query(self.past_limit if limit is None else limit)
        records = self.store.find(descriptor.filter, descriptor.sort, descriptor.skip, descriptor.limit)
        return [
            PastTournament(
                name=r.name,
                date=r.date,
                winner=r.winner,
                final_participants=r.final_participants,
                prize_pool=r.prize_pool
            )
            for r in records
            if is_publicly_past(r.is_active, r.status, r.winner)
        ]

    def list_admin(
        self,
        search: str = '',
        status: str = 'all',
        category: str = 'all',
        page: Union[int, str] = 1,
        limit: Union[int, str] = None,
        now: Union[date, datetime] = None
    ) -> Page:
        descriptor = project_admin_query(
            search=search,
            status=status,
            category=category,
            page=page,
            limit=self.page_size if limit is None else limit
        )
        records = self.store.find(descriptor.filter, descriptor.sort, descriptor.skip, descriptor.limit)
        total = self.store.count(descriptor.filter)

        now = now or self.clock()
        return build_page([self.reconcile(r, now) for r in records], total, descriptor)

    # ==================== Record mutations ====================

    def create_tournament(self, data: dict, image: Optional[ImagePayload] = None,
                          now: Union[date, datetime] = None) -> TournamentRecord:
        fields = validate_tournament_fields(data)
        if 'status' not in fields:
            fields['status'] = status_for_day(fields['date'], now or self.clock()).value
        fields.update(status_fields(fields['status']))

        record = self.coordinator.create(fields, image)
        self._publish(Event(type=EventType.TOURNAMENT_CREATED, tournament_id=record.id,
                            data={'name': record.name, 'status': record.status}))
        return record

    def update_tournament(self, tournament_id: str, data: dict,
                          image: Optional[ImagePayload] = None,
                          now: Union[date, datetime] = None) -> TournamentRecord:
        """
        Replace a tournament's details. Status is not editable here: it is
        re-derived from the (possibly new) date, and administrator status
        changes go through complete/cancel/reinstate.
        """
        check_tournament_id(tournament_id)
        fields = validate_tournament_fields(data)
        now = now or self.clock()

        def prepare(existing: TournamentRecord, requested: dict) -> dict:
            current = requested.get('current_participants', existing.current_participants)
            if current > requested['max_participants']:
                raise ValidationError(
                    "Current participants cannot exceed maximum participants",
                    field='max_participants'
                )
            asked = requested.pop('status', None)
            if asked and asked != existing.status:
                logger.info(f"Ignoring status '{asked}' in update of {tournament_id}")
            requested.update(status_fields(self._computed_status(existing, requested['date'], now)))
            return requested

        record = self.coordinator.update(tournament_id, fields, image, prepare=prepare)
        self._publish(Event(type=EventType.TOURNAMENT_UPDATED, tournament_id=record.id,
                            data={'poster_replaced': image is not None}))
        return record

    def delete_tournament(self, tournament_id: str) -> TournamentRecord:
        deleted = self.coordinator.delete(tournament_id)
        self._publish(Event(type=EventType.TOURNAMENT_DELETED, tournament_id=tournament_id,
                            data={'name': deleted.name}))
        return deleted

    # ==================== Lifecycle actions ====================

    def update_participant_count(self, tournament_id: str, new_count) -> TournamentRecord:
        check_tournament_id(tournament_id)
        new_count = parse_int(new_count, 'current_participants', minimum=0)

        record = self.store.get(tournament_id)
        if new_count > record.max_participants:
            raise ValidationError(
                "Current participants cannot exceed maximum participants",
                field='current_participants'
            )

        updated = self.store.update(tournament_id, {'current_participants': new_count})
        logger.info(f"Tournament {tournament_id} participants set to {new_count}")
        self._publish(participants_changed_event(tournament_id, new_count, updated.max_participants))
        return updated

    def complete_tournament(self, tournament_id: str, winner: str,
                            final_participants=None) -> TournamentRecord:
        """Mark a tournament completed with its winner. Allowed before the scheduled date."""
        check_tournament_id(tournament_id)
        winner = validate_winner(winner)
        if final_participants not in (None, ''):
            final_participants = parse_int(final_participants, 'final_participants', minimum=0)
        else:
            final_participants = None

        record = self.store.get(tournament_id)
        sm = TournamentStateMachine.from_state_string(record.status)
        new_state = self._transition(sm, 'complete')

        if final_participants is None:
            final_participants = record.current_participants

        updated = self.store.update(tournament_id, {
            'status': new_state.value,
            'winner': winner,
            'final_participants': final_participants,
        })
        logger.info(f"Tournament {tournament_id} completed, winner {winner}")
        self._publish(tournament_completed_event(tournament_id, winner, final_participants))
        return updated

    def toggle_active(self, tournament_id: str) -> TournamentRecord:
        record = self.store.get(tournament_id)
        updated = self.store.update(tournament_id, {'is_active': not record.is_active})
        logger.info(f"Tournament {tournament_id} {'activated' if updated.is_active else 'deactivated'}")
        self._publish(visibility_changed_event(tournament_id, updated.is_active))
        return updated

    def cancel_tournament(self, tournament_id: str) -> TournamentRecord:
        record = self.store.get(tournament_id)
        sm = TournamentStateMachine.from_state_string(record.status)
        new_state = self._transition(sm, 'cancel')

        updated = self.store.update(tournament_id, status_fields(new_state.value))
        logger.info(f"Tournament {tournament_id} cancelled")
        self._publish(Event(type=EventType.TOURNAMENT_CANCELLED, tournament_id=tournament_id,
                            data={'from_state': record.status}))
        return updated

    def reinstate_tournament(self, tournament_id: str, now: Union[date, datetime] = None) -> TournamentRecord:
        """Undo a cancellation; the status is taken from the calendar again."""
        record = self.store.get(tournament_id)
        sm = TournamentStateMachine.from_state_string(record.status)
        self._transition(sm, 'reinstate')

        status = status_for_day(record.date, now or self.clock()).value
        updated = self.store.update(tournament_id, status_fields(status))
        logger.info(f"Tournament {tournament_id} reinstated as {status}")
        self._publish(Event(type=EventType.TOURNAMENT_REINSTATED, tournament_id=tournament_id,
                            data={'status': status}))
        return updated

    @staticmethod
    def _transition(sm: TournamentStateMachine, action: str) -> TournamentStatus:
        try:
            return sm.transition(action)
        except TransitionError as e:
            raise ValidationError(str(e), field='status') from e
