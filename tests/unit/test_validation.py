"""
Unit tests for payload and poster validation.
"""
import pytest
from datetime import date

from academy.validation import (
    ImagePayload,
    parse_int,
    validate_image,
    validate_tournament_fields,
    validate_winner,
)
from shared.errors import ValidationError


class TestValidateTournamentFields:
    """Tests for validate_tournament_fields."""

    def test_valid_payload_is_cleaned(self, tournament_payload):
        cleaned = validate_tournament_fields(tournament_payload(name='  Spring Rapid Open  '))

        assert cleaned['name'] == 'Spring Rapid Open'
        assert cleaned['date'] == date(2026, 5, 20)
        assert cleaned['list_until'] == date(2026, 5, 20)
        assert cleaned['max_participants'] == 32
        assert 'current_participants' not in cleaned
        assert 'status' not in cleaned

    def test_form_strings_are_parsed(self, tournament_payload):
        """Multipart forms send everything as text."""
        cleaned = validate_tournament_fields(tournament_payload(
            max_participants='16',
            current_participants='4',
            is_active='false',
            date='2026-05-20T00:00:00.000Z'
        ))

        assert cleaned['max_participants'] == 16
        assert cleaned['current_participants'] == 4
        assert cleaned['is_active'] is False
        assert cleaned['date'] == date(2026, 5, 20)

    def test_missing_fields_reported_together(self, tournament_payload):
        data = tournament_payload()
        del data['name']
        data['location'] = '   '

        with pytest.raises(ValidationError) as exc_info:
            validate_tournament_fields(data)

        details = exc_info.value.details
        assert set(details) == {'name', 'location'}

    def test_text_length_limits(self, tournament_payload):
        with pytest.raises(ValidationError) as exc_info:
            validate_tournament_fields(tournament_payload(description='x' * 1001))
        assert 'description' in exc_info.value.details

    def test_registration_link_must_be_url(self, tournament_payload):
        with pytest.raises(ValidationError) as exc_info:
            validate_tournament_fields(tournament_payload(registration_link='example.com'))
        assert 'registration_link' in exc_info.value.details

    def test_category_must_be_known(self, tournament_payload):
        with pytest.raises(ValidationError) as exc_info:
            validate_tournament_fields(tournament_payload(category='Bullet'))
        assert 'category' in exc_info.value.details

    @pytest.mark.parametrize("value", [0, 1001, 'many', 2.5])
    def test_max_participants_bounds(self, tournament_payload, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_tournament_fields(tournament_payload(max_participants=value))
        assert 'max_participants' in exc_info.value.details

    def test_current_cannot_exceed_max(self, tournament_payload):
        with pytest.raises(ValidationError) as exc_info:
            validate_tournament_fields(tournament_payload(max_participants=8, current_participants=9))
        assert 'current_participants' in exc_info.value.details

    def test_negative_current_rejected(self, tournament_payload):
        with pytest.raises(ValidationError):
            validate_tournament_fields(tournament_payload(current_participants=-1))

    def test_bad_date(self, tournament_payload):
        with pytest.raises(ValidationError) as exc_info:
            validate_tournament_fields(tournament_payload(list_until='next week'))
        assert 'list_until' in exc_info.value.details

    def test_status_must_be_known(self, tournament_payload):
        with pytest.raises(ValidationError):
            validate_tournament_fields(tournament_payload(status='archived'))

    def test_status_passes_through(self, tournament_payload):
        assert validate_tournament_fields(tournament_payload(status='cancelled'))['status'] == 'cancelled'


class TestParseInt:
    """Tests for parse_int."""

    def test_booleans_rejected(self):
        with pytest.raises(ValidationError):
            parse_int(True, 'count')

    def test_whole_floats_accepted(self):
        assert parse_int(4.0, 'count') == 4

    def test_minimum(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_int(-1, 'count', minimum=0)
        assert exc_info.value.field == 'count'


class TestValidateImage:
    """Tests for poster image checks."""

    def test_none_is_allowed(self):
        validate_image(None, 100)

    def test_image_accepted(self):
        validate_image(ImagePayload(data=b'\x89PNG', content_type='image/png'), 100)

    def test_non_image_rejected(self):
        with pytest.raises(ValidationError):
            validate_image(ImagePayload(data=b'%PDF', content_type='application/pdf'), 100)

    def test_oversized_rejected(self):
        with pytest.raises(ValidationError):
            validate_image(ImagePayload(data=b'x' * 101, content_type='image/jpeg'), 100)

    def test_empty_rejected(self):
        with pytest.raises(ValidationError):
            validate_image(ImagePayload(data=b'', content_type='image/jpeg'), 100)


class TestValidateWinner:
    """Tests for validate_winner."""

    def test_trims(self):
        assert validate_winner('  Alice  ') == 'Alice'

    @pytest.mark.parametrize("winner", ['', '   ', None, 42])
    def test_blank_rejected(self, winner):
        with pytest.raises(ValidationError):
            validate_winner(winner)
