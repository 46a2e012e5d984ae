"""Boundary validation for tournament payloads and poster uploads."""
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from shared.errors import ValidationError
from shared.state_machine import CATEGORY_VALUES, STATUS_VALUES

URL_PATTERN = re.compile(r'^https?://.+')
MAX_PARTICIPANTS_LIMIT = 1000

# field -> max length; every one of these is required and trimmed
TEXT_FIELDS = {
    'name': 150,
    'time': 50,
    'location': 200,
    'address': 300,
    'entry_fee': 100,
    'prize_pool': 100,
    'format': 100,
    'time_control': 100,
    'registration_link': 500,
    'description': 1000,
}
DATE_FIELDS = ('date', 'list_until')
REQUIRED_FIELDS = tuple(TEXT_FIELDS) + DATE_FIELDS + ('max_participants', 'category')


@dataclass
class ImagePayload:
    data: bytes
    content_type: str
    filename: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


def parse_date(value, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            pass
    raise ValidationError(f"{field} must be a date (YYYY-MM-DD)", field=field)


def parse_int(value, field: str, minimum: int = None, maximum: int = None) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer", field=field)
    if isinstance(value, str):
        value = value.strip()
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer", field=field)
    if isinstance(value, float) and value != number:
        raise ValidationError(f"{field} must be an integer", field=field)
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be at least {minimum}", field=field)
    if maximum is not None and number > maximum:
        raise ValidationError(f"{field} must not exceed {maximum}", field=field)
    return number


def parse_bool(value, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ('true', '1', 'yes', 'on'):
        return True
    if isinstance(value, str) and value.strip().lower() in ('false', '0', 'no', 'off'):
        return False
    raise ValidationError(f"{field} must be a boolean", field=field)


def validate_tournament_fields(data: dict) -> dict:
    """
    Validate a full tournament payload (create or full update) and return the
    cleaned fields ready for the record store. All problems are collected and
    raised together.
    """
    errors = {}
    cleaned = {}

    for field in REQUIRED_FIELDS:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors[field] = f"{field} is required"

    for field, max_length in TEXT_FIELDS.items():
        if field in errors:
            continue
        value = str(data[field]).strip()
        if len(value) > max_length:
            errors[field] = f"{field} must not exceed {max_length} characters"
        else:
            cleaned[field] = value

    if 'registration_link' in cleaned and not URL_PATTERN.match(cleaned['registration_link']):
        errors['registration_link'] = "registration_link must be a valid http(s) URL"

    for field in DATE_FIELDS:
        if field in errors:
            continue
        try:
            cleaned[field] = parse_date(data[field], field)
        except ValidationError as e:
            errors[field] = e.message

    if 'category' not in errors:
        if data['category'] not in CATEGORY_VALUES:
            errors['category'] = "Please select a valid category"
        else:
            cleaned['category'] = data['category']

    if 'max_participants' not in errors:
        try:
            cleaned['max_participants'] = parse_int(
                data['max_participants'], 'max_participants', 1, MAX_PARTICIPANTS_LIMIT
            )
        except ValidationError as e:
            errors['max_participants'] = e.message

    if data.get('current_participants') not in (None, ''):
        try:
            cleaned['current_participants'] = parse_int(
                data['current_participants'], 'current_participants', 0
            )
        except ValidationError as e:
            errors['current_participants'] = e.message

    if data.get('poster'):
        cleaned['poster'] = str(data['poster']).strip()[:16]

    if data.get('is_active') is not None:
        try:
            cleaned['is_active'] = parse_bool(data['is_active'], 'is_active')
        except ValidationError as e:
            errors['is_active'] = e.message

    if data.get('status'):
        if data['status'] not in STATUS_VALUES:
            errors['status'] = f"status must be one of {', '.join(STATUS_VALUES)}"
        else:
            cleaned['status'] = data['status']

    if (
        'max_participants' in cleaned
        and cleaned.get('current_participants', 0) > cleaned['max_participants']
    ):
        errors['current_participants'] = "Current participants cannot exceed maximum participants"

    if errors:
        raise ValidationError("Validation failed", details=errors)

    return cleaned


def validate_image(image: Optional[ImagePayload], max_bytes: int) -> None:
    if image is None:
        return
    if not (image.content_type or '').startswith('image/'):
        raise ValidationError("Only image files are allowed", field='poster_image')
    if image.size == 0:
        raise ValidationError("Poster image is empty", field='poster_image')
    if image.size > max_bytes:
        raise ValidationError(
            f"Poster image exceeds {max_bytes // (1024 * 1024)}MB limit", field='poster_image'
        )


def validate_winner(winner) -> str:
    if not isinstance(winner, str) or not winner.strip():
        raise ValidationError("Winner name is required", field='winner')
    winner = winner.strip()
    if len(winner) > TEXT_FIELDS['name']:
        raise ValidationError("Winner name is too long", field='winner')
    return winner
