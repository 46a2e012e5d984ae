"""
Pytest configuration and fixtures for academy backend tests.
"""
import os
import sys
from datetime import datetime
from unittest.mock import MagicMock

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Set testing environment before importing app
os.environ['FLASK_ENV'] = 'testing'

from academy.app import create_app
from academy.blob_store import UploadedBlob
from academy.models import db
from academy.validation import validate_tournament_fields
from shared.errors import UpstreamError
from shared.pubsub import EventPublisher

# Clock used by the app under test: 10 May 2026, mid-afternoon
FIXED_NOW = datetime(2026, 5, 10, 14, 30)

BASE_PAYLOAD = {
    'name': 'Spring Rapid Open',
    'date': '2026-05-20',
    'time': '10:00 AM',
    'location': 'Aspire Chess Academy',
    'address': '12 Knight Street, Pune',
    'entry_fee': '500 INR',
    'prize_pool': '10,000 INR',
    'max_participants': 32,
    'format': 'Swiss, 7 rounds',
    'time_control': '15+10',
    'category': 'Rapid',
    'registration_link': 'https://example.com/register',
    'description': 'Annual rapid tournament open to all rated players.',
    'list_until': '2026-05-20',
}

# Fields tests may set directly on stored records, bypassing payload validation
RAW_FIELDS = ('winner', 'final_participants', 'poster_image')


class InMemoryBlobStore:
    """Blob store double keeping uploads in a dict."""

    BASE_URL = 'https://storage.googleapis.com/test-bucket/'

    def __init__(self):
        self.reset()

    def reset(self):
        self.blobs = {}
        self.deleted = []
        self.fail_uploads = False
        self.fail_deletes = False
        self._counter = 0

    def upload(self, data, folder, desired_id, content_type='image/jpeg'):
        if self.fail_uploads:
            raise UpstreamError('blob store', 'upload rejected')
        self._counter += 1
        handle = f"aspire-chess-academy/{folder}/{desired_id}-{self._counter}.jpg"
        self.blobs[handle] = data
        return UploadedBlob(url=self.BASE_URL + handle, handle=handle)

    def delete(self, handle):
        if self.fail_deletes:
            raise UpstreamError('blob store', f'cannot delete {handle}')
        self.deleted.append(handle)
        return self.blobs.pop(handle, None) is not None

    def handle_from_url(self, url):
        if url and url.startswith(self.BASE_URL):
            return url[len(self.BASE_URL):]
        return None

    def exists(self, handle):
        return handle in self.blobs


@pytest.fixture(scope='session')
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture(scope='session')
def redis_client():
    return MagicMock()


@pytest.fixture(scope='session')
def app(blob_store, redis_client):
    """Create application for testing."""
    app = create_app(
        'testing',
        blob_store=blob_store,
        publisher=EventPublisher(redis_client),
        clock=lambda: FIXED_NOW
    )

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app, blob_store, redis_client):
    """Create database session for testing."""
    with app.app_context():
        # Clear all tables and collaborators before each test
        db.session.remove()

        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        blob_store.reset()
        redis_client.reset_mock(side_effect=True)

        yield db.session

        db.session.rollback()


@pytest.fixture
def registry(app, db_session):
    return app.registry


@pytest.fixture
def store(registry):
    return registry.store


@pytest.fixture
def tournament_payload():
    """Build a valid tournament payload with overrides."""
    def build(**overrides):
        data = dict(BASE_PAYLOAD)
        data.update(overrides)
        return data
    return build


@pytest.fixture
def make_tournament(store, tournament_payload):
    """Insert a tournament straight into the store (no events, no reconciliation)."""
    def make(**overrides):
        raw = {key: overrides.pop(key) for key in RAW_FIELDS if key in overrides}
        fields = validate_tournament_fields(tournament_payload(**overrides))
        fields.setdefault('status', 'upcoming')
        fields.update(raw)
        return store.insert(fields)
    return make
