import logging
import os

from flask import Flask, jsonify

from shared.errors import AcademyError, NotFoundError, UpstreamError, ValidationError
from shared.pubsub import EventPublisher
from .blob_store import GcsBlobStore
from .config import config
from .models import db
from .mutations import MutationCoordinator
from .record_store import TournamentRecordStore
from .tournament_registry import TournamentRegistry

logger = logging.getLogger(__name__)


def create_app(config_name: str = None, blob_store=None, publisher: EventPublisher = None,
               clock=None) -> Flask:
    """Application factory for the academy service."""
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Initialize extensions
    db.init_app(app)

    # Initialize collaborators
    if blob_store is None:
        blob_store = GcsBlobStore(
            bucket_name=app.config['GCS_BUCKET'],
            root_folder=app.config['BLOB_ROOT_FOLDER'],
            project_id=app.config['GCP_PROJECT_ID'],
            timeout=app.config['BLOB_TIMEOUT_SECONDS']
        )
    if publisher is None:
        redis_url = app.config['REDIS_URL']
        publisher = (
            EventPublisher.from_url(redis_url, timeout=app.config['REDIS_TIMEOUT_SECONDS'])
            if redis_url else EventPublisher()
        )

    store = TournamentRecordStore()
    coordinator = MutationCoordinator(
        store,
        blob_store,
        max_image_bytes=app.config['MAX_POSTER_BYTES']
    )
    registry_options = {
        'past_limit': app.config['PAST_TOURNAMENTS_DEFAULT_LIMIT'],
        'page_size': app.config['ADMIN_PAGE_SIZE'],
    }
    if clock is not None:
        registry_options['clock'] = clock

    # Create tables
    with app.app_context():
        db.create_all()

    # Store services on app for access in routes
    app.blob_store = blob_store
    app.publisher = publisher
    app.registry = TournamentRegistry(store, coordinator, publisher, **registry_options)

    register_error_handlers(app)
    register_health_route(app)

    from .routes import tournaments
    app.register_blueprint(tournaments.bp)

    return app


def register_error_handlers(app: Flask):
    """Map domain errors to JSON responses."""

    def respond(error: AcademyError, status: int):
        return jsonify(error.to_dict()), status

    @app.errorhandler(ValidationError)
    def handle_validation(error):
        return respond(error, 400)

    @app.errorhandler(NotFoundError)
    def handle_not_found(error):
        return respond(error, 404)

    @app.errorhandler(UpstreamError)
    def handle_upstream(error):
        logger.error(f"Upstream failure: {error.message}")
        return respond(error, 502)

    @app.errorhandler(413)
    def handle_too_large(error):
        return jsonify({'error': 'Upload too large'}), 413


def register_health_route(app: Flask):

    @app.route('/api/health')
    def health_check():
        """Health check endpoint."""
        try:
            db.session.execute(db.text('SELECT 1'))
            db_ok = True
        except Exception as e:
            logger.warning(f"Health check database failure: {e}")
            db_ok = False

        redis_ok = None
        if app.publisher.redis is not None:
            try:
                app.publisher.redis.ping()
                redis_ok = True
            except Exception as e:
                logger.warning(f"Health check redis failure: {e}")
                redis_ok = False

        healthy = db_ok and redis_ok is not False
        return jsonify({
            'status': 'healthy' if healthy else 'unhealthy',
            'database': 'connected' if db_ok else 'disconnected',
            'redis': {True: 'connected', False: 'disconnected', None: 'disabled'}[redis_ok]
        }), 200 if healthy else 503
