from flask import Blueprint, current_app, jsonify, request
from werkzeug.utils import secure_filename

from shared.errors import ValidationError
from ..validation import ImagePayload

bp = Blueprint('tournaments', __name__, url_prefix='/api/tournaments')


def get_registry():
    return current_app.registry


def request_payload() -> dict:
    if request.is_json:
        data = request.get_json(silent=True)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data
    return request.form.to_dict()


def poster_from_request():
    upload = request.files.get('posterImage')
    if upload is None or not upload.filename:
        return None
    return ImagePayload(
        data=upload.read(),
        content_type=upload.mimetype,
        filename=secure_filename(upload.filename)
    )


# ==================== Public ====================

@bp.route('', methods=['GET'])
def list_tournaments():
    """Tournaments currently listed on the website."""
    tournaments = get_registry().list_public()
    return jsonify({
        'tournaments': [t.to_dict() for t in tournaments],
        'count': len(tournaments)
    })


@bp.route('/past', methods=['GET'])
def list_past_tournaments():
    """Completed tournaments with a winner, most recent first."""
    past = get_registry().list_past(limit=request.args.get('limit'))
    return jsonify({
        'tournaments': [p.to_dict() for p in past],
        'count': len(past)
    })


@bp.route('/<tournament_id>', methods=['GET'])
def get_tournament(tournament_id: str):
    return jsonify(get_registry().get_tournament(tournament_id).to_dict())


# ==================== Admin ====================

@bp.route('/admin', methods=['GET'])
def list_admin_tournaments():
    page = get_registry().list_admin(
        search=request.args.get('search', ''),
        status=request.args.get('status', 'all'),
        category=request.args.get('category', 'all'),
        page=request.args.get('page', 1),
        limit=request.args.get('limit')
    )
    return jsonify(page.to_dict())


@bp.route('', methods=['POST'])
def create_tournament():
    tournament = get_registry().create_tournament(request_payload(), poster_from_request())
    return jsonify({
        'message': 'Tournament created',
        'tournament': tournament.to_dict()
    }), 201


@bp.route('/<tournament_id>', methods=['PUT'])
def update_tournament(tournament_id: str):
    tournament = get_registry().update_tournament(
        tournament_id, request_payload(), poster_from_request()
    )
    return jsonify({
        'message': 'Tournament updated',
        'tournament': tournament.to_dict()
    })


@bp.route('/<tournament_id>/participants', methods=['PATCH'])
def update_participants(tournament_id: str):
    data = request_payload()
    tournament = get_registry().update_participant_count(
        tournament_id, data.get('current_participants')
    )
    return jsonify({
        'message': 'Participant count updated',
        'tournament': tournament.to_dict()
    })


@bp.route('/<tournament_id>/complete', methods=['PATCH'])
def complete_tournament(tournament_id: str):
    data = request_payload()
    tournament = get_registry().complete_tournament(
        tournament_id,
        data.get('winner'),
        data.get('final_participants')
    )
    return jsonify({
        'message': 'Tournament marked as completed',
        'tournament': tournament.to_dict()
    })


@bp.route('/<tournament_id>/toggle-status', methods=['PATCH'])
def toggle_tournament(tournament_id: str):
    tournament = get_registry().toggle_active(tournament_id)
    state = 'activated' if tournament.is_active else 'deactivated'
    return jsonify({
        'message': f'Tournament {state}',
        'tournament': tournament.to_dict()
    })


@bp.route('/<tournament_id>/cancel', methods=['PATCH'])
def cancel_tournament(tournament_id: str):
    tournament = get_registry().cancel_tournament(tournament_id)
    return jsonify({
        'message': 'Tournament cancelled',
        'tournament': tournament.to_dict()
    })


@bp.route('/<tournament_id>/reinstate', methods=['PATCH'])
def reinstate_tournament(tournament_id: str):
    tournament = get_registry().reinstate_tournament(tournament_id)
    return jsonify({
        'message': 'Tournament reinstated',
        'tournament': tournament.to_dict()
    })


@bp.route('/<tournament_id>', methods=['DELETE'])
def delete_tournament(tournament_id: str):
    get_registry().delete_tournament(tournament_id)
    return jsonify({'message': 'Tournament deleted'})
