"""
Flask JSON API for the knockout bracket engine.
"""
import os
from flask import Flask, request, jsonify
from knockout.models import CATEGORIES, BracketError, RoundNotFoundError, MatchIndexOutOfRangeError, display_name
from knockout.elimination import build_bracket, get_bracket_summary
from knockout.propagation import record_result, advance_byes
from knockout.pairing import PairingError
from knockout.storage import ParticipantStore, BracketStore

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))

# Raise on a result that would overwrite an already filled slot instead of dropping it
STRICT_PROPAGATION = os.environ.get('BRACKET_STRICT_PROPAGATION', '0') == '1'


def _participant_store() -> ParticipantStore:
    return ParticipantStore(DATA_DIR)


def _bracket_store() -> BracketStore:
    return BracketStore(DATA_DIR)


def _error(message: str, status: int = 400):
    return jsonify({'success': False, 'error': message}), status


def _bracket_response(bracket):
    return {
        'category': bracket.category,
        'fixture': bracket.to_dict(),
        'summary': get_bracket_summary(bracket),
    }


@app.route('/api/participants/<category>', methods=['GET'])
def api_participants(category):
    """List entrants of a category."""
    if category not in CATEGORIES:
        return _error(f'Unknown category "{category}"', 404)
    store = _participant_store()
    if category == 'singles':
        entrants = [p.to_dict() for p in store.entrants('singles')]
    else:
        entrants = [p.to_dict() for p in store.get_pairs()]
    return jsonify({'success': True, 'participants': entrants})


@app.route('/api/registration', methods=['GET'])
def api_registration_status():
    return jsonify({'success': True, 'registration_open': _participant_store().is_registration_open()})


@app.route('/api/registration/toggle', methods=['POST'])
def api_toggle_registration():
    """Open or close registration; flips the current status when `open` is not given."""
    data = request.get_json(silent=True) or {}
    store = _participant_store()
    is_open = data.get('open')
    if is_open is None:
        is_open = not store.is_registration_open()
    elif not isinstance(is_open, bool):
        return _error('"open" must be true or false')
    store.set_registration_open(is_open)
    return jsonify({'success': True, 'registration_open': is_open})


@app.route('/api/players', methods=['POST'])
def api_register_player():
    """Register a player for singles and/or doubles."""
    data = request.get_json() or {}
    name, email = data.get('name') or '', data.get('email') or ''
    if not isinstance(name, str) or not isinstance(email, str):
        return _error('Name and email must be text')
    try:
        record = _participant_store().register_player(
            name,
            email,
            in_singles=data.get('in_singles', True),
            in_doubles=data.get('in_doubles', False),
        )
    except ValueError as e:
        return _error(str(e))
    return jsonify({'success': True, 'player': record})


@app.route('/api/players/remove', methods=['POST'])
def api_remove_player():
    """Remove a player and their doubles pair."""
    data = request.get_json() or {}
    player_id = data.get('player_id')
    if not isinstance(player_id, str) or not player_id.strip():
        return _error('Player id required')
    player_id = player_id.strip()
    if not _participant_store().remove_player(player_id):
        return _error('Player not found', 404)
    return jsonify({'success': True})


@app.route('/api/pairs', methods=['POST'])
def api_pair_players():
    """Pair two registered players for doubles."""
    data = request.get_json() or {}
    player_ids = (data.get('player1_id'), data.get('player2_id'))
    if not all(isinstance(player_id, str) for player_id in player_ids):
        return _error('Both player ids are required')
    try:
        pair = _participant_store().pair_players(*player_ids)
    except (ValueError, PairingError) as e:
        return _error(str(e))
    return jsonify({'success': True, 'pair': pair.to_dict()})


@app.route('/api/fixtures/generate', methods=['POST'])
def api_generate_fixtures():
    """Generate brackets from the current participants."""
    data = request.get_json(silent=True) or {}
    categories = data.get('categories') or list(CATEGORIES)
    unknown = [c for c in categories if c not in CATEGORIES]
    if unknown:
        return _error(f'Unknown category "{unknown[0]}"')

    participants = _participant_store()
    brackets = _bracket_store()
    generated = {}
    for category in categories:
        bracket = build_bracket(participants.entrants(category), category)
        if bracket.is_empty:
            app.logger.info(f'No {category} participants, skipping')
            continue
        if data.get('advance_byes'):
            advance_byes(bracket)
        brackets.save(bracket)
        generated[category] = _bracket_response(bracket)

    # Entrants are fixed once the draw is made
    participants.set_registration_open(False)
    app.logger.info('Registration closed after generating fixtures')

    return jsonify({'success': True, 'generated': generated, 'registration_open': False})


@app.route('/api/fixtures/<category>', methods=['GET'])
def api_get_fixtures(category):
    """Return the stored bracket of a category."""
    if category not in CATEGORIES:
        return _error(f'Unknown category "{category}"', 404)
    bracket = _bracket_store().load(category)
    return jsonify({'success': True, **_bracket_response(bracket)})


@app.route('/api/fixtures/<category>/result', methods=['POST'])
def api_save_result(category):
    """Save a match result, with optional name corrections, and advance the winner."""
    if category not in CATEGORIES:
        return _error(f'Unknown category "{category}"', 404)
    data = request.get_json() or {}
    round_tag = data.get('round', '')
    try:
        match_index = int(data.get('match_index', -1))
    except (TypeError, ValueError):
        return _error('Invalid match index')

    store = _bracket_store()
    bracket = store.load(category)
    if bracket.is_empty:
        return _error('Fixture not found', 404)

    manual_names = (data.get('player1'), data.get('player2'))
    try:
        record_result(bracket, round_tag, match_index, manual_names,
                      data.get('winner'), strict=STRICT_PROPAGATION)
    except (RoundNotFoundError, MatchIndexOutOfRangeError) as e:
        app.logger.warning(f'Result for stale match {category}/{round_tag}/{match_index}: {e}')
        return _error('Match not found', 404)
    except BracketError as e:
        return _error(str(e))

    store.save(bracket)
    match = bracket.get_match(round_tag, match_index)
    app.logger.info(f'Saved {category} {round_tag} match {match_index}: winner {display_name(match.winner) or "-"}')
    return jsonify({'success': True, 'match': match.to_dict(), **_bracket_response(bracket)})


@app.route('/api/fixtures/reset', methods=['POST'])
def api_reset_fixtures():
    """Delete the brackets of every category."""
    _bracket_store().reset()
    return jsonify({'success': True})


if __name__ == '__main__':
    app.run(debug=True, port=5000)
