import math

from flask import Blueprint, jsonify, request, current_app, abort
from coinclaim import get_world


world_api = Blueprint('world', __name__)


def _player_or_404(world, player_id):
    state = world.players.get(player_id)
    if state is None:
        abort(404)
    return state


@world_api.route('/state', methods=['GET'])
def get_world_state():
    world = get_world()
    payload = world.snapshot()
    # Static tables so clients can label coins and companions
    payload['coin_types'] = world.catalog.coin_types()
    payload['companion_types'] = world.catalog.companion_types()
    return jsonify(payload)


@world_api.route('/players/join', methods=['POST'])
def join_world():
    data = request.get_json(silent=True) or {}
    player_id = data.get('player_id')
    if not player_id:
        return jsonify({'error': 'player_id is required'}), 400
    try:
        state = get_world().join_player(str(player_id))
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    return jsonify(state.to_dict()), 201


@world_api.route('/players/<string:player_id>', methods=['GET'])
def get_player(player_id):
    state = _player_or_404(get_world(), player_id)
    return jsonify(state.to_dict())


@world_api.route('/players/<string:player_id>/leave', methods=['POST'])
def leave_world(player_id):
    left = get_world().leave_player(player_id)
    return jsonify({'left': left})


@world_api.route('/players/<string:player_id>/companion', methods=['POST'])
def set_companion(player_id):
    data = request.get_json(silent=True) or {}
    if 'companion_type' not in data:
        return jsonify({'error': 'companion_type is required'}), 400
    world = get_world()
    _player_or_404(world, player_id)
    try:
        state = world.set_companion(player_id, data.get('companion_type'))
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    if state is None:
        # Left between the lookup and the update
        abort(404)
    return jsonify(state.to_dict())


@world_api.route('/coins/<string:coin_id>/claim', methods=['POST'])
def claim_coin(coin_id):
    data = request.get_json(silent=True) or {}
    player_id = data.get('player_id')
    if not player_id:
        return jsonify({'error': 'player_id is required'}), 400
    outcome = get_world().request_claim(str(player_id), coin_id)
    return jsonify({'coin_id': coin_id, 'player_id': player_id, 'outcome': outcome.value})


@world_api.route('/spawn', methods=['POST'])
def spawn_coin():
    coin = get_world().try_spawn_one()
    if coin is None:
        return jsonify({'coin': None})
    return jsonify({'coin': coin.to_dict()}), 201


@world_api.route('/tick', methods=['POST'])
def manual_tick():
    if not current_app.config.get('ALLOW_MANUAL_TICK'):
        abort(404)
    data = request.get_json(silent=True) or {}
    try:
        dt = float(data.get('dt', 0))
    except (TypeError, ValueError):
        return jsonify({'error': 'dt must be a number'}), 400
    if not math.isfinite(dt):
        return jsonify({'error': 'dt must be finite'}), 400
    if dt < 0:
        return jsonify({'error': 'dt must not be negative'}), 400
    world = get_world()
    world.tick(dt)
    return jsonify(world.snapshot())
