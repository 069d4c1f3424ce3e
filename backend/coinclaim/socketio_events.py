import math

from flask_socketio import join_room, leave_room, emit
from flask import current_app
from coinclaim import get_world, socketio
from coinclaim.services.engine.notify import WORLD_ROOM
from typing import Dict


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    # A dropped socket is a player leaving: their session must not outlive them
    player_id = _sid_to_player.pop(_get_sid(), None)
    if not player_id:
        return
    if player_id in _sid_to_player.values():
        # Same player still connected on another socket
        return
    get_world().leave_player(player_id)
    current_app.logger.info(f"[disconnect] player={player_id} reason={reason}")


def handle_join_world(data):
    player_id = (data or {}).get('player_id')
    if not player_id:
        emit('error', {'message': 'player_id is required'})
        return
    player_id = str(player_id)
    world = get_world()
    try:
        state = world.join_player(player_id)
    except ValueError as exc:
        emit('error', {'message': str(exc)})
        return
    sid = _get_sid()
    previous = _sid_to_player.get(sid)
    _sid_to_player[sid] = player_id
    if previous and previous != player_id and previous not in _sid_to_player.values():
        # Rebinding the socket is the previous player leaving
        world.leave_player(previous)
        current_app.logger.info(f"[rejoin] sid={sid} previous={previous} player={player_id}")
    join_room(WORLD_ROOM)
    emit('joined', {'room': WORLD_ROOM, 'player': state.to_dict()})


def handle_leave_world(data=None):
    player_id = _sid_to_player.pop(_get_sid(), None)
    leave_room(WORLD_ROOM)
    if player_id and player_id not in _sid_to_player.values():
        get_world().leave_player(player_id)
    emit('left', {'room': WORLD_ROOM})


def handle_claim_coin(data):
    player_id = _current_player()
    if not player_id:
        return
    coin_id = (data or {}).get('coin_id')
    if not coin_id:
        emit('error', {'message': 'coin_id is required'})
        return
    outcome = get_world().request_claim(player_id, str(coin_id))
    emit('claim_result', {'coin_id': coin_id, 'outcome': outcome.value})


def handle_set_companion(data):
    player_id = _current_player()
    if not player_id:
        return
    data = data or {}
    if 'companion_type' not in data:
        emit('error', {'message': 'companion_type is required'})
        return
    try:
        state = get_world().set_companion(player_id, data.get('companion_type'))
    except ValueError as exc:
        emit('error', {'message': str(exc)})
        return
    if state is not None:
        emit('companion_changed', state.to_dict())


def handle_player_moved(data):
    player_id = _current_player()
    if not player_id:
        return
    data = data or {}
    try:
        x = float(data.get('x'))
        y = float(data.get('y'))
    except (TypeError, ValueError):
        emit('error', {'message': 'x and y must be numbers'})
        return
    if not (math.isfinite(x) and math.isfinite(y)):
        emit('error', {'message': 'x and y must be finite'})
        return
    get_world().move_player(player_id, x, y)


def handle_ping(data):
    emit('pong', data or {})

# ---- Socket to player binding ----
from flask import request

_sid_to_player: Dict[str, str] = {}

def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore

def _current_player():
    player_id = _sid_to_player.get(_get_sid())
    if not player_id:
        emit('error', {'message': 'join_world first'})
    return player_id


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'join_world': handle_join_world,
        'leave_world': handle_leave_world,
        'claim_coin': handle_claim_coin,
        'set_companion': handle_set_companion,
        'player_moved': handle_player_moved,
        'ping': handle_ping,
    }
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace=namespace)
