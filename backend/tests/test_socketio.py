from coinclaim import get_world, socketio


def _events(test_client, name):
    return [pkt['args'][0] for pkt in test_client.get_received('/ws') if pkt['name'] == name]


def test_socket_connect_and_join(sio_client):
    # Ensure we are connected to /ws
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')

    sio_client.emit('join_world', {'player_id': 'alice'}, namespace='/ws')
    received = sio_client.get_received('/ws')
    joined = [pkt for pkt in received if pkt['name'] == 'joined']
    assert joined
    assert joined[0]['args'][0]['player']['player_id'] == 'alice'


def test_join_requires_player_id(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('join_world', {}, namespace='/ws')
    errors = _events(sio_client, 'error')
    assert errors and 'player_id' in errors[0]['message']


def test_claim_before_join_is_rejected(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('claim_coin', {'coin_id': 'abc'}, namespace='/ws')
    assert _events(sio_client, 'error')


def test_claim_and_world_broadcasts(flask_app, sio_client, client):
    sio_client.emit('join_world', {'player_id': 'alice'}, namespace='/ws')
    sio_client.get_received('/ws')  # flush

    coin = client.post('/api/world/spawn').get_json()['coin']
    spawned = _events(sio_client, 'coin_spawned')
    assert spawned and spawned[0]['id'] == coin['id']

    sio_client.emit('claim_coin', {'coin_id': coin['id']}, namespace='/ws')
    received = sio_client.get_received('/ws')
    names = [pkt['name'] for pkt in received]
    assert 'coin_claimed' in names
    result = [pkt['args'][0] for pkt in received if pkt['name'] == 'claim_result']
    assert result == [{'coin_id': coin['id'], 'outcome': 'started'}]

    client.post('/api/world/tick', json={'dt': 1.0})
    health = _events(sio_client, 'coin_health')
    assert health == [{'coin_id': coin['id'], 'health': 8}]


def test_disconnect_tears_down_session(flask_app, sio_client, client):
    coin = client.post('/api/world/spawn').get_json()['coin']

    player_client = socketio.test_client(flask_app, namespace='/ws')
    player_client.emit('join_world', {'player_id': 'bob'}, namespace='/ws')
    player_client.emit('claim_coin', {'coin_id': coin['id']}, namespace='/ws')

    world = get_world(flask_app)
    assert world.sessions.get('bob') is not None

    player_client.disconnect(namespace='/ws')
    assert world.sessions.get('bob') is None
    assert world.players.get('bob') is None
    assert world.coins.get(coin['id']).owner_id is None


def test_set_companion_and_move(flask_app, sio_client):
    sio_client.emit('join_world', {'player_id': 'alice'}, namespace='/ws')
    sio_client.get_received('/ws')

    sio_client.emit('set_companion', {'companion_type': 'Dog'}, namespace='/ws')
    changed = _events(sio_client, 'companion_changed')
    assert changed[0]['companion_type'] == 'Dog'

    sio_client.emit('set_companion', {'companion_type': 'Unicorn'}, namespace='/ws')
    assert _events(sio_client, 'error')

    sio_client.emit('player_moved', {'x': 4, 'y': -2}, namespace='/ws')
    state = get_world(flask_app).players.get('alice')
    assert (state.x, state.y) == (4.0, -2.0)


def test_leave_world(flask_app, sio_client):
    sio_client.emit('join_world', {'player_id': 'alice'}, namespace='/ws')
    sio_client.emit('leave_world', {}, namespace='/ws')
    assert _events(sio_client, 'left')
    assert get_world(flask_app).players.get('alice') is None


def test_ping(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    assert _events(sio_client, 'pong') == [{'n': 1}]


def test_rejoin_as_other_player_releases_previous(flask_app, client):
    coin = client.post('/api/world/spawn').get_json()['coin']
    world = get_world(flask_app)

    player_client = socketio.test_client(flask_app, namespace='/ws')
    player_client.emit('join_world', {'player_id': 'bob'}, namespace='/ws')
    player_client.emit('claim_coin', {'coin_id': coin['id']}, namespace='/ws')
    assert world.sessions.get('bob') is not None

    player_client.emit('join_world', {'player_id': 'carol'}, namespace='/ws')
    assert world.sessions.get('bob') is None
    assert world.players.get('bob') is None
    assert world.coins.get(coin['id']).owner_id is None

    player_client.disconnect(namespace='/ws')
    assert world.players.get('carol') is None
    client.post('/api/world/tick', json={'dt': 1.0})
    assert world.coins.get(coin['id']).health == 10


def test_rejoin_keeps_player_bound_to_another_socket(flask_app):
    world = get_world(flask_app)
    first = socketio.test_client(flask_app, namespace='/ws')
    second = socketio.test_client(flask_app, namespace='/ws')
    first.emit('join_world', {'player_id': 'bob'}, namespace='/ws')
    second.emit('join_world', {'player_id': 'bob'}, namespace='/ws')

    second.emit('join_world', {'player_id': 'carol'}, namespace='/ws')
    assert world.players.get('bob') is not None

    first.disconnect(namespace='/ws')
    second.disconnect(namespace='/ws')
    assert world.players.get('bob') is None


def test_join_rejects_overlong_player_id(flask_app, sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('join_world', {'player_id': 'x' * 65}, namespace='/ws')
    errors = _events(sio_client, 'error')
    assert errors and '64' in errors[0]['message']
    assert get_world(flask_app).players.get('x' * 65) is None


def test_player_moved_rejects_non_finite(flask_app, sio_client):
    sio_client.emit('join_world', {'player_id': 'alice'}, namespace='/ws')
    sio_client.get_received('/ws')

    sio_client.emit('player_moved', {'x': 'nan', 'y': 1}, namespace='/ws')
    assert _events(sio_client, 'error')
    sio_client.emit('player_moved', {'x': 1, 'y': 'inf'}, namespace='/ws')
    assert _events(sio_client, 'error')
    state = get_world(flask_app).players.get('alice')
    assert (state.x, state.y) == (0.0, 0.0)
