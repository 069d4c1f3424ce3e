from flask import Blueprint, jsonify
from coinclaim import get_world

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the CoinClaim game server!'})

@main.route('/health')
def health():
    world = get_world()
    return jsonify({
        'status': 'ok',
        'players': len(world.players),
        'coins': len(world.coins),
        'free_spawn_points': world.spawn_points.free_count(),
    })
