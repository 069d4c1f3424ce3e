import threading
import time
from typing import Dict

from coinclaim import get_world, socketio


_running_loops: Dict[int, threading.Event] = {}


def start_engine_loops(app) -> bool:
    """Start the tick and spawn loops for the app's world.

    - No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set
    - Ensures a single pair of loops per world
    - Tick loop runs at TICK_RATE_HZ and passes real elapsed time to the world
    - Spawn loop attempts one spawn every SPAWN_INTERVAL_SEC
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return False

    world = get_world(app)
    key = id(world)
    if key in _running_loops:
        app.logger.info(f"[loop-skip] world={key} already running")
        return False

    stop = threading.Event()
    _running_loops[key] = stop

    tick_hz = max(1, int(app.config.get('TICK_RATE_HZ', 30)))
    spawn_every = float(app.config.get('SPAWN_INTERVAL_SEC', 5))
    app.logger.info(f"[loop-start] world={key} tick_hz={tick_hz} spawn_every={spawn_every}s")

    socketio.start_background_task(_tick_worker, app, world, stop, 1.0 / tick_hz)
    socketio.start_background_task(_spawn_worker, app, world, stop, spawn_every)
    return True


def stop_engine_loops(app) -> bool:
    world = get_world(app)
    stop = _running_loops.pop(id(world), None)
    if stop is None:
        return False
    stop.set()
    app.logger.info(f"[loop-stop] world={id(world)}")
    return True


def _tick_worker(app, world, stop: threading.Event, interval: float) -> None:
    try:
        hb = int(app.config.get('TIMER_HEARTBEAT_SEC', 0))
    except (TypeError, ValueError):
        hb = 0
    last = time.monotonic()
    last_heartbeat = last
    while not stop.is_set():
        socketio.sleep(interval)
        if stop.is_set():
            break
        now = time.monotonic()
        dt = now - last
        last = now
        try:
            world.tick(dt)
        except Exception:
            app.logger.exception(f"[tick-error] dt={dt:.4f}")
        if hb > 0 and now - last_heartbeat >= hb:
            last_heartbeat = now
            app.logger.info(
                f"[timer-heartbeat] players={len(world.players)} coins={len(world.coins)} "
                f"sessions={len(world.sessions)} free_spawns={world.spawn_points.free_count()}"
            )


def _spawn_worker(app, world, stop: threading.Event, delay: float) -> None:
    while not stop.is_set():
        socketio.sleep(delay)
        if stop.is_set():
            break
        try:
            world.try_spawn_one()
        except Exception:
            app.logger.exception("[spawn-error]")
