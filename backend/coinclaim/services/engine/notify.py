"""Presentation events.

The engine reports what happened (coin spawned, health changed, currency
changed, ...) through a notifier. Notifiers are observers only; nothing
they do feeds back into ownership, damage or settlement.
"""

from typing import Any, Dict

WORLD_ROOM = 'world'
WS_NAMESPACE = '/ws'


class Notifier:
    """Drops every event. Used when a world runs without a transport."""

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        pass


class SocketIONotifier(Notifier):
    def __init__(self, socketio, room: str = WORLD_ROOM, namespace: str = WS_NAMESPACE):
        self._socketio = socketio
        self._room = room
        self._namespace = namespace

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        self._socketio.emit(event, payload, to=self._room, namespace=self._namespace)
