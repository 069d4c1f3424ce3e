"""Best-effort key/value storage for player progress.

Two logical stores are used by the engine: ``companion`` and ``currency``,
both keyed by player id. ``load`` never raises and ``save`` never blocks the
tick loop; a failing database degrades to defaults and dropped writes.
"""

import json
import queue
import threading
from typing import Any, Protocol

from coinclaim import db, socketio
from coinclaim.models import StoredValue


class ProgressStore(Protocol):
    def load(self, store: str, key: str, fallback: Any = None) -> Any:
        """Return the stored value, or ``fallback`` on a miss or any failure."""

    def save(self, store: str, key: str, value: Any) -> None:
        """Persist ``value``. Failures are logged and dropped."""


class DatabaseProgressStore:
    def __init__(self, app):
        self._app = app
        # Single writer drains this in order, so saves to one key never race
        self._pending: queue.Queue = queue.Queue()
        self._writer_lock = threading.Lock()
        self._writer_started = False

    def load(self, store: str, key: str, fallback: Any = None) -> Any:
        with self._app.app_context():
            try:
                row = StoredValue.query.filter_by(store=store, key=key).first()
                if row is None:
                    return fallback
                return json.loads(row.value)
            except Exception as exc:
                db.session.rollback()
                self._app.logger.warning(f"[store-load-failed] store={store} key={key} error={exc}")
                return fallback

    def save(self, store: str, key: str, value: Any) -> None:
        # Writes run off the tick loop; inline in tests for determinism
        if self._app.config.get('TESTING'):
            self._write(store, key, value)
        else:
            self._pending.put((store, key, value))
            self._ensure_writer()

    def _ensure_writer(self) -> None:
        with self._writer_lock:
            if self._writer_started:
                return
            self._writer_started = True
        socketio.start_background_task(self._drain)

    def _drain(self) -> None:
        while True:
            store, key, value = self._pending.get()
            self._write(store, key, value)

    def _write(self, store: str, key: str, value: Any) -> None:
        with self._app.app_context():
            try:
                row = StoredValue.query.filter_by(store=store, key=key).first()
                if row is None:
                    row = StoredValue(store=store, key=key)
                row.value = json.dumps(value)
                db.session.add(row)
                db.session.commit()
            except Exception as exc:
                db.session.rollback()
                self._app.logger.warning(f"[store-save-failed] store={store} key={key} error={exc}")
