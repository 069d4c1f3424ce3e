import logging
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from coinclaim.models import PLAYER_ID_MAX_LENGTH

from .notify import Notifier
from .persistence import ProgressStore
from .sessions import SessionTable

LOG = logging.getLogger(__name__)

COMPANION_STORE = 'companion'
CURRENCY_STORE = 'currency'


def validate_player_id(player_id: str) -> str:
    """Return the id unchanged, or raise ValueError if it cannot be stored."""
    if not player_id:
        raise ValueError('player_id is required')
    if len(player_id) > PLAYER_ID_MAX_LENGTH:
        raise ValueError(f'player_id must be at most {PLAYER_ID_MAX_LENGTH} characters')
    return player_id


@dataclass
class PlayerState:
    player_id: str
    companion_type: Optional[str]
    currency: int
    x: float = 0.0
    y: float = 0.0

    @property
    def position(self) -> Tuple[float, float]:
        return self.x, self.y

    def to_dict(self):
        return {
            'player_id': self.player_id,
            'companion_type': self.companion_type,
            'currency': self.currency,
            'x': self.x,
            'y': self.y,
        }


class PlayerSessionManager:
    """Present players and their persisted progress.

    Companion type and currency are read from the progress store on join and
    written back on every change. The store is best-effort in both
    directions: reads fall back to the configured defaults, writes may be
    dropped.
    """

    def __init__(
        self,
        store: ProgressStore,
        sessions: SessionTable,
        notifier: Optional[Notifier] = None,
        default_companion: Optional[str] = None,
        default_currency: int = 0,
    ):
        self._store = store
        self._sessions = sessions
        self._notifier = notifier or Notifier()
        self._default_companion = default_companion
        self._default_currency = default_currency
        self._players: Dict[str, PlayerState] = {}

    def __len__(self) -> int:
        return len(self._players)

    def __iter__(self) -> Iterator[PlayerState]:
        return iter(list(self._players.values()))

    def get(self, player_id: str) -> Optional[PlayerState]:
        return self._players.get(player_id)

    def load_state(self, player_id: str) -> PlayerState:
        """Build a player's state from the store. Does not register it."""
        companion = self._store.load(COMPANION_STORE, player_id, self._default_companion)
        raw_currency = self._store.load(CURRENCY_STORE, player_id, self._default_currency)
        try:
            currency = int(raw_currency)
        except (TypeError, ValueError):
            LOG.warning(f"[load] player={player_id} unreadable currency={raw_currency!r}, using default")
            currency = self._default_currency
        return PlayerState(player_id=player_id, companion_type=companion, currency=currency)

    def register(self, state: PlayerState) -> PlayerState:
        existing = self._players.get(state.player_id)
        if existing is not None:
            return existing
        self._players[state.player_id] = state
        LOG.info(f"[join] player={state.player_id} companion={state.companion_type} currency={state.currency}")
        return state

    def set_companion(self, player_id: str, companion_type: Optional[str]) -> Optional[PlayerState]:
        state = self._players.get(player_id)
        if state is None:
            return None
        state.companion_type = companion_type
        self._store.save(COMPANION_STORE, player_id, companion_type)
        if companion_type is None:
            self._sessions.end(player_id, reason='no_companion')
        return state

    def credit(self, player_id: str, amount: int) -> Optional[int]:
        state = self._players.get(player_id)
        if state is None:
            return None
        state.currency += amount
        self._store.save(CURRENCY_STORE, player_id, state.currency)
        self._notifier.emit('currency_changed', {'player_id': player_id, 'currency': state.currency})
        return state.currency

    def move(self, player_id: str, x: float, y: float) -> Optional[PlayerState]:
        state = self._players.get(player_id)
        if state is None:
            return None
        state.x = float(x)
        state.y = float(y)
        return state

    def leave(self, player_id: str) -> bool:
        # Teardown runs whether or not a session exists
        self._sessions.end(player_id, reason='player_left')
        state = self._players.pop(player_id, None)
        if state is not None:
            LOG.info(f"[leave] player={player_id}")
        return state is not None
