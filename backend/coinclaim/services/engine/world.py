import logging
import random
import threading
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Sequence

from .catalog import Catalog
from .coins import Coin, CoinRegistry
from .director import SpawnDirector
from .notify import Notifier
from .ownership import ClaimResult, OwnershipArbiter
from .persistence import ProgressStore
from .players import PlayerSessionManager, PlayerState, validate_player_id
from .sessions import Pose, SessionTable, companion_offset
from .settlement import RewardSettlement
from .spawn_points import SpawnPointRegistry

LOG = logging.getLogger(__name__)


class ClaimOutcome(str, Enum):
    STARTED = 'started'
    STOPPED = 'stopped'
    OWNED_BY_OTHER = 'owned_by_other'
    NO_SUCH_COIN = 'no_such_coin'
    NO_COMPANION = 'no_companion'
    UNKNOWN_PLAYER = 'unknown_player'


class GameWorld:
    """One game instance: spawn points, coins, players and their sessions.

    Every public method takes ``self.lock``. Socket handlers, HTTP routes and
    the background loops may call in from different threads, but claim,
    damage and settlement for a coin are always serialized, and settlement
    always sees the health produced by the damage that triggered it.
    """

    def __init__(
        self,
        catalog: Catalog,
        spawn_positions: Iterable[Sequence[float]],
        store: ProgressStore,
        notifier: Optional[Notifier] = None,
        rng: Optional[random.Random] = None,
        damage_interval: float = 1.0,
        default_companion: Optional[str] = None,
        default_currency: int = 0,
        companion_standoff: float = 2.5,
        follow_offset: Pose = (-2.0, 0.0),
    ):
        self.lock = threading.RLock()
        self.catalog = catalog
        self._notifier = notifier or Notifier()
        self._standoff = companion_standoff
        self._follow_offset = (float(follow_offset[0]), float(follow_offset[1]))

        self.spawn_points = SpawnPointRegistry(spawn_positions)
        self.coins = CoinRegistry(self._notifier)
        self.arbiter = OwnershipArbiter(self.coins, self._notifier)
        self.sessions = SessionTable(self.coins, self.arbiter, self._power_of, damage_interval)
        self.players = PlayerSessionManager(
            store,
            self.sessions,
            self._notifier,
            default_companion=default_companion,
            default_currency=default_currency,
        )
        self.settlement = RewardSettlement(
            self.coins, self.spawn_points, catalog, self.players, self.sessions, self._notifier
        )
        self.coins.subscribe(self.settlement)
        self.director = SpawnDirector(self.spawn_points, self.coins, catalog, self._notifier, rng)

    @classmethod
    def from_config(cls, config, store: ProgressStore, notifier: Optional[Notifier] = None,
                    rng: Optional[random.Random] = None) -> 'GameWorld':
        return cls(
            Catalog.from_config(config),
            config.get('SPAWN_POINTS', []),
            store,
            notifier=notifier,
            rng=rng,
            damage_interval=float(config.get('DAMAGE_INTERVAL_SEC', 1.0)),
            default_companion=config.get('DEFAULT_COMPANION'),
            default_currency=int(config.get('DEFAULT_CURRENCY', 0)),
            companion_standoff=float(config.get('COMPANION_STANDOFF', 2.5)),
            follow_offset=config.get('COMPANION_FOLLOW_OFFSET', (-2.0, 0.0)),
        )

    def _power_of(self, player_id: str) -> int:
        state = self.players.get(player_id)
        return self.catalog.power_for(state.companion_type) if state else 0

    # ---- Players ----

    def join_player(self, player_id: str) -> PlayerState:
        validate_player_id(player_id)
        with self.lock:
            existing = self.players.get(player_id)
            if existing is not None:
                return existing
        # Store reads happen outside the lock so a slow database never stalls ticks
        state = self.players.load_state(player_id)
        with self.lock:
            return self.players.register(state)

    def leave_player(self, player_id: str) -> bool:
        with self.lock:
            return self.players.leave(player_id)

    def set_companion(self, player_id: str, companion_type: Optional[str]) -> Optional[PlayerState]:
        if companion_type is not None and not self.catalog.has_companion(companion_type):
            raise ValueError(f'Unknown companion type: {companion_type}')
        with self.lock:
            return self.players.set_companion(player_id, companion_type)

    def move_player(self, player_id: str, x: float, y: float) -> Optional[PlayerState]:
        with self.lock:
            return self.players.move(player_id, x, y)

    # ---- Coins ----

    def request_claim(self, player_id: str, coin_id: str) -> ClaimOutcome:
        """Handle a player's click on a coin.

        Clicking the coin you are already collecting stops the session.
        Clicking another coin moves your session there if the claim is
        granted; otherwise the click has no effect.
        """
        with self.lock:
            state = self.players.get(player_id)
            if state is None:
                return ClaimOutcome.UNKNOWN_PLAYER

            active = self.sessions.get(player_id)
            if active is not None and active.coin_id == coin_id:
                self.sessions.end(player_id, reason='toggled_off')
                return ClaimOutcome.STOPPED

            if not self.catalog.has_companion(state.companion_type):
                LOG.info(f"[claim-noop] player={player_id} coin={coin_id} reason=no_companion")
                return ClaimOutcome.NO_COMPANION

            result = self.arbiter.try_claim(player_id, coin_id)
            if result is ClaimResult.NO_SUCH_COIN:
                LOG.info(f"[claim-noop] player={player_id} coin={coin_id} reason=no_such_coin")
                return ClaimOutcome.NO_SUCH_COIN
            if result is ClaimResult.ALREADY_OWNED_BY_OTHER:
                LOG.info(f"[claim-noop] player={player_id} coin={coin_id} reason=owned_by_other")
                return ClaimOutcome.OWNED_BY_OTHER

            if active is not None:
                self.sessions.end(player_id, reason='switched')
            coin = self.coins.get(coin_id)
            offset = companion_offset(state.position, (coin.x, coin.y), self._standoff)
            self.sessions.start(player_id, coin_id, offset)
            return ClaimOutcome.STARTED

    def try_spawn_one(self) -> Optional[Coin]:
        with self.lock:
            return self.director.try_spawn_one()

    # ---- Frame ----

    def tick(self, dt: float) -> Dict[str, Pose]:
        """Advance the world by ``dt`` seconds of real time.

        Returns the companion target pose for every present player.
        """
        with self.lock:
            poses = self.sessions.tick(dt)
            batch = []
            for state in self.players:
                if state.player_id in poses:
                    pose, mode = poses[state.player_id], 'collect'
                else:
                    pose = (state.x + self._follow_offset[0], state.y + self._follow_offset[1])
                    poses[state.player_id] = pose
                    mode = 'follow'
                batch.append({'player_id': state.player_id, 'x': pose[0], 'y': pose[1], 'mode': mode})
            if batch:
                self._notifier.emit('companion_poses', {'poses': batch})
            return poses

    def snapshot(self) -> Dict[str, Any]:
        with self.lock:
            return {
                'spawn_points': [p.to_dict() for p in self.spawn_points.ordered()],
                'coins': [c.to_dict() for c in self.coins],
                'players': [p.to_dict() for p in self.players],
                'sessions': [s.to_dict() for s in self.sessions.active()],
            }
