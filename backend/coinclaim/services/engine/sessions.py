"""Per-player collection sessions.

A session is the recurring damage process a player runs against the coin
they own. Sessions live in a ``SessionTable`` and are driven by one shared
``tick(dt)`` call; no session owns a timer of its own.

Lifecycle: Idle -> Active on a granted claim, Active -> Idle on toggle-off,
on a failed validation during a tick, on coin retirement or on player
leave. Every exit goes through ``_teardown``, which is guarded by the
session's one-shot ``cancelled`` flag.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .coins import CoinRegistry
from .ownership import OwnershipArbiter

LOG = logging.getLogger(__name__)

Pose = Tuple[float, float]


@dataclass
class CollectionSession:
    player_id: str
    # Reference by id only; re-validated on every tick
    coin_id: str
    offset: Pose = (0.0, 0.0)
    elapsed_since_last_damage: float = 0.0
    cancelled: bool = False

    def to_dict(self):
        return {
            'player_id': self.player_id,
            'coin_id': self.coin_id,
            'elapsed_since_last_damage': self.elapsed_since_last_damage,
        }


def companion_offset(player_pos: Pose, coin_pos: Pose, standoff: float) -> Pose:
    """Offset from the coin where the companion parks, on the player's side."""
    dx = player_pos[0] - coin_pos[0]
    dy = player_pos[1] - coin_pos[1]
    dist = math.hypot(dx, dy)
    if dist == 0:
        return (standoff, 0.0)
    return (dx / dist * standoff, dy / dist * standoff)


class SessionTable:
    def __init__(
        self,
        coins: CoinRegistry,
        arbiter: OwnershipArbiter,
        power_of: Callable[[str], int],
        damage_interval: float = 1.0,
    ):
        if damage_interval <= 0:
            raise ValueError('damage_interval must be positive')
        self._coins = coins
        self._arbiter = arbiter
        self._power_of = power_of
        self._damage_interval = damage_interval
        self._sessions: Dict[str, CollectionSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, player_id: str) -> Optional[CollectionSession]:
        return self._sessions.get(player_id)

    def for_coin(self, coin_id: str) -> Optional[CollectionSession]:
        for session in self._sessions.values():
            if session.coin_id == coin_id:
                return session
        return None

    def active(self) -> List[CollectionSession]:
        return list(self._sessions.values())

    def start(self, player_id: str, coin_id: str, offset: Pose = (0.0, 0.0)) -> CollectionSession:
        if player_id in self._sessions:
            raise RuntimeError(f'player {player_id} already has an active session')
        other = self.for_coin(coin_id)
        if other is not None:
            raise RuntimeError(f'coin {coin_id} is already being collected by {other.player_id}')
        session = CollectionSession(player_id=player_id, coin_id=coin_id, offset=offset)
        self._sessions[player_id] = session
        LOG.info(f"[session-start] player={player_id} coin={coin_id}")
        return session

    def end(self, player_id: str, reason: str = 'stopped') -> bool:
        """Tear down the player's session, if any. Safe to call repeatedly."""
        session = self._sessions.get(player_id)
        if session is None:
            return False
        return self._teardown(session, reason)

    def end_for_coin(self, coin_id: str, reason: str = 'coin_removed') -> bool:
        session = self.for_coin(coin_id)
        if session is None:
            return False
        return self._teardown(session, reason)

    def _teardown(self, session: CollectionSession, reason: str) -> bool:
        if session.cancelled:
            return False
        session.cancelled = True
        if self._sessions.get(session.player_id) is session:
            del self._sessions[session.player_id]
        # Never release a coin someone else has since claimed
        if self._arbiter.owner_of(session.coin_id) == session.player_id:
            self._arbiter.release(session.coin_id)
        LOG.info(f"[session-end] player={session.player_id} coin={session.coin_id} reason={reason}")
        return True

    def tick(self, dt: float) -> Dict[str, Pose]:
        """Advance every active session by ``dt`` seconds.

        Returns the companion pose of each session still active after its
        own step, keyed by player id.
        """
        poses: Dict[str, Pose] = {}
        for session in list(self._sessions.values()):
            pose = self._step(session, dt)
            if pose is not None and not session.cancelled:
                poses[session.player_id] = pose
        return poses

    def _step(self, session: CollectionSession, dt: float) -> Optional[Pose]:
        if session.cancelled:
            return None
        coin = self._coins.get(session.coin_id)
        if coin is None or coin.owner_id != session.player_id:
            self._teardown(session, 'stale')
            return None
        pose = (coin.x + session.offset[0], coin.y + session.offset[1])
        session.elapsed_since_last_damage += dt
        if session.elapsed_since_last_damage >= self._damage_interval:
            session.elapsed_since_last_damage = 0.0
            self._coins.apply_damage(coin.id, self._power_of(session.player_id))
        return pose
