import logging
from typing import Optional

from .catalog import Catalog
from .coins import Coin, CoinRegistry
from .notify import Notifier
from .players import PlayerSessionManager
from .sessions import SessionTable
from .spawn_points import SpawnPointRegistry

LOG = logging.getLogger(__name__)


class RewardSettlement:
    """Pays out and retires a coin once its health reaches zero.

    Subscribed to the coin registry's health-changed listeners. A coin is
    settled at most once: the first call removes it from the registry and
    every later call finds it gone.
    """

    def __init__(
        self,
        coins: CoinRegistry,
        spawn_points: SpawnPointRegistry,
        catalog: Catalog,
        players: PlayerSessionManager,
        sessions: SessionTable,
        notifier: Optional[Notifier] = None,
    ):
        self._coins = coins
        self._spawn_points = spawn_points
        self._catalog = catalog
        self._players = players
        self._sessions = sessions
        self._notifier = notifier or Notifier()

    def __call__(self, coin: Coin) -> bool:
        return self.settle(coin)

    def settle(self, coin: Coin) -> bool:
        if coin.health > 0:
            return False
        if self._coins.get(coin.id) is not coin:
            return False
        self._coins.remove(coin.id)

        reward = self._catalog.reward_for(coin.coin_type)
        owner_id = coin.owner_id
        paid = False
        # Reward for an owner who already left is discarded
        if owner_id is not None and self._players.get(owner_id) is not None:
            self._players.credit(owner_id, reward)
            paid = True
        self._spawn_points.release(coin.spawn_point_id)
        self._sessions.end_for_coin(coin.id, reason='coin_retired')

        LOG.info(f"[settle] coin={coin.id} type={coin.coin_type} owner={owner_id} reward={reward} paid={paid}")
        self._notifier.emit('coin_retired', {
            'coin_id': coin.id,
            'spawn_point_id': coin.spawn_point_id,
            'owner_id': owner_id,
            'reward': reward,
            'paid': paid,
        })
        return True
