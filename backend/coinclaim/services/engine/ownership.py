import logging
from enum import Enum
from typing import Optional

from .coins import CoinRegistry
from .notify import Notifier

LOG = logging.getLogger(__name__)


class ClaimResult(str, Enum):
    CLAIMED = 'claimed'
    ALREADY_OWNED_BY_OTHER = 'already_owned_by_other'
    NO_SUCH_COIN = 'no_such_coin'


class OwnershipArbiter:
    """Single writer of ``Coin.owner_id``.

    A coin has at most one owner. Claims are only granted when the coin is
    free or already held by the requester, so two players can never be
    recorded against the same coin.
    """

    def __init__(self, coins: CoinRegistry, notifier: Optional[Notifier] = None):
        self._coins = coins
        self._notifier = notifier or Notifier()

    def owner_of(self, coin_id: str) -> Optional[str]:
        coin = self._coins.get(coin_id)
        return coin.owner_id if coin else None

    def try_claim(self, player_id: str, coin_id: str) -> ClaimResult:
        coin = self._coins.get(coin_id)
        if coin is None:
            return ClaimResult.NO_SUCH_COIN
        if coin.owner_id is not None and coin.owner_id != player_id:
            return ClaimResult.ALREADY_OWNED_BY_OTHER
        if coin.owner_id is None:
            coin.owner_id = player_id
            LOG.info(f"[claim] player={player_id} coin={coin_id}")
            self._notifier.emit('coin_claimed', {'coin_id': coin_id, 'player_id': player_id, 'health': coin.health})
        return ClaimResult.CLAIMED

    def release(self, coin_id: str) -> None:
        coin = self._coins.get(coin_id)
        if coin is None or coin.owner_id is None:
            return
        previous = coin.owner_id
        coin.owner_id = None
        LOG.info(f"[release] player={previous} coin={coin_id}")
        self._notifier.emit('coin_released', {'coin_id': coin_id, 'player_id': previous})
