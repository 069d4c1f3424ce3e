import logging
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional

from .notify import Notifier
from .spawn_points import SpawnPoint

LOG = logging.getLogger(__name__)

HealthListener = Callable[['Coin'], None]


@dataclass
class Coin:
    id: str
    coin_type: str
    health: int
    spawn_point_id: str
    x: float
    y: float
    # Written only by OwnershipArbiter
    owner_id: Optional[str] = None

    def to_dict(self):
        return {
            'id': self.id,
            'coin_type': self.coin_type,
            'health': self.health,
            'owner_id': self.owner_id,
            'spawn_point_id': self.spawn_point_id,
            'x': self.x,
            'y': self.y,
        }


class CoinRegistry:
    """Live coins indexed by id.

    Health changes go through ``apply_damage`` so that every change reaches
    the presentation notifier and the health listeners in the order it
    happened.
    """

    def __init__(self, notifier: Optional[Notifier] = None):
        self._coins: Dict[str, Coin] = {}
        self._listeners: List[HealthListener] = []
        self._notifier = notifier or Notifier()

    def __len__(self) -> int:
        return len(self._coins)

    def __iter__(self) -> Iterator[Coin]:
        return iter(list(self._coins.values()))

    def __contains__(self, coin_id: str) -> bool:
        return coin_id in self._coins

    def subscribe(self, listener: HealthListener) -> None:
        self._listeners.append(listener)

    def create(self, coin_type: str, health: int, spawn_point: SpawnPoint) -> Coin:
        coin = Coin(
            id=uuid.uuid4().hex,
            coin_type=coin_type,
            health=health,
            spawn_point_id=spawn_point.id,
            x=spawn_point.x,
            y=spawn_point.y,
        )
        self._coins[coin.id] = coin
        return coin

    def get(self, coin_id: str) -> Optional[Coin]:
        return self._coins.get(coin_id)

    def remove(self, coin_id: str) -> Optional[Coin]:
        return self._coins.pop(coin_id, None)

    def apply_damage(self, coin_id: str, amount: int) -> bool:
        """Lower a coin's health and fire health-changed.

        Unowned or unknown coins are left untouched.
        """
        coin = self._coins.get(coin_id)
        if coin is None or coin.owner_id is None:
            return False
        coin.health -= amount
        LOG.debug(f"[damage] coin={coin.id} owner={coin.owner_id} amount={amount} health={coin.health}")
        self._notifier.emit('coin_health', {'coin_id': coin.id, 'health': coin.health})
        for listener in list(self._listeners):
            listener(coin)
        return True
