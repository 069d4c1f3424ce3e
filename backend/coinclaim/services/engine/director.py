import logging
import random
from typing import Optional

from .catalog import Catalog
from .coins import Coin, CoinRegistry
from .notify import Notifier
from .spawn_points import SpawnPointRegistry

LOG = logging.getLogger(__name__)


class SpawnDirector:
    """Places at most one new coin per trigger.

    Spawn points are scanned in their fixed order and the first free one
    gets a coin of a uniformly random configured type.
    """

    def __init__(
        self,
        spawn_points: SpawnPointRegistry,
        coins: CoinRegistry,
        catalog: Catalog,
        notifier: Optional[Notifier] = None,
        rng: Optional[random.Random] = None,
    ):
        self._spawn_points = spawn_points
        self._coins = coins
        self._catalog = catalog
        self._notifier = notifier or Notifier()
        self._rng = rng or random.Random()

    def try_spawn_one(self) -> Optional[Coin]:
        for point in self._spawn_points.ordered():
            if point.occupied:
                continue
            self._spawn_points.occupy(point.id)
            coin_type = self._rng.choice(self._catalog.coin_types())
            coin = self._coins.create(coin_type, self._catalog.health_for(coin_type), point)
            LOG.info(f"[spawn] coin={coin.id} type={coin_type} spawn_point={point.id}")
            self._notifier.emit('coin_spawned', coin.to_dict())
            return coin
        return None
