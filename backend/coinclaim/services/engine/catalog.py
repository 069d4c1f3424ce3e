from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional


@dataclass(frozen=True)
class CoinSpec:
    reward: int
    health: int


class Catalog:
    """Static companion and coin tables.

    The type sets come from configuration and are fixed for the lifetime of
    the process. Unknown types resolve to zero reward / zero power rather
    than raising.
    """

    def __init__(self, companion_power: Mapping[str, int], coin_types: Mapping[str, Mapping[str, int]]):
        if not coin_types:
            raise ValueError('At least one coin type must be configured')
        self._companion_power: Dict[str, int] = {k: int(v) for k, v in companion_power.items()}
        self._coins: Dict[str, CoinSpec] = {
            name: CoinSpec(reward=int(spec.get('reward', 0)), health=int(spec['health']))
            for name, spec in coin_types.items()
        }

    @classmethod
    def from_config(cls, config) -> 'Catalog':
        return cls(config.get('COMPANION_POWER', {}), config.get('COIN_TYPES', {}))

    def coin_types(self) -> List[str]:
        return list(self._coins)

    def companion_types(self) -> List[str]:
        return list(self._companion_power)

    def reward_for(self, coin_type: str) -> int:
        spec = self._coins.get(coin_type)
        return spec.reward if spec else 0

    def health_for(self, coin_type: str) -> int:
        return self._coins[coin_type].health

    def has_companion(self, companion_type: Optional[str]) -> bool:
        return companion_type is not None and companion_type in self._companion_power

    def power_for(self, companion_type: Optional[str]) -> int:
        if companion_type is None:
            return 0
        return self._companion_power.get(companion_type, 0)
