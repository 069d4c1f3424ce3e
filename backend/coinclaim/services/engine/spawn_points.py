from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence


@dataclass
class SpawnPoint:
    id: str
    x: float
    y: float
    occupied: bool = False

    def to_dict(self):
        return {
            'id': self.id,
            'x': self.x,
            'y': self.y,
            'occupied': self.occupied,
        }


class SpawnPointRegistry:
    """Fixed set of spawn locations, created once at world start.

    Ids are ``spawn-1``, ``spawn-2``, ... in configuration order, which is
    also the scan order used by the spawn director.
    """

    def __init__(self, positions: Iterable[Sequence[float]]):
        self._points: Dict[str, SpawnPoint] = {}
        self._order: List[str] = []
        for idx, pos in enumerate(positions, start=1):
            x, y = pos
            point = SpawnPoint(id=f'spawn-{idx}', x=float(x), y=float(y))
            self._points[point.id] = point
            self._order.append(point.id)

    def __len__(self) -> int:
        return len(self._order)

    def get(self, spawn_point_id: str) -> Optional[SpawnPoint]:
        return self._points.get(spawn_point_id)

    def ordered(self) -> List[SpawnPoint]:
        return [self._points[pid] for pid in self._order]

    def occupy(self, spawn_point_id: str) -> bool:
        """Mark a free point occupied. Returns False if it already was."""
        point = self._points[spawn_point_id]
        if point.occupied:
            return False
        point.occupied = True
        return True

    def release(self, spawn_point_id: str) -> None:
        point = self._points.get(spawn_point_id)
        if point:
            point.occupied = False

    def occupied_count(self) -> int:
        return sum(1 for p in self._points.values() if p.occupied)

    def free_count(self) -> int:
        return len(self._order) - self.occupied_count()
