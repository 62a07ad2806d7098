from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .catalog import Catalog, Entity
from .geography import Direction, distance_and_direction


@dataclass(frozen=True)
class Guess:
    """One scored player submission. Never changed after creation."""

    name: str
    distance: Optional[float]
    direction: Direction
    bydel_is_correct: bool = False
    submitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'distance': self.distance,
            'direction': self.direction.value,
            'bydel_is_correct': self.bydel_is_correct,
            'submitted_at': self.submitted_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Guess':
        return cls(
            name=data['name'],
            distance=data.get('distance'),
            direction=Direction(data.get('direction', Direction.ERROR)),
            bydel_is_correct=bool(data.get('bydel_is_correct', False)),
            submitted_at=datetime.fromisoformat(data['submitted_at']),
        )


def make_guess(name: str, target: Entity, catalog: Catalog) -> Optional[Guess]:
    """
    Scores a submitted name against the target.

    Returns None when the name does not resolve to a catalog entity.
    """
    entity = catalog.find(name)
    if entity is None:
        return None
    if entity.code == target.code:
        distance, direction = 0.0, Direction.ERROR
    else:
        distance, direction = distance_and_direction(entity.coordinate, target.coordinate)
    bydel_is_correct = entity.bydel is not None and entity.bydel == target.bydel
    return Guess(
        name=entity.name,
        distance=distance,
        direction=direction,
        bydel_is_correct=bydel_is_correct,
    )
