import json
import logging
import math
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)


def normalize_name(name: str) -> str:
    return name.strip().lower()


def _coordinate(value: Any) -> Optional[float]:
    """Finite float or None; catalog records are not trusted to carry numbers."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-numeric coordinate {value!r}.")
        return None
    return number if math.isfinite(number) else None


@dataclass(frozen=True)
class Entity:
    """A named area with a centre point and the codes of the areas bordering it."""

    code: str
    name: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    neighbours: Tuple[str, ...] = field(default_factory=tuple)
    bydel: Optional[str] = None

    @property
    def coordinate(self) -> Tuple[Optional[float], Optional[float]]:
        return self.latitude, self.longitude

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Entity':
        return cls(
            code=str(data['code']),
            name=str(data['name']),
            latitude=_coordinate(data.get('latitude')),
            longitude=_coordinate(data.get('longitude')),
            neighbours=tuple(str(n) for n in data.get('neighbours') or ()),
            bydel=data.get('bydel'),
        )


class Catalog:
    """Read-only, ordered entity collection with case-insensitive name lookup."""

    def __init__(self, entities: Iterable[Entity]):
        self._entities: List[Entity] = []
        self._by_name: Dict[str, Entity] = {}
        self._by_code: Dict[str, Entity] = {}
        for entity in entities:
            key = normalize_name(entity.name)
            if key in self._by_name or entity.code in self._by_code:
                logger.warning(f"Duplicate catalog entry '{entity.name}' ({entity.code}), keeping the first.")
                continue
            self._entities.append(entity)
            self._by_name[key] = entity
            self._by_code[entity.code] = entity

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._entities)

    def __len__(self) -> int:
        return len(self._entities)

    @property
    def entities(self) -> List[Entity]:
        return list(self._entities)

    @property
    def names(self) -> List[str]:
        return [entity.name for entity in self._entities]

    def find(self, name: Optional[str]) -> Optional[Entity]:
        if not name:
            return None
        return self._by_name.get(normalize_name(name))

    def by_code(self, code: str) -> Optional[Entity]:
        return self._by_code.get(code)


def load_catalog(filepath: str) -> Optional[Catalog]:
    """Loads the entity catalog from a JSON list of records."""
    logger.info(f"Loading entity catalog from {filepath}...")
    if not os.path.exists(filepath):
        logger.error(f"Catalog file '{filepath}' not found.")
        return None
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            records = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Error decoding JSON from '{filepath}': {e}", exc_info=True)
        return None
    except OSError as e:
        logger.error(f"Error reading catalog file '{filepath}': {e}", exc_info=True)
        return None

    if not isinstance(records, list):
        logger.error(f"Catalog file '{filepath}' must contain a JSON list.")
        return None

    entities = []
    for record in records:
        try:
            entities.append(Entity.from_dict(record))
        except (KeyError, TypeError) as e:
            logger.warning(f"Skipping malformed catalog record {record!r}: {e}")

    catalog = Catalog(entities)
    logger.info(f"Loaded {len(catalog)} catalog entities.")
    return catalog
