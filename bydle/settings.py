import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)


class DistanceUnit(str, Enum):
    METRIC = 'metric'
    IMPERIAL = 'imperial'


class Theme(str, Enum):
    LIGHT = 'light'
    DARK = 'dark'


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


@dataclass(frozen=True)
class Settings:
    """Player preferences. The game core only ever reads these."""

    distance_unit: DistanceUnit = DistanceUnit.METRIC
    theme: Theme = Theme.DARK
    bydel_helper_mode: bool = False
    hide_names_on_map: bool = False

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> 'Settings':
        """Builds settings from a loose mapping; unknown values fall back to defaults."""
        if not data:
            return cls()
        defaults = cls()
        try:
            unit = DistanceUnit(data.get('distance_unit', defaults.distance_unit))
        except ValueError:
            logger.warning(f"Unknown distance unit {data.get('distance_unit')!r}, using {defaults.distance_unit.value}.")
            unit = defaults.distance_unit
        try:
            theme = Theme(data.get('theme', defaults.theme))
        except ValueError:
            logger.warning(f"Unknown theme {data.get('theme')!r}, using {defaults.theme.value}.")
            theme = defaults.theme
        return cls(
            distance_unit=unit,
            theme=theme,
            bydel_helper_mode=_as_bool(data.get('bydel_helper_mode', defaults.bydel_helper_mode)),
            hide_names_on_map=_as_bool(data.get('hide_names_on_map', defaults.hide_names_on_map)),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['distance_unit'] = self.distance_unit.value
        data['theme'] = self.theme.value
        return data
