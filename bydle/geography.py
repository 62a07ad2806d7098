import math
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pyproj import Geod

from .config import MAX_DISTANCE_M
from .settings import DistanceUnit, Theme

Coordinate = Tuple[Optional[float], Optional[float]]  # (latitude, longitude)

GEOD = Geod(ellps="WGS84")
METRES_PER_MILE = 1609.344
SQUARE_COUNT = 5


class Direction(str, Enum):
    N = 'N'
    NE = 'NE'
    E = 'E'
    SE = 'SE'
    S = 'S'
    SW = 'SW'
    W = 'W'
    NW = 'NW'
    ERROR = 'ERROR'


# Clockwise from north, one entry per 45 degree sector.
SECTORS = [Direction.N, Direction.NE, Direction.E, Direction.SE,
           Direction.S, Direction.SW, Direction.W, Direction.NW]

DIRECTION_ARROWS: Dict[Direction, str] = {
    Direction.N: "⬆️",
    Direction.NE: "↗️",
    Direction.E: "➡️",
    Direction.SE: "↘️",
    Direction.S: "⬇️",
    Direction.SW: "↙️",
    Direction.W: "⬅️",
    Direction.NW: "↖️",
    Direction.ERROR: "❌",
}
CELEBRATION = "🎉"

SQUARES: Dict[Theme, Dict[str, str]] = {
    Theme.LIGHT: {'full': "🟩", 'partial': "🟨", 'empty': "⬜"},
    Theme.DARK: {'full': "🟩", 'partial': "🟨", 'empty': "⬛"},
}


def _valid_coordinate(coord: Optional[Coordinate]) -> bool:
    if coord is None or len(coord) != 2:
        return False
    lat, lon = coord
    if not isinstance(lat, (int, float)) or not isinstance(lon, (int, float)):
        return False
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


def bearing_to_direction(bearing: float) -> Direction:
    """Buckets a bearing in degrees (any range) into one of eight compass sectors."""
    if bearing is None or not math.isfinite(bearing):
        return Direction.ERROR
    index = int(math.floor(((bearing % 360) + 22.5) / 45)) % 8
    return SECTORS[index]


def distance_and_direction(guess_coord: Optional[Coordinate],
                           target_coord: Optional[Coordinate]) -> Tuple[Optional[float], Direction]:
    """
    Geodesic distance in metres and compass direction from the guess towards the target.

    Returns (None, ERROR) when a coordinate is missing or invalid and
    (0.0, ERROR) when both coordinates coincide.
    """
    if not _valid_coordinate(guess_coord) or not _valid_coordinate(target_coord):
        return None, Direction.ERROR
    (lat1, lon1), (lat2, lon2) = guess_coord, target_coord
    if lat1 == lat2 and lon1 == lon2:
        return 0.0, Direction.ERROR
    azimuth, _, distance_m = GEOD.inv(lon1, lat1, lon2, lat2)
    if distance_m == 0:
        return 0.0, Direction.ERROR
    return max(0.0, float(distance_m)), bearing_to_direction(azimuth)


def proximity_percent(distance: Optional[float], max_distance: float = MAX_DISTANCE_M) -> int:
    """Bounded 0-100 closeness score; 100 at zero distance, 0 at or beyond max_distance."""
    if distance is None or not math.isfinite(distance) or max_distance <= 0:
        return 0
    distance = max(0.0, distance)
    if distance >= max_distance:
        return 0
    return min(100, max(0, int(math.floor((max_distance - distance) / max_distance * 100))))


def format_distance(distance: Optional[float], unit: DistanceUnit) -> str:
    if distance is None or not math.isfinite(distance):
        return "-"
    distance = max(0.0, distance)
    if unit == DistanceUnit.IMPERIAL:
        return f"{distance / METRES_PER_MILE:.1f} mi"
    return f"{distance / 1000:.1f} km"


def generate_square_characters(proximity: int, theme: Theme, direction: Direction) -> List[str]:
    """Reveal cells: five proximity squares followed by the direction arrow (or a celebration)."""
    proximity = min(100, max(0, int(proximity)))
    glyphs = SQUARES.get(theme, SQUARES[Theme.DARK])
    full = proximity // 20
    partial = 1 if full < SQUARE_COUNT and proximity - full * 20 >= 10 else 0
    characters = [glyphs['full']] * full + [glyphs['partial']] * partial
    characters += [glyphs['empty']] * (SQUARE_COUNT - len(characters))
    characters.append(CELEBRATION if proximity == 100 else DIRECTION_ARROWS[direction])
    return characters
