import logging
from typing import Optional, Sequence, Tuple

from .catalog import Entity
from .config import MAP_MARGIN, MAX_GUESSES
from .graph import build_map_graph
from .guess import Guess
from .highlight import apply_highlights, is_game_over
from .render import MapScene, MercatorFit, build_scene
from .settings import Settings

logger = logging.getLogger(__name__)


class MapView:
    """
    Owns the map scene. Any change to open state, target, guesses, settings or
    viewport size throws the old scene away and rebuilds it from the catalog,
    which also resets pan and zoom to the initial view.
    """

    def __init__(self, entities: Sequence[Entity], margin: float = MAP_MARGIN,
                 max_guesses: int = MAX_GUESSES):
        self.entities = list(entities)
        self.margin = margin
        self.max_guesses = max_guesses
        self.scene: Optional[MapScene] = None
        self.rebuilds = 0
        self._render_key: Optional[Tuple] = None

    def update(self, is_open: bool, target: Optional[Entity], guesses: Sequence[Guess],
               width: float, height: float, settings: Settings, touch: bool = False) -> Optional[MapScene]:
        key = (is_open, target.code if target else None, tuple(guesses), width, height, settings, touch)
        if key == self._render_key:
            return self.scene
        self._render_key = key

        if not is_open:
            self.scene = None
            return None

        nodes, edges = build_map_graph(self.entities)
        projection = MercatorFit.fit(nodes, width, height, self.margin)
        if projection is None:
            logger.debug(f"Map viewport {width}x{height} not usable yet, rendering empty scene.")
        winner_name = target.name if target else None
        # The target only stands out once the answer may be shown.
        active_name = winner_name if is_game_over(guesses, self.max_guesses) else None
        self.scene = build_scene(nodes, edges, projection, active_name, width, height, touch=touch)
        apply_highlights(winner_name, guesses, self.scene, settings.hide_names_on_map,
                         self.max_guesses)
        self.rebuilds += 1
        return self.scene
