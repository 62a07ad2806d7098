import os

from dotenv import load_dotenv

load_dotenv()

# --- Configuration & Constants ---
SECRET_KEY = os.environ.get('SECRET_KEY')
CATALOG_FILE = os.environ.get('CATALOG_FILE', 'catalog.json')

MAX_GUESSES = int(os.environ.get('MAX_GUESSES', 6))
# Proximity hits 0% at this distance (metres). Oslo is roughly 20 km across.
MAX_DISTANCE_M = float(os.environ.get('MAX_DISTANCE_M', 20_000))

SQUARE_ANIMATION_LENGTH_MS = int(os.environ.get('SQUARE_ANIMATION_LENGTH_MS', 250))
SQUARE_ANIMATION_LENGTH_S = SQUARE_ANIMATION_LENGTH_MS / 1000.0

MAP_MARGIN = float(os.environ.get('MAP_MARGIN', 20))
MAP_SCALE_EXTENT = (1.0, float(os.environ.get('MAP_MAX_SCALE', 10)))
MAP_DESKTOP_OFFSET_X = 100.0
MAP_DEFAULT_HEIGHT = 600
MAP_DEFAULT_WIDTH = 800

MAP_THEME = {
    'background': '#0f172a',
    'node_fill': '#f2a900',
    'node_active_fill': '#38bdf8',
    'node_correct_fill': 'green',
    'node_incorrect_fill': 'red',
    'label_color': '#AAAAAA',
    'edge_stroke': 'white',
}

TRANSLATIONS = {
    'bydelCorrect': 'Bydelen er korrekt',
    'bydelIncorrect': 'Bydelen er ikke korrekt',
    'mapTitle': 'Kart',
    'unknownName': 'Ukjent sted',
    'alreadyGuessed': 'Allerede gjettet',
    'gameOver': 'Spillet er over',
}


def translate(key: str) -> str:
    """Looks up a UI string, falling back to the key itself."""
    return TRANSLATIONS.get(key, key)
