import math
from datetime import date
from typing import Optional

from flask import Flask, Response, jsonify, request, session

from bydle.catalog import Catalog, load_catalog
from bydle.config import (CATALOG_FILE, MAP_DEFAULT_HEIGHT, MAP_DEFAULT_WIDTH, MAX_GUESSES,
                          SECRET_KEY, translate)
from bydle.game import GameSession, GuessRejected, daily_target
from bydle.mapview import MapView
from bydle.reveal import reveal_timeline
from bydle.settings import Settings

app = Flask(__name__)
app.secret_key = SECRET_KEY

if not app.secret_key:
    app.logger.critical("FATAL: SECRET_KEY environment variable not set!")

# --- Global Data Storage ---
catalog: Optional[Catalog] = None


def today() -> date:
    return date.today()


def get_settings() -> Settings:
    return Settings.from_mapping(session.get('settings'))


def get_game() -> Optional[GameSession]:
    """Loads today's session for the current player, dropping anything from an earlier day."""
    if not catalog:
        return None
    day = today()
    target = daily_target(catalog, day)
    if target is None:
        return None
    return GameSession.from_dict(session.get('game'), day, target, max_guesses=MAX_GUESSES)


def save_game(game: GameSession):
    session['game'] = game.to_dict()
    session.modified = True


def game_payload(game: GameSession) -> dict:
    payload = {
        'day': game.day.isoformat(),
        'max_guesses': game.max_guesses,
        'remaining': game.remaining,
        'finished': game.is_finished,
        'won': game.is_won,
        'guesses': [guess.to_dict() for guess in game.guesses],
    }
    if game.is_finished:
        payload['answer'] = game.target.name
    return payload


def _int_arg(name: str, default: int) -> int:
    try:
        return int(request.args.get(name, default))
    except (TypeError, ValueError):
        return default


def _float_arg(name: str, default: float) -> float:
    try:
        value = float(request.args.get(name, default))
    except (TypeError, ValueError):
        return default
    return value if math.isfinite(value) else default


app.logger.info("Starting initial data loading...")
catalog = load_catalog(CATALOG_FILE)
if catalog is None or len(catalog) == 0:
    app.logger.critical("FATAL: Failed to load the entity catalog during startup.")
    catalog = Catalog([])
else:
    app.logger.info(f"Successfully loaded {len(catalog)} playable areas.")


@app.route('/')
@app.route('/start', methods=['GET'])
def start():
    game = get_game()
    if game is None:
        return jsonify({'error': 'Game data not fully loaded'}), 500
    save_game(game)
    return jsonify(game_payload(game))


@app.route('/catalog', methods=['GET'])
def catalog_names():
    if not catalog:
        return jsonify({'error': 'Game data not fully loaded'}), 500
    return jsonify({'names': sorted(catalog.names)})


@app.route('/guess', methods=['POST'])
def guess():
    game = get_game()
    if game is None:
        return jsonify({'error': 'Game data not fully loaded'}), 500

    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get('name'), str) or not data['name'].strip():
        return jsonify({'error': 'Missing name in guess request'}), 400

    try:
        new_guess = game.submit(data['name'], catalog)
    except GuessRejected as e:
        app.logger.info(f"Rejected guess '{data['name']}': {e}")
        status = 409 if e.reason == 'gameOver' else 400
        return jsonify({'error': translate(e.reason), 'reason': e.reason}), status

    save_game(game)
    response_data = game_payload(game)
    response_data['guess'] = new_guess.to_dict()
    response_data['row'] = reveal_timeline(new_guess, get_settings(), translate=translate)
    return jsonify(response_data)


@app.route('/settings', methods=['GET', 'POST'])
def settings_route():
    if request.method == 'POST':
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Invalid settings payload'}), 400
        merged = {**get_settings().to_dict(), **data}
        session['settings'] = Settings.from_mapping(merged).to_dict()
        session.modified = True
    return jsonify(get_settings().to_dict())


def _build_map():
    game = get_game()
    if game is None:
        return None
    width = _int_arg('width', MAP_DEFAULT_WIDTH)
    height = _int_arg('height', MAP_DEFAULT_HEIGHT)
    touch = request.args.get('touch', '').lower() in ('1', 'true', 'yes')
    view = MapView(catalog.entities, max_guesses=game.max_guesses)
    scene = view.update(True, game.target, game.guesses, width, height, get_settings(), touch=touch)
    if scene is not None:
        # Pan and zoom are applied on top of the initial view, zoom first.
        if 'zoom' in request.args:
            scene.transform.zoom_to(_float_arg('zoom', scene.transform.k),
                                    _float_arg('cx', 0.0), _float_arg('cy', 0.0))
        scene.transform.pan_by(_float_arg('dx', 0.0), _float_arg('dy', 0.0))
    return scene


@app.route('/map.svg', methods=['GET'])
def map_svg():
    scene = _build_map()
    if scene is None:
        return jsonify({'error': 'Game data not fully loaded'}), 500
    return Response(scene.to_svg(), mimetype='image/svg+xml')


@app.route('/map.geojson', methods=['GET'])
def map_geojson():
    scene = _build_map()
    if scene is None:
        return jsonify({'error': 'Game data not fully loaded'}), 500
    return jsonify(scene.to_geojson())
