"""Tests for catalog loading, guess scoring and the daily game session."""

import json
from datetime import timedelta
from pathlib import Path

import pytest

from bydle.catalog import Catalog, Entity, load_catalog
from bydle.game import GameSession, GuessRejected, daily_target
from bydle.geography import Direction
from bydle.guess import make_guess
from bydle.mapview import MapView
from bydle.settings import DistanceUnit, Settings, Theme

SHIPPED_CATALOG = Path(__file__).resolve().parent.parent / "catalog.json"


class TestCatalog:
    def test_load_catalog(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps([
            {"code": "A", "name": "Alpha", "latitude": 1.0, "longitude": 2.0, "neighbours": ["B"], "bydel": "X"},
            {"code": "B", "name": "Beta"},
            {"name": "No code"},
            {"code": "C", "name": "alpha"},
        ]), encoding="utf-8")
        catalog = load_catalog(str(path))
        assert catalog.names == ["Alpha", "Beta"]
        assert catalog.find("ALPHA ").neighbours == ("B",)
        assert catalog.find("Beta").latitude is None

    def test_missing_file(self, tmp_path):
        assert load_catalog(str(tmp_path / "nope.json")) is None

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_catalog(str(path)) is None

    def test_coordinates_are_coerced(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps([
            {"code": "A", "name": "Alpha", "latitude": "59.9", "longitude": 10.7},
            {"code": "B", "name": "Beta", "latitude": "north", "longitude": [10]},
            {"code": "C", "name": "Gamma", "latitude": True, "longitude": "nan"},
        ]), encoding="utf-8")
        catalog = load_catalog(str(path))
        assert catalog.find("Alpha").coordinate == (59.9, 10.7)
        assert catalog.find("Beta").coordinate == (None, None)
        assert catalog.find("Gamma").coordinate == (None, None)

        scene = MapView(catalog.entities).update(True, catalog.find("Alpha"), (), 800, 600, Settings())
        assert len(scene.nodes) == 3

    def test_shipped_catalog_is_consistent(self):
        catalog = load_catalog(str(SHIPPED_CATALOG))
        assert catalog is not None and len(catalog) > 0
        codes = {entity.code for entity in catalog}
        for entity in catalog:
            assert set(entity.neighbours) <= codes


class TestMakeGuess:
    def test_unknown_name(self, catalog, entities):
        assert make_guess("Atlantis", entities[0], catalog) is None

    def test_correct_guess(self, catalog, entities):
        guess = make_guess("oslo", entities[0], catalog)
        assert guess.name == "Oslo"
        assert guess.distance == 0.0
        assert guess.direction == Direction.ERROR
        assert guess.bydel_is_correct

    def test_wrong_guess_same_region(self, catalog, entities):
        guess = make_guess("Stavanger", entities[1], catalog)
        assert guess.distance > 0
        assert guess.direction == Direction.N
        assert guess.bydel_is_correct

    def test_missing_coordinates(self, entities):
        catalog = Catalog(entities + [Entity("NOP", "Nowhere")])
        guess = make_guess("Nowhere", entities[0], catalog)
        assert guess.distance is None
        assert guess.direction == Direction.ERROR
        assert not guess.bydel_is_correct


class TestGameSession:
    def test_daily_target_is_deterministic(self, catalog, game_day):
        assert daily_target(catalog, game_day) is daily_target(catalog, game_day)
        assert daily_target(Catalog([]), game_day) is None

    def test_daily_target_varies(self, catalog, game_day):
        targets = {daily_target(catalog, game_day + timedelta(days=i)).code for i in range(30)}
        assert len(targets) > 1

    def test_win(self, catalog, entities, game_day):
        game = GameSession(game_day, entities[0])
        game.submit("Bergen", catalog)
        assert not game.is_finished
        game.submit("Oslo", catalog)
        assert game.is_won and game.is_finished
        with pytest.raises(GuessRejected) as excinfo:
            game.submit("Trondheim", catalog)
        assert excinfo.value.reason == "gameOver"

    def test_guess_limit(self, catalog, entities, game_day):
        game = GameSession(game_day, entities[0], max_guesses=2)
        game.submit("Bergen", catalog)
        game.submit("Trondheim", catalog)
        assert game.is_finished and not game.is_won
        assert game.remaining == 0

    @pytest.mark.parametrize("name,reason", [("Atlantis", "unknownName"), ("BERGEN", "alreadyGuessed")])
    def test_rejections_do_not_count(self, catalog, entities, game_day, name, reason):
        game = GameSession(game_day, entities[0])
        game.submit("Bergen", catalog)
        with pytest.raises(GuessRejected) as excinfo:
            game.submit(name, catalog)
        assert excinfo.value.reason == reason
        assert len(game.guesses) == 1

    def test_round_trip_and_day_rollover(self, catalog, entities, game_day):
        game = GameSession(game_day, entities[0])
        game.submit("Bergen", catalog)
        stored = json.loads(json.dumps(game.to_dict()))

        restored = GameSession.from_dict(stored, game_day, entities[0])
        assert restored.guesses == game.guesses

        tomorrow = GameSession.from_dict(stored, game_day + timedelta(days=1), entities[0])
        assert tomorrow.guesses == ()


class TestSettings:
    def test_defaults(self):
        assert Settings.from_mapping(None) == Settings()

    def test_from_mapping(self):
        settings = Settings.from_mapping({"distance_unit": "imperial", "theme": "light",
                                          "bydel_helper_mode": "true", "hide_names_on_map": 1})
        assert settings == Settings(DistanceUnit.IMPERIAL, Theme.LIGHT, True, True)

    def test_invalid_values_fall_back(self):
        settings = Settings.from_mapping({"distance_unit": "furlongs", "theme": "neon"})
        assert settings.distance_unit == DistanceUnit.METRIC
        assert settings.theme == Theme.DARK

    def test_to_dict_round_trip(self):
        settings = Settings(DistanceUnit.IMPERIAL, Theme.LIGHT, True, False)
        assert Settings.from_mapping(settings.to_dict()) == settings
