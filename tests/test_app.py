"""Tests for the Flask routes."""

import re

import pytest

import app as app_module
from bydle.catalog import Catalog
from bydle.config import MAP_THEME
from bydle.game import daily_target


@pytest.fixture()
def client(monkeypatch, catalog, game_day):
    monkeypatch.setattr(app_module, "catalog", catalog)
    monkeypatch.setattr(app_module, "today", lambda: game_day)
    app_module.app.config.update(TESTING=True, SECRET_KEY="test-secret")
    with app_module.app.test_client() as client:
        yield client


@pytest.fixture()
def target(catalog, game_day):
    return daily_target(catalog, game_day)


@pytest.fixture()
def wrong_name(catalog, target):
    return next(name for name in catalog.names if name != target.name)


def test_start(client, game_day):
    response = client.get("/start")
    assert response.status_code == 200
    data = response.get_json()
    assert data["day"] == game_day.isoformat()
    assert data["max_guesses"] == 6
    assert data["guesses"] == []
    assert "answer" not in data


def test_catalog_names(client):
    assert client.get("/catalog").get_json()["names"] == sorted(
        ["Oslo", "Bergen", "Trondheim", "Stavanger", "Kristiansand"])


def test_wrong_then_right_guess(client, target, wrong_name):
    response = client.post("/guess", json={"name": wrong_name.lower()})
    assert response.status_code == 200
    data = response.get_json()
    assert data["guess"]["name"] == wrong_name
    assert data["remaining"] == 5
    assert data["row"]["running"]["state"] == "RUNNING"
    assert data["row"]["ended"]["name"] == wrong_name.upper()
    assert data["row"]["ended"]["distance"].endswith(" km")

    data = client.post("/guess", json={"name": target.name}).get_json()
    assert data["won"] and data["finished"]
    assert data["answer"] == target.name
    assert data["row"]["ended"]["arrow"] == "🎉"

    response = client.post("/guess", json={"name": wrong_name})
    assert response.status_code == 409
    assert response.get_json()["reason"] == "gameOver"


@pytest.mark.parametrize("payload", [None, {}, {"name": ""}, {"name": 5}, ["Oslo"], "Oslo"])
def test_guess_validation(client, payload):
    response = client.post("/guess", json=payload)
    assert response.status_code == 400


def test_unknown_and_repeated_guess(client, wrong_name):
    assert client.post("/guess", json={"name": "Atlantis"}).get_json()["reason"] == "unknownName"
    client.post("/guess", json={"name": wrong_name})
    response = client.post("/guess", json={"name": wrong_name})
    assert response.status_code == 400
    assert response.get_json()["reason"] == "alreadyGuessed"
    assert client.get("/start").get_json()["remaining"] == 5


def test_settings(client):
    assert client.get("/settings").get_json()["distance_unit"] == "metric"
    data = client.post("/settings", json={"distance_unit": "imperial", "hide_names_on_map": True}).get_json()
    assert data["distance_unit"] == "imperial"
    assert data["hide_names_on_map"] is True
    assert client.get("/settings").get_json()["theme"] == "dark"
    assert client.post("/settings", json=[1, 2]).status_code == 400


def test_imperial_guess_row(client, wrong_name):
    client.post("/settings", json={"distance_unit": "imperial"})
    data = client.post("/guess", json={"name": wrong_name}).get_json()
    assert data["row"]["ended"]["distance"].endswith(" mi")


def test_map_svg(client, wrong_name):
    client.post("/settings", json={"hide_names_on_map": True})
    client.post("/guess", json={"name": wrong_name})
    response = client.get("/map.svg?width=640&height=480&touch=1")
    assert response.status_code == 200
    assert response.mimetype == "image/svg+xml"
    svg = response.get_data(as_text=True)
    assert svg.count("<circle") == 5
    assert svg.count('style="display:none"') == 4
    assert 'transform="translate(0,0) scale(1)"' in svg


def test_map_geojson(client, target):
    collection = client.get("/map.geojson?width=abc").get_json()
    assert collection["type"] == "FeatureCollection"
    nodes = [f for f in collection["features"] if f["properties"]["feature_type"] == "node"]
    assert len(nodes) == 5
    target_feature = next(f for f in nodes if f["properties"]["name"] == target.name)
    assert target_feature["properties"]["color"] == MAP_THEME["node_fill"]
    assert {f["properties"]["color"] for f in nodes} == {MAP_THEME["node_fill"]}


def test_map_reveals_target_after_game_over(client, monkeypatch, catalog, target):
    monkeypatch.setattr(app_module, "MAX_GUESSES", 1)
    wrong = next(name for name in catalog.names if name != target.name)
    client.post("/guess", json={"name": wrong})
    nodes = [f for f in client.get("/map.geojson").get_json()["features"]
             if f["properties"]["feature_type"] == "node"]
    colors = {f["properties"]["name"]: f["properties"]["color"] for f in nodes}
    assert colors[target.name] == MAP_THEME["node_active_fill"]
    assert colors[wrong] == MAP_THEME["node_incorrect_fill"]


def _svg_number(svg, attribute):
    return float(re.search(rf'\b{attribute}="([0-9.]+)', svg).group(1))


def test_map_zoom_query_params(client):
    default = client.get("/map.svg").get_data(as_text=True)
    assert 'transform="translate(100,0) scale(1)"' in default

    zoomed = client.get("/map.svg?zoom=50").get_data(as_text=True)
    assert 'transform="translate(1000,0) scale(10)"' in zoomed
    assert _svg_number(zoomed, "font-size") < _svg_number(default, "font-size")
    assert _svg_number(zoomed, "r") < _svg_number(default, "r")

    about_point = client.get("/map.svg?zoom=2&cx=100&cy=50").get_data(as_text=True)
    assert 'transform="translate(100,-50) scale(2)"' in about_point


def test_map_pan_query_params(client):
    svg = client.get("/map.svg?touch=1&dx=15&dy=-5").get_data(as_text=True)
    assert 'transform="translate(15,-5) scale(1)"' in svg
    svg = client.get("/map.svg?zoom=nan&dx=abc").get_data(as_text=True)
    assert 'transform="translate(100,0) scale(1)"' in svg


def test_missing_data(client, monkeypatch):
    monkeypatch.setattr(app_module, "catalog", Catalog([]))
    assert client.get("/start").status_code == 500
    assert client.post("/guess", json={"name": "Oslo"}).status_code == 500
    assert client.get("/map.svg").status_code == 500
