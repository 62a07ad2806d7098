"""Shared test fixtures for bydle tests."""

from datetime import date

import pytest

from bydle.catalog import Catalog, Entity
from bydle.geography import Direction
from bydle.guess import Guess
from bydle.settings import Settings


@pytest.fixture()
def entities():
    """Five cities; Kristiansand points at a code that is not in the catalog."""
    return [
        Entity("OSL", "Oslo", 59.9139, 10.7522, ("BGO", "TRD", "KRS"), "Østlandet"),
        Entity("BGO", "Bergen", 60.3913, 5.3221, ("OSL", "SVG"), "Vestlandet"),
        Entity("TRD", "Trondheim", 63.4305, 10.3951, (), "Trøndelag"),
        Entity("SVG", "Stavanger", 58.9700, 5.7331, ("KRS",), "Vestlandet"),
        Entity("KRS", "Kristiansand", 58.1599, 7.9956, ("XXX",), "Sørlandet"),
    ]


@pytest.fixture()
def catalog(entities):
    return Catalog(entities)


@pytest.fixture()
def settings():
    return Settings()


@pytest.fixture()
def make_guess_record():
    """Builds a Guess with just the fields a test cares about."""
    def _make(name, distance=1000.0, direction=Direction.N, bydel_is_correct=False):
        return Guess(name=name, distance=distance, direction=direction, bydel_is_correct=bydel_is_correct)
    return _make


@pytest.fixture()
def game_day():
    return date(2026, 10, 19)
