"""Shared fixtures for the georeview test suite."""

from __future__ import annotations

import pytest

from georeview.match import match_from_dict
from tests.fakes import make_game


@pytest.fixture
def game() -> dict:
    return make_game()


@pytest.fixture
def match(game):
    return match_from_dict(game)


@pytest.fixture
def nmpz_match():
    return match_from_dict(make_game("NmpzDuels", rounds=2))
