# tests/conftest.py
# Ensure the project root (where the flat modules live) is first on sys.path
import os, sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from models import TypeChartRow, TypeInfo  # noqa: E402

SAMPLE_GAME = os.path.join(ROOT, "data", "sample_game.json")

NORMAL, FIRE, WATER, GRASS, ELECTRIC, GROUND = 1, 2, 3, 4, 5, 6


@pytest.fixture
def six_types():
    return [
        TypeInfo(NORMAL, "Normal"),
        TypeInfo(FIRE, "Fire"),
        TypeInfo(WATER, "Water"),
        TypeInfo(GRASS, "Grass"),
        TypeInfo(ELECTRIC, "Electric"),
        TypeInfo(GROUND, "Ground"),
    ]


@pytest.fixture
def grass_chart():
    # Only the two rows that touch a Grass defender
    return [
        TypeChartRow(FIRE, GRASS, 2.0),
        TypeChartRow(WATER, GRASS, 0.5),
    ]


@pytest.fixture
def bulbasaur_stats():
    return {"hp": 45, "atk": 49, "def": 49, "spa": 65, "spd": 65, "spe": 45}


@pytest.fixture
def sample_game_path():
    return SAMPLE_GAME
