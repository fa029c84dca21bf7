"""Shared fixtures for the EcoSort test suite."""

import os

# must be set before app / mqtt_bridge are imported
os.environ.setdefault("SOCKETIO_ASYNC_MODE", "threading")
os.environ.setdefault("DB_URI", "sqlite://")
os.environ.setdefault("MQTT_DISABLED", "1")

import pytest

from puzzles.eco_sort import Category, EcoSortChallenge, Item


BOTTLE, CORE, NEWSPAPER, WRAPPER = 1, 2, 3, 4


@pytest.fixture
def catalog():
    """Bottle->recycling, Core->compost, Newspaper->recycling, Wrapper->trash."""
    return [
        Item(BOTTLE, "Plastic Bottle", "🥤", Category.RECYCLING),
        Item(CORE, "Apple Core", "🍎", Category.COMPOST),
        Item(NEWSPAPER, "Newspaper", "📰", Category.RECYCLING),
        Item(WRAPPER, "Candy Wrapper", "🍬", Category.TRASH),
    ]


@pytest.fixture
def challenge(catalog):
    return EcoSortChallenge(catalog, duration_sec=120)


def all_ids(ch):
    """Every item id currently held by the pool or a receptacle."""
    ids = [i.id for i in ch.pool]
    for r in ch.receptacles.values():
        ids.extend(i.id for i in r.items)
    return sorted(ids)
