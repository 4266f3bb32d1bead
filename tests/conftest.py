"""
Shared pytest fixtures for bracket engine tests.

Running tests:
    pytest tests/
"""
import pytest
import random
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from knockout.models import Player


def make_players(count):
    """Players p0..pN-1 named A, B, C, ... (AA, AB, ... past Z)."""
    players = []
    for i in range(count):
        name = chr(65 + i) if i < 26 else chr(65 + i // 26 - 1) + chr(65 + i % 26)
        players.append(Player(id=f"p{i}", name=name, email=f"{name.lower()}@example.com"))
    return players


@pytest.fixture
def rng():
    """Seeded generator for reproducible draws."""
    return random.Random(1234)


@pytest.fixture
def five_players():
    return make_players(5)


@pytest.fixture
def four_players():
    return make_players(4)


@pytest.fixture
def data_dir(tmp_path):
    """Empty data directory for the stores."""
    path = tmp_path / "data"
    path.mkdir()
    return str(path)


@pytest.fixture
def client(data_dir, monkeypatch):
    """Flask test client writing to a temporary data directory."""
    import app as app_module
    monkeypatch.setattr(app_module, 'DATA_DIR', data_dir)
    monkeypatch.setattr(app_module, 'STRICT_PROPAGATION', False)
    app_module.app.config['TESTING'] = True
    with app_module.app.test_client() as client:
        yield client
