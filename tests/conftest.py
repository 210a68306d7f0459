"""
Pytest configuration and fixtures for tests
"""
import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

os.environ["FLASK_CONFIG"] = "testing"

from app import create_app, db  # noqa: E402
from app.models import Player  # noqa: E402
from app.utils.scoring import ActionKind  # noqa: E402

# Second revision of the house rules, used by the worked examples
WEIGHTS_B = {
    ActionKind.WIN: 10,
    ActionKind.SECOND_PLACE: 5,
    ActionKind.FIRST_DEAD: -5,
    ActionKind.FIRST_EXPLODED: -1,
    ActionKind.BARKING_DIFFUSE: -1,
    ActionKind.BARKING_DEAD: -3,
}


@pytest.fixture
def weights():
    """Weight table B"""
    return dict(WEIGHTS_B)


@pytest.fixture
def app():
    """Create Flask application on a fresh in-memory database"""
    app = create_app("testing")
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def players(app):
    """Three registered players"""
    created = [Player.create(name) for name in ("Arev", "Ani", "Davo")]
    db.session.commit()
    return {p.name: p for p in created}
