import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

from config import Config  # noqa: E402
from tests.utils import USA_STEPS, Env  # noqa: E402


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length"
    SECRET_KEY = "test-secret"
    PHASE_MAX_REOPEN_ALLOWED = 2


@pytest.fixture
def env():
    e = Env(catalogs={"usa": USA_STEPS})
    e.add_student(country="USA")
    return e


@pytest.fixture
def app():
    from app import create_app
    from extensions import db

    app = create_app(config_object=TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()
