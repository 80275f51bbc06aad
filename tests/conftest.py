# tests/conftest.py

import pytest
from werkzeug.security import generate_password_hash

from app import create_app
from app.config import Config
from app.extensions import db as _db
from app.services.rules_cache import rules_cache

ADMIN_PASSWORD = "planta-1234"


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    WTF_CSRF_ENABLED = False
    ADMIN_PASSWORD_HASH = generate_password_hash(ADMIN_PASSWORD)
    PLANT_TIMEZONE = "America/Argentina/Buenos_Aires"
    DEFAULT_PRODUCTIVITY_TARGET = 24960.0
    AUTO_CREATE_TABLES = False


@pytest.fixture
def app(tmp_path):
    TestingConfig.UPLOAD_FOLDER = str(tmp_path / "uploads")
    TestingConfig.OUTPUT_FOLDER = str(tmp_path / "outputs")
    app = create_app(TestingConfig)

    with app.app_context():
        _db.create_all()
        rules_cache.invalidate()
        yield app
        _db.session.remove()
        _db.drop_all()
        rules_cache.invalidate()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    r = client.post("/api/login", json={"role": "admin", "secret": ADMIN_PASSWORD})
    assert r.status_code == 200
    return client


@pytest.fixture
def admin_password():
    return ADMIN_PASSWORD
