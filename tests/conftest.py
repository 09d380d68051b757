import io
import random

import pytest

from app import create_app
from mealcheck.analysis import SyntheticMealAnalyzer
from mealcheck.config import Settings
from mealcheck.image_store import LocalImageStore
from mealcheck.stores.sqlite_store import SQLiteRecordStore

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 256 + b"\xff\xd9"


@pytest.fixture
def settings(tmp_path):
  return Settings(
    sqlite_db_path=tmp_path / "meals.db",
    uploads_dir=tmp_path / "uploads",
    jwt_secret="test-secret",
  )


@pytest.fixture
def store(settings):
  return SQLiteRecordStore(settings.sqlite_db_path)


@pytest.fixture
def images(settings):
  return LocalImageStore(settings.uploads_dir)


@pytest.fixture
def app(settings, store, images):
  flask_app = create_app(
    settings,
    store=store,
    images=images,
    analyzer=SyntheticMealAnalyzer(random.Random(1234)),
  )
  flask_app.config["TESTING"] = True
  return flask_app


@pytest.fixture
def client(app):
  return app.test_client()


def register(client, username="alice", password="secret"):
  return client.post("/auth/register", json={"username": username, "password": password})


def login_token(client, username="alice", password="secret"):
  register(client, username, password)
  response = client.post("/auth/login", json={"username": username, "password": password})
  assert response.status_code == 200
  return response.get_json()["token"]


def image_upload(data=JPEG_BYTES, filename="lunch.jpg", content_type="image/jpeg"):
  return {"image": (io.BytesIO(data), filename, content_type)}


@pytest.fixture
def token(client):
  return login_token(client)
