from pathlib import Path

import pytest

from mealcheck.config import DEFAULT_MAX_UPLOAD_BYTES, Settings


def test_defaults_from_empty_environment():
  settings = Settings.from_env({})

  assert settings.storage_backend == "sqlite"
  assert settings.image_backend == "local"
  assert settings.jwt_expiration_minutes == 24 * 60
  assert settings.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES == 10 * 1024 * 1024
  assert settings.cors_origins == ("*",)
  assert settings.port == 5000
  settings.validate()


def test_values_from_environment(tmp_path):
  settings = Settings.from_env(
    {
      "STORAGE_BACKEND": " Mongo ",
      "MONGODB_URI": "mongodb://db:27017",
      "SQLITE_DB_PATH": str(tmp_path / "x.db"),
      "JWT_SECRET_KEY": "fallback-secret",
      "PORT": "8080",
      "CORS_ORIGINS": "http://localhost:3000, https://meals.example",
      "LOG_LEVEL": "debug",
    }
  )

  assert settings.storage_backend == "mongo"
  assert settings.mongodb_uri == "mongodb://db:27017"
  assert settings.sqlite_db_path == Path(tmp_path / "x.db").resolve()
  assert settings.jwt_secret == "fallback-secret"
  assert settings.port == 8080
  assert settings.cors_origins == ("http://localhost:3000", "https://meals.example")
  assert settings.log_level == "DEBUG"


def test_jwt_secret_takes_precedence_over_legacy_name():
  settings = Settings.from_env({"JWT_SECRET": "primary", "JWT_SECRET_KEY": "legacy"})
  assert settings.jwt_secret == "primary"


def test_malformed_numbers_fall_back_to_defaults():
  settings = Settings.from_env({"PORT": "eighty", "MAX_UPLOAD_BYTES": "", "JWT_EXPIRATION_MINUTES": "x"})

  assert settings.port == 5000
  assert settings.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES
  assert settings.jwt_expiration_minutes == 24 * 60


@pytest.mark.parametrize(
  "environ,message",
  [
    ({"STORAGE_BACKEND": "postgres"}, "STORAGE_BACKEND"),
    ({"IMAGE_BACKEND": "ftp"}, "IMAGE_BACKEND"),
    ({"STORAGE_BACKEND": "sheets"}, "GOOGLE_SHEET_URL"),
    ({"STORAGE_BACKEND": "sheets", "GOOGLE_SHEET_URL": "https://x"}, "GOOGLE_SERVICE_ACCOUNT_FILE"),
    ({"IMAGE_BACKEND": "s3"}, "AWS_BUCKET_NAME"),
  ],
)
def test_validate_rejects_incomplete_backend_settings(environ, message):
  with pytest.raises(RuntimeError, match=message):
    Settings.from_env(environ).validate()
