"""
Environment-driven settings for the Meal Checker API.

Values are read once at startup. Backend selection (record store and image
store) happens here and is never re-evaluated per request.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

STORAGE_BACKENDS = ("sqlite", "mongo", "sheets")
IMAGE_BACKENDS = ("local", "s3")

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_JWT_EXPIRATION_MINUTES = 24 * 60


def _safe_int(value: Optional[str], default: int) -> int:
  try:
    return int(value) if value is not None else default
  except (TypeError, ValueError):
    return default


def _split_origins(value: Optional[str]) -> Tuple[str, ...]:
  if not value or not value.strip():
    return ("*",)
  origins = tuple(origin.strip() for origin in value.split(",") if origin.strip())
  return origins or ("*",)


@dataclass(frozen=True)
class Settings:
  storage_backend: str = "sqlite"
  sqlite_db_path: Path = BASE_DIR / "meal_checker.db"
  mongodb_uri: str = "mongodb://localhost:27017"
  mongodb_database: str = "meal_checker"
  google_sheet_url: str = ""
  google_service_account_file: str = ""

  image_backend: str = "local"
  uploads_dir: Path = BASE_DIR / "uploads"
  aws_bucket_name: str = ""
  aws_region: str = ""
  aws_s3_acl: str = "public-read"

  jwt_secret: str = "change-me"
  jwt_expiration_minutes: int = DEFAULT_JWT_EXPIRATION_MINUTES
  max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES

  cors_origins: Tuple[str, ...] = field(default=("*",))
  port: int = 5000
  log_level: str = "INFO"

  @classmethod
  def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
    """Build settings from ``environ`` (``os.environ`` after loading ``.env``)."""
    if environ is None:
      load_dotenv(BASE_DIR / ".env")
      environ = os.environ

    storage_backend = (environ.get("STORAGE_BACKEND") or "sqlite").strip().lower()
    image_backend = (environ.get("IMAGE_BACKEND") or "local").strip().lower()

    return cls(
      storage_backend=storage_backend,
      sqlite_db_path=Path(environ.get("SQLITE_DB_PATH") or BASE_DIR / "meal_checker.db").resolve(),
      mongodb_uri=(environ.get("MONGODB_URI") or "mongodb://localhost:27017").strip(),
      mongodb_database=(environ.get("MONGODB_DATABASE") or "meal_checker").strip(),
      google_sheet_url=(environ.get("GOOGLE_SHEET_URL") or "").strip(),
      google_service_account_file=(environ.get("GOOGLE_SERVICE_ACCOUNT_FILE") or "").strip(),
      image_backend=image_backend,
      uploads_dir=Path(environ.get("UPLOADS_DIR") or BASE_DIR / "uploads").resolve(),
      aws_bucket_name=(environ.get("AWS_BUCKET_NAME") or "").strip(),
      aws_region=(environ.get("AWS_REGION") or environ.get("AWS_DEFAULT_REGION") or "").strip(),
      aws_s3_acl=environ.get("AWS_S3_ACL", "public-read").strip(),
      jwt_secret=environ.get("JWT_SECRET") or environ.get("JWT_SECRET_KEY") or "change-me",
      jwt_expiration_minutes=_safe_int(
        environ.get("JWT_EXPIRATION_MINUTES"), DEFAULT_JWT_EXPIRATION_MINUTES
      ),
      max_upload_bytes=_safe_int(environ.get("MAX_UPLOAD_BYTES"), DEFAULT_MAX_UPLOAD_BYTES),
      cors_origins=_split_origins(environ.get("CORS_ORIGINS")),
      port=_safe_int(environ.get("PORT"), 5000),
      log_level=(environ.get("LOG_LEVEL") or "INFO").strip().upper(),
    )

  def validate(self) -> None:
    """Fail fast when the selected backends are missing required settings."""
    if self.storage_backend not in STORAGE_BACKENDS:
      raise RuntimeError(
        f"STORAGE_BACKEND must be one of {', '.join(STORAGE_BACKENDS)}; got {self.storage_backend!r}."
      )
    if self.image_backend not in IMAGE_BACKENDS:
      raise RuntimeError(
        f"IMAGE_BACKEND must be one of {', '.join(IMAGE_BACKENDS)}; got {self.image_backend!r}."
      )
    if self.storage_backend == "sheets":
      if not self.google_sheet_url:
        raise RuntimeError("GOOGLE_SHEET_URL must be set when STORAGE_BACKEND=sheets.")
      if not self.google_service_account_file:
        raise RuntimeError("GOOGLE_SERVICE_ACCOUNT_FILE must be set when STORAGE_BACKEND=sheets.")
    if self.image_backend == "s3" and not self.aws_bucket_name:
      raise RuntimeError("AWS_BUCKET_NAME must be set when IMAGE_BACKEND=s3.")
    if self.max_upload_bytes <= 0:
      raise RuntimeError("MAX_UPLOAD_BYTES must be positive.")


__all__ = ["Settings", "STORAGE_BACKENDS", "IMAGE_BACKENDS"]
