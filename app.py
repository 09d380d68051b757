"""
Flask backend for the Meal Checker App.

Users register and log in to receive a signed token, upload meal photos for
analysis, and read back their analysis history. The storage backend (SQLite,
MongoDB or Google Sheets) and the image store (local disk or Amazon S3) are
chosen once at startup from the environment and injected into the routes.
The analysis step is a synthetic placeholder behind ``MealAnalyzer``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from mealcheck.accounts import AccountService
from mealcheck.analysis import MealAnalyzer, SyntheticMealAnalyzer
from mealcheck.config import Settings
from mealcheck.errors import MealCheckError, PayloadTooLarge
from mealcheck.guard import TOKEN_HEADER, make_auth_guard
from mealcheck.image_store import ImageStore, LocalImageStore, build_image_store
from mealcheck.meals import MealService
from mealcheck.security import TokenIssuer
from mealcheck.stores.base import RecordStore, build_record_store
from mealcheck.uploads import DISK_EXTENSIONS, UploadReceiver

# Headroom on top of the image ceiling for multipart boundaries and form fields.
MULTIPART_OVERHEAD_BYTES = 64 * 1024


def _timestamp() -> str:
  return datetime.now(timezone.utc).isoformat()


def create_app(
  settings: Optional[Settings] = None,
  *,
  store: Optional[RecordStore] = None,
  images: Optional[ImageStore] = None,
  analyzer: Optional[MealAnalyzer] = None,
) -> Flask:
  """Instantiate the Flask application and register routes."""
  settings = settings or Settings.from_env()
  settings.validate()

  app = Flask(__name__)
  app.logger.setLevel(settings.log_level)
  app.config["MAX_CONTENT_LENGTH"] = settings.max_upload_bytes + MULTIPART_OVERHEAD_BYTES
  CORS(
    app,
    resources={r"/*": {"origins": list(settings.cors_origins)}},
    allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization", TOKEN_HEADER],
  )

  store = store or build_record_store(settings)
  images = images or build_image_store(settings)
  analyzer = analyzer or SyntheticMealAnalyzer()

  tokens = TokenIssuer(
    settings.jwt_secret,
    expiration=timedelta(minutes=settings.jwt_expiration_minutes),
  )
  accounts = AccountService(store, tokens)
  meals = MealService(store, images, analyzer)
  uploads = UploadReceiver(
    settings.max_upload_bytes,
    allowed_extensions=DISK_EXTENSIONS if isinstance(images, LocalImageStore) else None,
  )
  auth_required = make_auth_guard(tokens)

  app.extensions["mealcheck"] = {
    "settings": settings,
    "store": store,
    "images": images,
    "tokens": tokens,
  }
  app.logger.info(
    "Meal Checker configured with %s records and %s images",
    settings.storage_backend,
    type(images).__name__,
  )

  @app.errorhandler(MealCheckError)
  def handle_app_error(exc: MealCheckError):
    if exc.status_code >= 500:
      app.logger.error("Request failed: %s", exc.__cause__ or exc)
    return jsonify({"message": exc.message}), exc.status_code

  @app.errorhandler(RequestEntityTooLarge)
  def handle_too_large(exc: RequestEntityTooLarge):
    return handle_app_error(PayloadTooLarge())

  @app.errorhandler(HTTPException)
  def handle_http_error(exc: HTTPException):
    return jsonify({"message": exc.description or exc.name}), exc.code

  @app.errorhandler(Exception)
  def handle_unexpected(exc: Exception):
    app.logger.exception("Unhandled error: %s", exc)
    return jsonify({"message": "Server error"}), 500

  @app.route("/", methods=["GET"])
  def root() -> Tuple[Dict[str, str], int]:
    """Health-check payload."""
    return {"message": "Meal Checker API is running", "status": "ok", "timestamp": _timestamp()}, 200

  @app.route("/api", methods=["GET"])
  def api_root() -> Tuple[Dict[str, str], int]:
    return {"message": "Meal Checker API is ready"}, 200

  @app.route("/api/test", methods=["GET"])
  def api_test() -> Tuple[Dict[str, str], int]:
    return {"message": "Test endpoint is working", "status": "ok", "timestamp": _timestamp()}, 200

  @app.route("/health", methods=["GET"])
  def health() -> Tuple[Dict[str, str], int]:
    return {"status": "ok", "timestamp": _timestamp()}, 200

  @app.route("/auth/register", methods=["POST"])
  @app.route("/api/register", methods=["POST"])
  def register() -> Tuple[Dict[str, Any], int]:
    """Register a new account and issue a token."""
    session = accounts.register(request.get_json(silent=True))
    return session.to_json(), 201

  @app.route("/auth/login", methods=["POST"])
  @app.route("/api/login", methods=["POST"])
  def login() -> Tuple[Dict[str, Any], int]:
    """Authenticate an existing user and return a token."""
    session = accounts.login(request.get_json(silent=True))
    return session.to_json(), 200

  @app.route("/auth/me", methods=["GET"])
  @auth_required
  def me() -> Tuple[Dict[str, Any], int]:
    """Return the public profile of the token's user."""
    user = accounts.current_user(g.user_id)
    return {"user": user.public()}, 200

  @app.route("/api/v1/analyze-meal", methods=["POST"])
  @app.route("/api/analyze-meal", methods=["POST"])
  @auth_required
  def analyze_meal() -> Tuple[Dict[str, Any], int]:
    """
    Validate the uploaded photo, run the analyzer and persist the result.
    """
    image = uploads.receive(request.files)
    record = meals.analyze(g.user_id, image)
    return record.to_json(), 200

  @app.route("/api/v1/meal-history", methods=["GET"])
  @app.route("/api/meal-history", methods=["GET"])
  @auth_required
  def meal_history():
    """Return the caller's analyses ordered from newest to oldest."""
    history: List[Dict[str, Any]] = [record.to_json() for record in meals.history(g.user_id)]
    return jsonify(history), 200

  return app


if __name__ == "__main__":
  env_settings = Settings.from_env()
  logging.basicConfig(
    level=env_settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
  )
  flask_app = create_app(env_settings)
  flask_app.run(host="0.0.0.0", port=env_settings.port, debug=False)
