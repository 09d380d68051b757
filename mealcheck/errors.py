"""
Error taxonomy for the Meal Checker API.

Every error carries the HTTP status it maps to; the Flask error handlers in
``app.py`` render them as ``{"message": ...}``.
"""

from __future__ import annotations


class MealCheckError(Exception):
  """Base class for errors that map directly to an HTTP response."""

  status_code = 500
  default_message = "Server error"

  def __init__(self, message: str | None = None) -> None:
    self.message = message or self.default_message
    super().__init__(self.message)


class ValidationError(MealCheckError):
  status_code = 400
  default_message = "Invalid request"


class PayloadTooLarge(ValidationError):
  default_message = "Image exceeds the maximum upload size"


class UnsupportedMediaType(ValidationError):
  default_message = "Only image files are allowed!"


class ConflictError(MealCheckError):
  status_code = 400
  default_message = "User already exists"


class InvalidCredentials(MealCheckError):
  status_code = 400
  default_message = "Invalid credentials"


class Unauthenticated(MealCheckError):
  status_code = 401
  default_message = "No token, authorization denied"


class NotFound(MealCheckError):
  status_code = 404
  default_message = "Not found"


class StoreError(MealCheckError):
  """Raised when the backing store cannot complete an operation."""

  status_code = 500
  default_message = "Server error"


__all__ = [
  "MealCheckError",
  "ValidationError",
  "PayloadTooLarge",
  "UnsupportedMediaType",
  "ConflictError",
  "InvalidCredentials",
  "Unauthenticated",
  "NotFound",
  "StoreError",
]
