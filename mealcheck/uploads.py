"""
Validation of the multipart image upload sent to the analyze endpoint.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Optional

from werkzeug.datastructures import FileStorage

from mealcheck.errors import PayloadTooLarge, UnsupportedMediaType, ValidationError

UPLOAD_FIELD = "image"
DISK_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif"})


@dataclass(frozen=True)
class UploadedImage:
  data: bytes
  filename: str
  content_type: str

  @property
  def size(self) -> int:
    return len(self.data)


def generate_filename(extension: str = ".jpg") -> str:
  """Return ``meal_<epoch-ms>_<random>`` with the given extension."""
  millis = int(time.time() * 1000)
  return f"meal_{millis}_{uuid.uuid4().hex[:8]}{extension}"


class UploadReceiver:
  """Pull a single image out of ``request.files`` and enforce the upload rules.

  ``allowed_extensions`` is only set when images end up on local disk, where
  the stored filename keeps the client's extension.
  """

  def __init__(
    self,
    max_bytes: int,
    allowed_extensions: Optional[Iterable[str]] = None,
  ) -> None:
    self.max_bytes = max_bytes
    self.allowed_extensions = (
      frozenset(ext.lower() for ext in allowed_extensions) if allowed_extensions else None
    )

  def receive(self, files: Mapping[str, FileStorage]) -> UploadedImage:
    uploaded_file = files.get(UPLOAD_FIELD)
    if uploaded_file is None or not uploaded_file.filename:
      raise ValidationError("No image uploaded")

    content_type = (uploaded_file.mimetype or "").lower()
    if not content_type.startswith("image/"):
      raise UnsupportedMediaType()

    extension = Path(uploaded_file.filename).suffix.lower()
    if self.allowed_extensions is not None and extension not in self.allowed_extensions:
      raise UnsupportedMediaType()

    # One byte past the ceiling is enough to detect an oversized file.
    data = uploaded_file.stream.read(self.max_bytes + 1)
    if len(data) > self.max_bytes:
      raise PayloadTooLarge()
    if not data:
      raise ValidationError("Empty file received")

    return UploadedImage(
      data=data,
      filename=generate_filename(extension or ".jpg"),
      content_type=content_type,
    )


__all__ = ["UploadReceiver", "UploadedImage", "generate_filename", "DISK_EXTENSIONS", "UPLOAD_FIELD"]
