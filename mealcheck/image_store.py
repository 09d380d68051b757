"""
Where uploaded meal photos end up.

Images are kept outside the record store; a meal record only holds the
reference returned by :meth:`ImageStore.save`.
"""

from __future__ import annotations

import abc
import io
import logging
from pathlib import Path
from typing import Any, Dict

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from mealcheck.config import Settings
from mealcheck.errors import StoreError
from mealcheck.uploads import UploadedImage

logger = logging.getLogger(__name__)


class ImageStore(abc.ABC):
  @abc.abstractmethod
  def save(self, image: UploadedImage) -> str:
    """Persist ``image`` and return the reference stored with the meal."""


class LocalImageStore(ImageStore):
  """Write uploads to a directory on local disk."""

  def __init__(self, uploads_dir: Path, url_prefix: str = "/uploads") -> None:
    self.uploads_dir = Path(uploads_dir)
    self.url_prefix = url_prefix.rstrip("/")

  def save(self, image: UploadedImage) -> str:
    try:
      self.uploads_dir.mkdir(parents=True, exist_ok=True)
      local_path = self.uploads_dir / image.filename
      with open(local_path, "wb") as destination:
        destination.write(image.data)
    except OSError as exc:
      logger.exception("Failed to write upload %s: %s", image.filename, exc)
      raise StoreError() from exc
    return f"{self.url_prefix}/{local_path.name}"


class S3ImageStore(ImageStore):
  def __init__(self, s3_client, bucket: str, acl: str = "public-read") -> None:
    self.s3_client = s3_client
    self.bucket = bucket
    self.acl = acl

  def save(self, image: UploadedImage) -> str:
    extra_args: Dict[str, Any] = {"ContentType": image.content_type or "image/jpeg"}
    if self.acl:
      extra_args["ACL"] = self.acl
    try:
      self.s3_client.upload_fileobj(
        io.BytesIO(image.data), self.bucket, image.filename, ExtraArgs=extra_args
      )
    except (BotoCoreError, NoCredentialsError, ClientError) as exc:
      logger.exception("S3 upload failed: %s", exc)
      raise StoreError() from exc
    return f"https://{self.bucket}.s3.amazonaws.com/{image.filename}"


def _build_s3_client(region: str):
  """Create an S3 client; credentials come from the standard AWS chain."""
  kwargs: Dict[str, Any] = {"service_name": "s3"}
  if region:
    kwargs["region_name"] = region
  return boto3.client(**kwargs)


def build_image_store(settings: Settings) -> ImageStore:
  if settings.image_backend == "s3":
    return S3ImageStore(
      _build_s3_client(settings.aws_region),
      settings.aws_bucket_name,
      acl=settings.aws_s3_acl,
    )
  return LocalImageStore(settings.uploads_dir)


__all__ = ["ImageStore", "LocalImageStore", "S3ImageStore", "build_image_store"]
