"""
Record store interface shared by the SQLite, MongoDB and Google Sheets backends.
"""

from __future__ import annotations

import abc
from typing import List, Optional

from mealcheck.config import Settings
from mealcheck.models import Analysis, MealRecord, User


class RecordStore(abc.ABC):
  """Persistence for users and their meal records.

  Implementations raise :class:`~mealcheck.errors.ConflictError` on a
  duplicate username and wrap driver failures in
  :class:`~mealcheck.errors.StoreError`.
  """

  @abc.abstractmethod
  def create_user(self, username: str, password_hash: str) -> User:
    ...

  @abc.abstractmethod
  def find_user_by_username(self, username: str) -> Optional[User]:
    ...

  @abc.abstractmethod
  def find_user_by_id(self, user_id: str) -> Optional[User]:
    ...

  @abc.abstractmethod
  def create_meal(self, owner_id: str, image_path: str, analysis: Analysis) -> MealRecord:
    ...

  @abc.abstractmethod
  def list_meals_by_owner(self, owner_id: str) -> List[MealRecord]:
    """Return the owner's meals, newest first."""

  def close(self) -> None:
    """Release any client resources held by the store."""


def build_record_store(settings: Settings) -> RecordStore:
  """Instantiate the backend named by ``settings.storage_backend``."""
  if settings.storage_backend == "mongo":
    from mealcheck.stores.mongo_store import MongoRecordStore

    return MongoRecordStore.from_uri(settings.mongodb_uri, settings.mongodb_database)

  if settings.storage_backend == "sheets":
    from mealcheck.stores.sheets_store import SheetsRecordStore

    return SheetsRecordStore.from_service_account(
      settings.google_service_account_file, settings.google_sheet_url
    )

  from mealcheck.stores.sqlite_store import SQLiteRecordStore

  return SQLiteRecordStore(settings.sqlite_db_path)


__all__ = ["RecordStore", "build_record_store"]
