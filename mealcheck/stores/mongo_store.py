"""
MongoDB backend: one document per user and per meal.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from mealcheck.errors import ConflictError, StoreError
from mealcheck.models import Analysis, MealRecord, Nutrition, User, parse_timestamp, utcnow
from mealcheck.stores.base import RecordStore

logger = logging.getLogger(__name__)


def _as_object_id(value: str) -> Union[ObjectId, str]:
  return ObjectId(value) if ObjectId.is_valid(value) else value


def _now_millis() -> datetime:
  """BSON dates carry millisecond precision; truncate up front."""
  now = utcnow()
  return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _doc_to_user(doc: Dict[str, Any]) -> User:
  return User(
    id=str(doc["_id"]),
    username=doc["username"],
    password_hash=doc["password_hash"],
    created_at=parse_timestamp(doc["created_at"]),
  )


def _doc_to_meal(doc: Dict[str, Any]) -> MealRecord:
  nutrition = doc.get("nutritional_info") or {}
  return MealRecord(
    id=str(doc["_id"]),
    owner_user_id=str(doc["user_id"]),
    image_path=doc.get("image_path", ""),
    is_complete=bool(doc.get("is_complete", False)),
    nutrition=Nutrition(
      proteins=int(nutrition.get("proteins", 0)),
      carbs=int(nutrition.get("carbs", 0)),
      fats=int(nutrition.get("fats", 0)),
      calories=int(nutrition.get("calories", 0)),
    ),
    suggestions=list(doc.get("suggestions") or []),
    created_at=parse_timestamp(doc["created_at"]),
  )


class MongoRecordStore(RecordStore):
  def __init__(self, client: MongoClient, database_name: str) -> None:
    self.client = client
    database = client[database_name]
    self.users = database.users
    self.meals = database.meals
    try:
      self.users.create_index([("username", ASCENDING)], unique=True)
      self.meals.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    except PyMongoError as exc:
      logger.exception("Could not initialise MongoDB indexes: %s", exc)
      raise StoreError() from exc

  @classmethod
  def from_uri(cls, uri: str, database_name: str) -> "MongoRecordStore":
    client = MongoClient(uri, serverSelectionTimeoutMS=5000)
    logger.info("Connected to MongoDB database %s", database_name)
    return cls(client, database_name)

  def create_user(self, username: str, password_hash: str) -> User:
    doc = {
      "username": username,
      "password_hash": password_hash,
      "created_at": _now_millis(),
    }
    try:
      result = self.users.insert_one(doc)
    except DuplicateKeyError as exc:
      raise ConflictError() from exc
    except PyMongoError as exc:
      logger.exception("Failed to persist user to MongoDB: %s", exc)
      raise StoreError() from exc
    doc["_id"] = result.inserted_id
    return _doc_to_user(doc)

  def _find_user(self, query: Dict[str, Any]) -> Optional[User]:
    try:
      doc = self.users.find_one(query)
    except PyMongoError as exc:
      logger.exception("Failed to read user from MongoDB: %s", exc)
      raise StoreError() from exc
    return _doc_to_user(doc) if doc else None

  def find_user_by_username(self, username: str) -> Optional[User]:
    return self._find_user({"username": username})

  def find_user_by_id(self, user_id: str) -> Optional[User]:
    if not ObjectId.is_valid(user_id):
      return None
    return self._find_user({"_id": ObjectId(user_id)})

  def create_meal(self, owner_id: str, image_path: str, analysis: Analysis) -> MealRecord:
    doc = {
      "user_id": _as_object_id(owner_id),
      "image_path": image_path,
      "is_complete": analysis.is_complete,
      "nutritional_info": analysis.nutrition.to_dict(),
      "suggestions": list(analysis.suggestions),
      "created_at": _now_millis(),
    }
    try:
      result = self.meals.insert_one(doc)
    except PyMongoError as exc:
      logger.exception("Failed to persist meal to MongoDB: %s", exc)
      raise StoreError() from exc
    doc["_id"] = result.inserted_id
    return _doc_to_meal(doc)

  def list_meals_by_owner(self, owner_id: str) -> List[MealRecord]:
    try:
      cursor = self.meals.find({"user_id": _as_object_id(owner_id)}).sort(
        [("created_at", DESCENDING), ("_id", DESCENDING)]
      )
      return [_doc_to_meal(doc) for doc in cursor]
    except PyMongoError as exc:
      logger.exception("Failed to read meal history from MongoDB: %s", exc)
      raise StoreError() from exc

  def close(self) -> None:
    self.client.close()


__all__ = ["MongoRecordStore"]
