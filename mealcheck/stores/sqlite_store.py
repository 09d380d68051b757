"""
SQLite backend used for local development and tests.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from pathlib import Path
from typing import List, Optional

from mealcheck.errors import ConflictError, StoreError
from mealcheck.models import Analysis, MealRecord, Nutrition, User, parse_timestamp, utcnow
from mealcheck.stores.base import RecordStore

logger = logging.getLogger(__name__)


def _row_to_user(row: sqlite3.Row) -> User:
  return User(
    id=row["id"],
    username=row["username"],
    password_hash=row["password_hash"],
    created_at=parse_timestamp(row["created_at"]),
  )


def _row_to_meal(row: sqlite3.Row) -> MealRecord:
  return MealRecord(
    id=row["id"],
    owner_user_id=row["user_id"],
    image_path=row["image_path"],
    is_complete=bool(row["is_complete"]),
    nutrition=Nutrition(
      proteins=row["proteins"],
      carbs=row["carbs"],
      fats=row["fats"],
      calories=row["calories"],
    ),
    suggestions=json.loads(row["suggestions"] or "[]"),
    created_at=parse_timestamp(row["created_at"]),
  )


class SQLiteRecordStore(RecordStore):
  def __init__(self, db_path: Path) -> None:
    self.db_path = Path(db_path)
    self._initialise()

  def _get_db_connection(self) -> sqlite3.Connection:
    """Return a SQLite connection with row access by name."""
    self.db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(self.db_path)
    conn.row_factory = sqlite3.Row
    return conn

  def _initialise(self) -> None:
    """Ensure the tables exist with the expected schema."""
    try:
      conn = self._get_db_connection()
    except sqlite3.DatabaseError as exc:
      raise StoreError() from exc
    try:
      with conn:
        conn.execute(
          """
          CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            username TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            created_at TEXT NOT NULL
          )
          """
        )
        conn.execute(
          """
          CREATE TABLE IF NOT EXISTS meals (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users (id),
            image_path TEXT NOT NULL,
            is_complete INTEGER NOT NULL,
            proteins INTEGER NOT NULL,
            carbs INTEGER NOT NULL,
            fats INTEGER NOT NULL,
            calories INTEGER NOT NULL,
            suggestions TEXT NOT NULL,
            created_at TEXT NOT NULL
          )
          """
        )
        conn.execute(
          "CREATE INDEX IF NOT EXISTS meals_user_created ON meals (user_id, created_at DESC)"
        )
    finally:
      conn.close()

  def create_user(self, username: str, password_hash: str) -> User:
    user = User(
      id=uuid.uuid4().hex,
      username=username,
      password_hash=password_hash,
      created_at=utcnow(),
    )
    conn = self._get_db_connection()
    try:
      with conn:
        conn.execute(
          """
          INSERT INTO users (id, username, password_hash, created_at)
          VALUES (?, ?, ?, ?)
          """,
          (
            user.id,
            user.username,
            user.password_hash,
            user.created_at.isoformat(timespec="microseconds"),
          ),
        )
    except sqlite3.IntegrityError as exc:
      raise ConflictError() from exc
    except sqlite3.DatabaseError as exc:
      logger.exception("Failed to persist user to SQLite: %s", exc)
      raise StoreError() from exc
    finally:
      conn.close()
    return user

  def _fetch_user(self, column: str, value: str) -> Optional[User]:
    conn = self._get_db_connection()
    try:
      row = conn.execute(
        f"SELECT id, username, password_hash, created_at FROM users WHERE {column} = ?",
        (value,),
      ).fetchone()
    except sqlite3.DatabaseError as exc:
      logger.exception("Failed to read user from SQLite: %s", exc)
      raise StoreError() from exc
    finally:
      conn.close()
    return _row_to_user(row) if row is not None else None

  def find_user_by_username(self, username: str) -> Optional[User]:
    return self._fetch_user("username", username)

  def find_user_by_id(self, user_id: str) -> Optional[User]:
    return self._fetch_user("id", user_id)

  def create_meal(self, owner_id: str, image_path: str, analysis: Analysis) -> MealRecord:
    record = MealRecord(
      id=uuid.uuid4().hex,
      owner_user_id=owner_id,
      image_path=image_path,
      is_complete=analysis.is_complete,
      nutrition=analysis.nutrition,
      suggestions=list(analysis.suggestions),
      created_at=utcnow(),
    )
    conn = self._get_db_connection()
    try:
      with conn:
        conn.execute(
          """
          INSERT INTO meals (
            id, user_id, image_path, is_complete, proteins, carbs, fats,
            calories, suggestions, created_at
          )
          VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
          """,
          (
            record.id,
            record.owner_user_id,
            record.image_path,
            int(record.is_complete),
            record.nutrition.proteins,
            record.nutrition.carbs,
            record.nutrition.fats,
            record.nutrition.calories,
            json.dumps(record.suggestions),
            record.created_at.isoformat(timespec="microseconds"),
          ),
        )
    except sqlite3.DatabaseError as exc:
      logger.exception("Failed to persist meal to SQLite: %s", exc)
      raise StoreError() from exc
    finally:
      conn.close()
    return record

  def list_meals_by_owner(self, owner_id: str) -> List[MealRecord]:
    conn = self._get_db_connection()
    try:
      rows = conn.execute(
        """
        SELECT id, user_id, image_path, is_complete, proteins, carbs, fats,
               calories, suggestions, created_at
        FROM meals
        WHERE user_id = ?
        ORDER BY created_at DESC, rowid DESC
        """,
        (owner_id,),
      ).fetchall()
    except sqlite3.DatabaseError as exc:
      logger.exception("Failed to read meal history from SQLite: %s", exc)
      raise StoreError() from exc
    finally:
      conn.close()
    return [_row_to_meal(row) for row in rows]


__all__ = ["SQLiteRecordStore"]
