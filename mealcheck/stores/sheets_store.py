"""
Google Sheets backend.

Users and meals live in two worksheets of one spreadsheet, one row per record,
with a header row naming the columns. Worksheets are created on first use.
Username uniqueness is checked by scanning the users sheet before appending,
so two concurrent registrations of the same name can both succeed.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Dict, List, Optional

import gspread
from google.oauth2.service_account import Credentials
from gspread.exceptions import GSpreadException, WorksheetNotFound

from mealcheck.errors import ConflictError, StoreError
from mealcheck.models import Analysis, MealRecord, Nutrition, User, parse_timestamp, utcnow
from mealcheck.stores.base import RecordStore

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

USERS_SHEET = "users"
MEALS_SHEET = "meals"
USER_COLUMNS = ["id", "username", "password_hash", "created_at"]
MEAL_COLUMNS = [
  "id",
  "user_id",
  "image_path",
  "is_complete",
  "proteins",
  "carbs",
  "fats",
  "calories",
  "suggestions",
  "created_at",
]


def get_or_create_worksheet(spreadsheet, name: str, columns: List[str]):
  """Return worksheet ``name``, adding it (with a header row) when missing."""
  try:
    worksheet = spreadsheet.worksheet(name)
  except WorksheetNotFound:
    worksheet = spreadsheet.add_worksheet(title=name, rows=1000, cols=len(columns))
  if not worksheet.row_values(1):
    worksheet.append_row(columns, value_input_option="RAW")
  return worksheet


def _row_to_user(row: Dict[str, Any]) -> User:
  return User(
    id=str(row["id"]),
    username=str(row["username"]),
    password_hash=str(row["password_hash"]),
    created_at=parse_timestamp(row["created_at"]),
  )


def _row_to_meal(row: Dict[str, Any]) -> MealRecord:
  return MealRecord(
    id=str(row["id"]),
    owner_user_id=str(row["user_id"]),
    image_path=str(row["image_path"]),
    is_complete=str(row["is_complete"]).upper() == "TRUE",
    nutrition=Nutrition(
      proteins=int(row["proteins"]),
      carbs=int(row["carbs"]),
      fats=int(row["fats"]),
      calories=int(row["calories"]),
    ),
    suggestions=json.loads(row["suggestions"] or "[]"),
    created_at=parse_timestamp(row["created_at"]),
  )


class SheetsRecordStore(RecordStore):
  def __init__(self, users_sheet, meals_sheet) -> None:
    self.users_sheet = users_sheet
    self.meals_sheet = meals_sheet

  @classmethod
  def from_service_account(cls, service_account_file: str, sheet_url: str) -> "SheetsRecordStore":
    try:
      creds = Credentials.from_service_account_file(service_account_file, scopes=SCOPES)
      client = gspread.authorize(creds)
      spreadsheet = client.open_by_url(sheet_url)
      users_sheet = get_or_create_worksheet(spreadsheet, USERS_SHEET, USER_COLUMNS)
      meals_sheet = get_or_create_worksheet(spreadsheet, MEALS_SHEET, MEAL_COLUMNS)
    except GSpreadException as exc:
      logger.exception("Could not open spreadsheet %s: %s", sheet_url, exc)
      raise StoreError() from exc
    return cls(users_sheet, meals_sheet)

  def _records(self, worksheet) -> List[Dict[str, Any]]:
    try:
      # Keep every cell as text; ids and hashes must not be coerced to numbers.
      return worksheet.get_all_records(numericise_ignore=["all"])
    except GSpreadException as exc:
      logger.exception("Failed to read worksheet: %s", exc)
      raise StoreError() from exc

  def _append(self, worksheet, values: List[Any]) -> None:
    try:
      worksheet.append_row(values, value_input_option="RAW")
    except GSpreadException as exc:
      logger.exception("Failed to append row: %s", exc)
      raise StoreError() from exc

  def create_user(self, username: str, password_hash: str) -> User:
    if self.find_user_by_username(username) is not None:
      raise ConflictError()
    user = User(
      id=uuid.uuid4().hex,
      username=username,
      password_hash=password_hash,
      created_at=utcnow(),
    )
    self._append(
      self.users_sheet,
      [user.id, user.username, user.password_hash, user.created_at.isoformat()],
    )
    return user

  def _find_user(self, column: str, value: str) -> Optional[User]:
    for row in self._records(self.users_sheet):
      if str(row.get(column)) == value:
        return _row_to_user(row)
    return None

  def find_user_by_username(self, username: str) -> Optional[User]:
    return self._find_user("username", username)

  def find_user_by_id(self, user_id: str) -> Optional[User]:
    return self._find_user("id", user_id)

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
    self._append(
      self.meals_sheet,
      [
        record.id,
        record.owner_user_id,
        record.image_path,
        "TRUE" if record.is_complete else "FALSE",
        record.nutrition.proteins,
        record.nutrition.carbs,
        record.nutrition.fats,
        record.nutrition.calories,
        json.dumps(record.suggestions),
        record.created_at.isoformat(),
      ],
    )
    return record

  def list_meals_by_owner(self, owner_id: str) -> List[MealRecord]:
    owned = [
      (position, _row_to_meal(row))
      for position, row in enumerate(self._records(self.meals_sheet))
      if str(row.get("user_id")) == owner_id
    ]
    # Row position breaks ties between identical timestamps.
    owned.sort(key=lambda item: (item[1].created_at, item[0]), reverse=True)
    return [meal for _, meal in owned]


__all__ = ["SheetsRecordStore", "get_or_create_worksheet", "USER_COLUMNS", "MEAL_COLUMNS"]
