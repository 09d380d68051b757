import pytest
from gspread.exceptions import GSpreadException, WorksheetNotFound

from mealcheck.errors import StoreError
from mealcheck.stores.sheets_store import (
  MEAL_COLUMNS,
  USER_COLUMNS,
  SheetsRecordStore,
  get_or_create_worksheet,
)

from store_contract import COMPLETE, RecordStoreContract


class FakeWorksheet:
  """In-memory stand-in for ``gspread.Worksheet``; cells are kept as text."""

  def __init__(self, title="Sheet1"):
    self.title = title
    self.rows = []

  def row_values(self, row):
    return list(self.rows[row - 1]) if len(self.rows) >= row else []

  def append_row(self, values, value_input_option="RAW"):
    self.rows.append(["" if value is None else str(value) for value in values])

  def get_all_records(self, numericise_ignore=None):
    if not self.rows:
      return []
    header, *body = self.rows
    return [dict(zip(header, row)) for row in body]


class FakeSpreadsheet:
  def __init__(self):
    self.worksheets = {}

  def worksheet(self, name):
    if name not in self.worksheets:
      raise WorksheetNotFound(name)
    return self.worksheets[name]

  def add_worksheet(self, title, rows, cols):
    self.worksheets[title] = FakeWorksheet(title)
    return self.worksheets[title]


def make_store():
  spreadsheet = FakeSpreadsheet()
  return SheetsRecordStore(
    get_or_create_worksheet(spreadsheet, "users", USER_COLUMNS),
    get_or_create_worksheet(spreadsheet, "meals", MEAL_COLUMNS),
  )


class TestSheetsRecordStore(RecordStoreContract):
  @pytest.fixture
  def record_store(self):
    return make_store()


def test_worksheets_are_created_with_headers():
  spreadsheet = FakeSpreadsheet()

  worksheet = get_or_create_worksheet(spreadsheet, "meals", MEAL_COLUMNS)

  assert spreadsheet.worksheets["meals"] is worksheet
  assert worksheet.row_values(1) == MEAL_COLUMNS


def test_existing_worksheet_keeps_its_header():
  spreadsheet = FakeSpreadsheet()
  existing = spreadsheet.add_worksheet("users", rows=10, cols=4)
  existing.append_row(USER_COLUMNS)

  assert get_or_create_worksheet(spreadsheet, "users", USER_COLUMNS) is existing
  assert len(existing.rows) == 1


def test_meal_row_layout():
  store = make_store()
  user = store.create_user("alice", "hash")

  store.create_meal(user.id, "/uploads/a.jpg", COMPLETE)

  row = store.meals_sheet.get_all_records()[0]
  assert row["user_id"] == user.id
  assert row["is_complete"] == "TRUE"
  assert row["calories"] == "290"
  assert row["suggestions"] == "[]"


class FailingWorksheet(FakeWorksheet):
  def get_all_records(self, numericise_ignore=None):
    raise GSpreadException("quota exceeded")


def test_sheet_errors_become_store_errors():
  store = SheetsRecordStore(FailingWorksheet(), FailingWorksheet())
  with pytest.raises(StoreError):
    store.find_user_by_username("alice")
