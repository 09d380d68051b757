"""Behaviour every record store backend must share."""

import pytest

from mealcheck.errors import ConflictError
from mealcheck.models import Analysis, Nutrition

COMPLETE = Analysis(is_complete=True, nutrition=Nutrition(20, 30, 10, 290), suggestions=[])
INCOMPLETE = Analysis(
  is_complete=False,
  nutrition=Nutrition(10, 20, 5, 165),
  suggestions=["Add more vegetables for a balanced meal", "Include whole grains for fiber"],
)


class RecordStoreContract:
  @pytest.fixture
  def record_store(self):
    raise NotImplementedError

  def test_create_and_find_user(self, record_store):
    user = record_store.create_user("alice", "hash")

    by_name = record_store.find_user_by_username("alice")
    by_id = record_store.find_user_by_id(user.id)

    assert by_name == by_id
    assert by_name.id == user.id
    assert by_name.password_hash == "hash"
    assert by_name.created_at.tzinfo is not None

  def test_unknown_user(self, record_store):
    assert record_store.find_user_by_username("nobody") is None
    assert record_store.find_user_by_id("missing") is None

  def test_duplicate_username_conflicts(self, record_store):
    record_store.create_user("alice", "hash")
    with pytest.raises(ConflictError):
      record_store.create_user("alice", "other")

  def test_create_meal(self, record_store):
    user = record_store.create_user("alice", "hash")

    record = record_store.create_meal(user.id, "/uploads/meal_1_aaaa0000.jpg", INCOMPLETE)

    assert record.owner_user_id == user.id
    assert record.image_path == "/uploads/meal_1_aaaa0000.jpg"
    assert record.is_complete is False
    assert record.nutrition == INCOMPLETE.nutrition
    assert record.suggestions == INCOMPLETE.suggestions
    assert record_store.list_meals_by_owner(user.id) == [record]

  def test_list_is_newest_first_and_scoped_to_owner(self, record_store):
    alice = record_store.create_user("alice", "hash")
    bob = record_store.create_user("bob", "hash")
    first = record_store.create_meal(alice.id, "/uploads/a1.jpg", COMPLETE)
    record_store.create_meal(bob.id, "/uploads/b1.jpg", COMPLETE)
    second = record_store.create_meal(alice.id, "/uploads/a2.jpg", INCOMPLETE)
    third = record_store.create_meal(alice.id, "/uploads/a3.jpg", COMPLETE)

    meals = record_store.list_meals_by_owner(alice.id)

    assert [meal.id for meal in meals] == [third.id, second.id, first.id]
    assert all(meal.owner_user_id == alice.id for meal in meals)
    assert [meal.is_complete for meal in meals] == [True, False, True]

  def test_list_for_owner_without_meals(self, record_store):
    user = record_store.create_user("alice", "hash")
    assert record_store.list_meals_by_owner(user.id) == []
