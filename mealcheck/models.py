"""Plain data records shared by the stores, the analyzer and the routes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List


def utcnow() -> datetime:
  return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
  """Return an aware UTC datetime from an ISO string or a (possibly naive) datetime."""
  if isinstance(value, datetime):
    parsed = value
  else:
    parsed = datetime.fromisoformat(str(value))
  if parsed.tzinfo is None:
    return parsed.replace(tzinfo=timezone.utc)
  return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class User:
  id: str
  username: str
  password_hash: str
  created_at: datetime

  def public(self) -> Dict[str, Any]:
    return {"id": self.id, "username": self.username}


@dataclass(frozen=True)
class Nutrition:
  proteins: int
  carbs: int
  fats: int
  calories: int

  def to_dict(self) -> Dict[str, int]:
    return {
      "proteins": self.proteins,
      "carbs": self.carbs,
      "fats": self.fats,
      "calories": self.calories,
    }


@dataclass(frozen=True)
class Analysis:
  is_complete: bool
  nutrition: Nutrition
  suggestions: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class MealRecord:
  id: str
  owner_user_id: str
  image_path: str
  is_complete: bool
  nutrition: Nutrition
  suggestions: List[str]
  created_at: datetime

  def to_json(self) -> Dict[str, Any]:
    """Serialise using the field names the web client expects."""
    return {
      "id": self.id,
      "userId": self.owner_user_id,
      "imagePath": self.image_path,
      "isComplete": self.is_complete,
      "nutritionalInfo": self.nutrition.to_dict(),
      "suggestions": list(self.suggestions),
      "createdAt": self.created_at.isoformat(),
    }


__all__ = ["User", "Nutrition", "Analysis", "MealRecord", "utcnow", "parse_timestamp"]
