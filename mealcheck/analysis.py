"""Meal analysis backends.

Only a synthetic analyzer ships today: it returns randomised nutrition numbers
with the same shape a real inference backend would produce, so routes and
persistence can stay untouched when one is plugged in behind
:class:`MealAnalyzer`.
"""

from __future__ import annotations

import abc
import logging
import random
from typing import List, Optional

from mealcheck.models import Analysis, Nutrition
from mealcheck.uploads import UploadedImage

logger = logging.getLogger(__name__)

PROTEIN_RANGE = (10, 39)
CARBS_RANGE = (20, 69)
FATS_RANGE = (5, 24)

IMPROVEMENT_SUGGESTIONS: List[str] = [
  "Add more vegetables for a balanced meal",
  "Consider adding a source of lean protein",
  "Include whole grains for fiber",
]


def calories_for(proteins: int, carbs: int, fats: int) -> int:
  """Atwater factors: 4 kcal/g protein and carbohydrate, 9 kcal/g fat."""
  return proteins * 4 + carbs * 4 + fats * 9


class MealAnalyzer(abc.ABC):
  @abc.abstractmethod
  def analyze(self, image: UploadedImage) -> Analysis:
    """Return the nutrition analysis for ``image``."""


class SyntheticMealAnalyzer(MealAnalyzer):
  """Randomised analysis that ignores the image contents."""

  def __init__(self, rng: Optional[random.Random] = None) -> None:
    self._rng = rng or random.Random()

  def analyze(self, image: UploadedImage) -> Analysis:
    logger.debug("Returning synthetic analysis for %s", image.filename)
    is_complete = self._rng.random() > 0.5
    proteins = self._rng.randint(*PROTEIN_RANGE)
    carbs = self._rng.randint(*CARBS_RANGE)
    fats = self._rng.randint(*FATS_RANGE)
    nutrition = Nutrition(
      proteins=proteins,
      carbs=carbs,
      fats=fats,
      calories=calories_for(proteins, carbs, fats),
    )
    suggestions = [] if is_complete else list(IMPROVEMENT_SUGGESTIONS)
    return Analysis(is_complete=is_complete, nutrition=nutrition, suggestions=suggestions)


__all__ = ["MealAnalyzer", "SyntheticMealAnalyzer", "calories_for", "IMPROVEMENT_SUGGESTIONS"]
