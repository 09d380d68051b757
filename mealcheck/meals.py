"""Analyze-and-record flow behind the meal endpoints."""

from __future__ import annotations

import logging
from typing import List

from mealcheck.analysis import MealAnalyzer
from mealcheck.image_store import ImageStore
from mealcheck.models import MealRecord
from mealcheck.stores.base import RecordStore
from mealcheck.uploads import UploadedImage

logger = logging.getLogger(__name__)


class MealService:
  def __init__(self, store: RecordStore, images: ImageStore, analyzer: MealAnalyzer) -> None:
    self.store = store
    self.images = images
    self.analyzer = analyzer

  def analyze(self, owner_id: str, image: UploadedImage) -> MealRecord:
    analysis = self.analyzer.analyze(image)
    image_path = self.images.save(image)
    record = self.store.create_meal(owner_id, image_path, analysis)
    logger.info(
      "Stored meal %s for user %s (complete=%s, %d kcal)",
      record.id,
      owner_id,
      record.is_complete,
      record.nutrition.calories,
    )
    return record

  def history(self, owner_id: str) -> List[MealRecord]:
    return self.store.list_meals_by_owner(owner_id)


__all__ = ["MealService"]
