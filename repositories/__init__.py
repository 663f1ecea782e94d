"""
Repositories package - Data access layer.
"""

from repositories.base import BaseRepository
from repositories.user_repository import UserRepository, QuestionnaireRepository
from repositories.menu_repository import (
    MenuRepository,
    MealRepository,
    IngredientCheckRepository,
    MealPreferenceRepository,
)
from repositories.completion_repository import (
    CompletionRepository,
    MealLogRepository,
    MealPlanRepository,
)
from repositories.notification_repository import (
    DeviceRepository,
    NotificationPreferenceRepository,
    NotificationHistoryRepository,
)
from repositories.recommendation_repository import RecommendationRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "QuestionnaireRepository",
    "MenuRepository",
    "MealRepository",
    "IngredientCheckRepository",
    "MealPreferenceRepository",
    "CompletionRepository",
    "MealLogRepository",
    "MealPlanRepository",
    "DeviceRepository",
    "NotificationPreferenceRepository",
    "NotificationHistoryRepository",
    "RecommendationRepository",
]
