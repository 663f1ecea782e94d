"""
Domain models package - SQLAlchemy ORM models.
"""

from domain.models.database import (
    Base,
    engine,
    SessionLocal,
    init_database,
    get_db_session,
)
from domain.models.user import AppUser, UserQuestionnaire
from domain.models.meal import Meal
from domain.models.menu import (
    RecommendedMenu,
    RecommendedMeal,
    RecommendedIngredient,
    MealCompletion,
    IngredientCheck,
    MenuReview,
    UserMealPreference,
)
from domain.models.meal_plan import UserMealPlan
from domain.models.notification import (
    DeviceToken,
    NotificationPreference,
    NotificationHistory,
)
from domain.models.recommendation import DailyRecommendation

__all__ = [
    # Database
    "Base",
    "engine",
    "SessionLocal",
    "init_database",
    "get_db_session",
    # User models
    "AppUser",
    "UserQuestionnaire",
    # Meal history
    "Meal",
    # Menu models
    "RecommendedMenu",
    "RecommendedMeal",
    "RecommendedIngredient",
    "MealCompletion",
    "IngredientCheck",
    "MenuReview",
    "UserMealPreference",
    # Meal plans
    "UserMealPlan",
    # Notifications
    "DeviceToken",
    "NotificationPreference",
    "NotificationHistory",
    # Recommendations
    "DailyRecommendation",
]
