"""
Shared test fixtures and utilities for the Calo test suite.

Mock objects for endpoint tests, factories that write real rows for service
tests, and the shared TestClient.
"""

import uuid
from datetime import datetime, timedelta
from types import SimpleNamespace

from fastapi.testclient import TestClient

from app.clock import end_of_day, noon, utcnow
from domain.models import AppUser, RecommendedIngredient, RecommendedMeal, RecommendedMenu, UserQuestionnaire
from main import app

# Lifespan is not entered without a context manager, so no scheduler runs.
client = TestClient(app)


def unique_email(prefix: str = "test") -> str:
    """Generate unique email address using UUID to avoid conflicts"""
    return f"{prefix}-{uuid.uuid4()}@example.com"


def make_user(user_id=None, **overrides):
    """Mock user object with the attributes routes serialize."""
    now = datetime.utcnow()
    data = dict(
        user_id=user_id or uuid.uuid4(),
        email=unique_email("dana.levi"),
        name="Dana Levi",
        preferred_lang="en",
        timezone="Asia/Jerusalem",
        current_xp=0,
        total_points=0,
        level=1,
        current_streak=0,
        best_streak=0,
        last_complete_date=None,
        active_menu_id=None,
        active_meal_plan_id=None,
        created_at=now,
        updated_at=now,
    )
    data.update(overrides)
    return SimpleNamespace(**data)


# =============================================================================
# DATABASE FACTORIES
# =============================================================================


def create_user(db, **fields) -> AppUser:
    user = AppUser(email=fields.pop("email", unique_email()), name=fields.pop("name", "Dana Levi"), **fields)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_questionnaire(db, user, **fields) -> UserQuestionnaire:
    questionnaire = UserQuestionnaire(user_id=user.user_id, **fields)
    db.add(questionnaire)
    db.commit()
    db.refresh(questionnaire)
    return questionnaire


def create_menu(
    db,
    user,
    days=3,
    meal_types=("BREAKFAST", "LUNCH", "DINNER"),
    start=None,
    active=True,
    with_ingredients=True,
) -> RecommendedMenu:
    """Menu with one meal per type per day; shakshuka-style ingredients on every meal."""
    start = start or noon(utcnow().date())
    meals = []
    for day in range(1, days + 1):
        for meal_type in meal_types:
            ingredients = []
            if with_ingredients:
                ingredients = [
                    RecommendedIngredient(name="Eggs", quantity=2, unit="piece", category="Protein", estimated_cost=3.0),
                    RecommendedIngredient(name="Tomatoes", quantity=150, unit="g", category="Vegetables", estimated_cost=1.5),
                ]
            meals.append(
                RecommendedMeal(
                    name=f"Shakshuka {meal_type.lower()} {day}",
                    meal_type=meal_type,
                    day_number=day,
                    calories=500,
                    protein=25,
                    carbs=40,
                    fat=20,
                    prep_time_minutes=20,
                    cooking_method="pan-seared",
                    instructions="Cook everything together.",
                    ingredients=ingredients,
                )
            )
    menu = RecommendedMenu(
        user_id=user.user_id,
        title="Mediterranean Test Plan",
        days_count=days,
        total_calories=500 * len(meals),
        total_protein=25 * len(meals),
        total_carbs=40 * len(meals),
        total_fat=20 * len(meals),
        estimated_cost=4.5 * len(meals) if with_ingredients else 0,
        is_active=active,
        start_date=start,
        end_date=end_of_day(start + timedelta(days=days - 1)),
        meals=meals,
    )
    db.add(menu)
    db.flush()
    if active:
        user.active_menu_id = menu.menu_id
    db.commit()
    db.refresh(menu)
    return menu
