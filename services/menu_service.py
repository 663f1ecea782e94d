from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.clock import current_day_number, end_of_day, menu_window, noon, start_of_day, utcnow
from app.config import settings
from app.exceptions import NotFoundError, ServiceValidationError
from domain.enums import MealType, PreferenceType, ReviewType
from domain.models import (
    AppUser,
    IngredientCheck,
    MealCompletion,
    MenuReview,
    RecommendedIngredient,
    RecommendedMeal,
    RecommendedMenu,
    UserMealPreference,
)
from domain.schemas.menu_schemas import (
    IngredientIn,
    MealCreate,
    MealResponse,
    MealUpdate,
    MenuResponse,
    MenuUpdate,
)
from repositories import (
    CompletionRepository,
    IngredientCheckRepository,
    MealPreferenceRepository,
    MealRepository,
    MenuRepository,
    UserRepository,
)

logger = logging.getLogger("calo.menus")

PLACEHOLDER_METHOD = "Preparing..."
GENERATION_WINDOW = timedelta(minutes=10)
DEFAULT_DAILY_CALORIES = 2000
MEAL_TYPE_ORDER = [
    MealType.BREAKFAST.value,
    MealType.MORNING_SNACK.value,
    MealType.LUNCH.value,
    MealType.AFTERNOON_SNACK.value,
    MealType.SNACK.value,
    MealType.DINNER.value,
]


# ---------- helpers shared with menu generation ----------


def sort_meals(meals: Iterable[RecommendedMeal]) -> List[RecommendedMeal]:
    def key(meal: RecommendedMeal):
        try:
            slot = MEAL_TYPE_ORDER.index(meal.meal_type)
        except ValueError:
            slot = len(MEAL_TYPE_ORDER)
        return meal.day_number, slot

    return sorted(meals, key=key)


def ingredients_cost(meals: Iterable[RecommendedMeal]) -> float:
    return sum(
        (ing.estimated_cost or 0) for meal in meals for ing in meal.ingredients
    )


def recalculate_totals(menu: RecommendedMenu) -> None:
    """Recompute menu nutrition totals and cost from its meals; no commit."""
    meals = list(menu.meals)
    menu.total_calories = round(sum(m.calories or 0 for m in meals))
    menu.total_protein = round(sum(m.protein or 0 for m in meals))
    menu.total_carbs = round(sum(m.carbs or 0 for m in meals))
    menu.total_fat = round(sum(m.fat or 0 for m in meals))
    menu.estimated_cost = round(ingredients_cost(meals), 1)


def activate_menu(db: Session, user: AppUser, menu: RecommendedMenu) -> None:
    """Start a menu today; every other menu of the user is deactivated. No commit."""
    MenuRepository(db).deactivate_for_user(user.user_id, keep_menu_id=menu.menu_id)
    menu.start_date, menu.end_date = menu_window(menu.days_count)
    menu.is_active = True
    user.active_menu_id = menu.menu_id
    user.active_meal_plan_id = None


def build_ingredients(items: Iterable[IngredientIn | Dict[str, Any]]) -> List[RecommendedIngredient]:
    ingredients = []
    for item in items:
        data = item.model_dump() if isinstance(item, IngredientIn) else dict(item)
        name = str(data.get("name") or "").strip()
        if not name:
            continue
        ingredients.append(
            RecommendedIngredient(
                name=name,
                quantity=_number(data.get("quantity"), 1),
                unit=data.get("unit") or "piece",
                category=data.get("category") or "Other",
                estimated_cost=_number(data.get("estimated_cost"), 0),
            )
        )
    return ingredients


def _number(value: Any, default: float) -> float:
    try:
        return float(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def is_meal_generating(menu: RecommendedMenu, meal: RecommendedMeal, now=None) -> bool:
    now = now or utcnow()
    return (
        meal.cooking_method == PLACEHOLDER_METHOD
        and menu.created_at is not None
        and now - menu.created_at < GENERATION_WINDOW
    )


def serialize_meal(meal: RecommendedMeal) -> Dict[str, Any]:
    return MealResponse.model_validate(meal).model_dump(mode="json")


def serialize_menu(menu: RecommendedMenu) -> Dict[str, Any]:
    data = MenuResponse.model_validate(menu).model_dump(mode="json")
    data["meals"] = [serialize_meal(m) for m in sort_meals(menu.meals)]
    data["is_generating"] = any(is_meal_generating(menu, m) for m in menu.meals)
    return data


class MenuService:
    """Business logic for recommended menus after they have been generated"""

    # ---------- menus ----------

    @staticmethod
    def list_menus(db: Session, user_id: UUID) -> Dict[str, Any]:
        menus = MenuRepository(db).list_for_user(user_id)
        count = len(menus)
        return {
            "menus": [serialize_menu(m) for m in menus],
            "menu_count": count,
            "max_menus": settings.max_menus_per_user,
            "can_create_more": count < settings.max_menus_per_user,
        }

    @staticmethod
    def get_menu(db: Session, user_id: UUID, menu_id: UUID) -> RecommendedMenu:
        menu = MenuRepository(db).get_by_id_and_user(menu_id, user_id)
        if menu is None:
            raise NotFoundError(f"Menu {menu_id} not found")
        return menu

    @staticmethod
    def get_active_menu(db: Session, user_id: UUID) -> Optional[RecommendedMenu]:
        user = UserRepository(db).get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        repo = MenuRepository(db)
        if user.active_menu_id:
            menu = repo.get_by_id_and_user(user.active_menu_id, user_id)
            if menu is not None and menu.is_active:
                return menu
        return repo.get_active_for_user(user_id)

    @staticmethod
    def update_menu(db: Session, user_id: UUID, menu_id: UUID, data: MenuUpdate) -> RecommendedMenu:
        menu = MenuService.get_menu(db, user_id, menu_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(menu, key, value)
        db.commit()
        db.refresh(menu)
        logger.info("menu_updated menu_id=%s", menu_id)
        return menu

    @staticmethod
    def delete_menu(db: Session, user_id: UUID, menu_id: UUID) -> None:
        menu = MenuService.get_menu(db, user_id, menu_id)
        UserRepository(db).clear_active_menu(user_id, menu_id)
        db.delete(menu)
        db.commit()
        logger.info("menu_deleted menu_id=%s user_id=%s", menu_id, user_id)

    @staticmethod
    def start_today(db: Session, user_id: UUID, menu_id: UUID) -> RecommendedMenu:
        menu = MenuService.get_menu(db, user_id, menu_id)
        user = UserRepository(db).get_by_id(user_id)
        activate_menu(db, user, menu)
        db.commit()
        db.refresh(menu)
        logger.info(
            "menu_started menu_id=%s start=%s end=%s", menu_id, menu.start_date, menu.end_date
        )
        return menu

    @staticmethod
    def stop_menu(db: Session, user_id: UUID, menu_id: UUID) -> RecommendedMenu:
        menu = MenuService.get_menu(db, user_id, menu_id)
        menu.is_active = False
        UserRepository(db).clear_active_menu(user_id, menu_id)
        db.commit()
        db.refresh(menu)
        logger.info("menu_stopped menu_id=%s", menu_id)
        return menu

    # ---------- meals ----------

    @staticmethod
    def _get_meal(db: Session, user_id: UUID, menu_id: UUID, meal_id: UUID):
        menu = MenuService.get_menu(db, user_id, menu_id)
        meal = MealRepository(db).get_in_menu(meal_id, menu_id)
        if meal is None:
            raise NotFoundError(f"Meal {meal_id} not found in menu {menu_id}")
        return menu, meal

    @staticmethod
    def add_meal(db: Session, user_id: UUID, menu_id: UUID, data: MealCreate) -> RecommendedMeal:
        menu = MenuService.get_menu(db, user_id, menu_id)
        meal = RecommendedMeal(
            menu_id=menu.menu_id,
            name=data.name.strip(),
            meal_type=data.meal_type.strip().upper(),
            day_number=data.day_number,
            calories=data.calories,
            protein=data.protein,
            carbs=data.carbs,
            fat=data.fat,
            prep_time_minutes=data.prep_time_minutes,
            cooking_method=data.cooking_method,
            instructions=data.instructions,
            dietary_tags=data.dietary_tags,
            ingredients=build_ingredients(data.ingredients),
        )
        menu.meals.append(meal)
        recalculate_totals(menu)
        db.commit()
        db.refresh(meal)
        logger.info("meal_added menu_id=%s meal_id=%s", menu_id, meal.meal_id)
        return meal

    @staticmethod
    def update_meal(db: Session, user_id: UUID, menu_id: UUID, meal_id: UUID, data: MealUpdate) -> RecommendedMeal:
        menu, meal = MenuService._get_meal(db, user_id, menu_id, meal_id)
        values = data.model_dump(exclude_unset=True, exclude={"ingredients"})
        for key, value in values.items():
            if value is None:
                continue
            if key == "meal_type":
                value = value.strip().upper()
            setattr(meal, key, value)
        if data.ingredients is not None:
            meal.ingredients = build_ingredients(data.ingredients)
        recalculate_totals(menu)
        db.commit()
        db.refresh(meal)
        logger.info("meal_updated meal_id=%s", meal_id)
        return meal

    @staticmethod
    def delete_meal(db: Session, user_id: UUID, menu_id: UUID, meal_id: UUID) -> None:
        menu, meal = MenuService._get_meal(db, user_id, menu_id, meal_id)
        menu.meals.remove(meal)
        recalculate_totals(menu)
        db.commit()
        logger.info("meal_deleted meal_id=%s", meal_id)

    # ---------- daily use ----------

    @staticmethod
    def today_meals(db: Session, user_id: UUID) -> Dict[str, Any]:
        menu = MenuService.get_active_menu(db, user_id)
        if menu is None:
            raise NotFoundError("No active menu")

        now = utcnow()
        start = menu.start_date or noon(menu.created_at.date())
        day_number = current_day_number(start, menu.days_count, now)

        today_start = start_of_day(now)
        todays = CompletionRepository(db).list_between(
            user_id, today_start, today_start + timedelta(days=1)
        )
        completed_types = {c.meal_type for c in todays if c.menu_id in (None, menu.menu_id)}

        meals = []
        for meal in sort_meals(m for m in menu.meals if m.day_number == day_number):
            data = serialize_meal(meal)
            data["completed"] = bool(meal.is_completed) or meal.meal_type in completed_types
            meals.append(data)

        return {
            "menu_id": str(menu.menu_id),
            "menu_title": menu.title,
            "day_number": day_number,
            "days_count": menu.days_count,
            "date": now.date().isoformat(),
            "meals": meals,
        }

    @staticmethod
    def with_progress(db: Session, user_id: UUID, menu_id: UUID) -> Dict[str, Any]:
        """Menu with meals grouped by day, completion and shopping state."""
        menu = MenuService.get_menu(db, user_id, menu_id)
        now = utcnow()

        if menu.start_date is None:
            menu.start_date = noon(menu.created_at.date())
            menu.end_date = end_of_day(menu.start_date + timedelta(days=menu.days_count - 1))
            db.commit()
            logger.info("menu_dates_fixed menu_id=%s", menu_id)

        completions = CompletionRepository(db).list_for_menu(user_id, menu_id, include_skipped=True)
        by_slot = {(c.day_number, c.meal_type): c for c in completions}
        checks = IngredientCheckRepository(db).list_for_menu(user_id, menu_id)

        days: "OrderedDict[int, Dict[str, Any]]" = OrderedDict()
        for day in range(1, menu.days_count + 1):
            days[day] = {
                "day_number": day,
                "date": (menu.start_date + timedelta(days=day - 1)).date().isoformat(),
                "meals": [],
            }

        completed_count = 0
        generating = False
        for meal in sort_meals(menu.meals):
            data = serialize_meal(meal)
            data["is_generating"] = is_meal_generating(menu, meal, now)
            generating = generating or data["is_generating"]
            completion = by_slot.get((meal.day_number, meal.meal_type))
            data["skipped"] = bool(completion and completion.skipped)
            data["completed"] = bool(meal.is_completed) or bool(completion and not completion.skipped)
            if data["completed"]:
                completed_count += 1
            days.setdefault(
                meal.day_number,
                {
                    "day_number": meal.day_number,
                    "date": (menu.start_date + timedelta(days=meal.day_number - 1)).date().isoformat(),
                    "meals": [],
                },
            )["meals"].append(data)

        total_meals = len(menu.meals)
        estimated_cost = menu.estimated_cost or round(ingredients_cost(menu.meals), 1)
        daily_target = (
            round(menu.total_calories / menu.days_count)
            if menu.total_calories and menu.days_count
            else DEFAULT_DAILY_CALORIES
        )

        data = MenuResponse.model_validate(menu).model_dump(mode="json", exclude={"meals"})
        data.update(
            {
                "days": list(days.values()),
                "is_generating": generating,
                "daily_calorie_target": daily_target,
                "estimated_cost": estimated_cost,
                "ingredient_checks": {
                    f"{c.meal_id}:{c.ingredient_id}": c.checked for c in checks
                },
                "total_meals": total_meals,
                "completed_meals": completed_count,
                "progress_percentage": round(completed_count / total_meals * 100, 2) if total_meals else 0,
                "current_day": current_day_number(menu.start_date, menu.days_count, now),
                "status": "active" if menu.is_active else "completed",
            }
        )
        return data

    @staticmethod
    def skip_meal(
        db: Session,
        user_id: UUID,
        menu_id: UUID,
        day_number: int,
        meal_type: str,
        reason: Optional[str] = None,
    ) -> MealCompletion:
        menu = MenuService.get_menu(db, user_id, menu_id)
        meal_type = meal_type.strip().upper()
        if day_number > menu.days_count:
            raise ServiceValidationError(
                f"Day {day_number} is outside this {menu.days_count}-day menu"
            )

        meal = next(
            (m for m in menu.meals if m.day_number == day_number and m.meal_type == meal_type),
            None,
        )
        repo = CompletionRepository(db)
        completion = repo.get_slot(user_id, menu_id, day_number, meal_type)
        if completion is None:
            completion = MealCompletion(
                user_id=user_id,
                menu_id=menu_id,
                day_number=day_number,
                meal_type=meal_type,
                meal_name=meal.name if meal else meal_type.title(),
                meal_id_ref=meal.meal_id if meal else None,
            )
            db.add(completion)
        completion.skipped = True
        completion.skip_reason = reason
        completion.completed_date = utcnow()
        db.commit()
        db.refresh(completion)
        logger.info("meal_skipped menu_id=%s day=%s type=%s", menu_id, day_number, meal_type)
        return completion

    @staticmethod
    def toggle_ingredient_check(
        db: Session,
        user_id: UUID,
        menu_id: UUID,
        ingredient_id: UUID,
        meal_id: Optional[UUID],
        checked: bool,
    ) -> IngredientCheck:
        if meal_id is None:
            raise ServiceValidationError("meal_id is required")
        _, meal = MenuService._get_meal(db, user_id, menu_id, meal_id)
        if not any(i.ingredient_id == ingredient_id for i in meal.ingredients):
            raise NotFoundError(f"Ingredient {ingredient_id} not found in meal {meal_id}")

        repo = IngredientCheckRepository(db)
        check = repo.get_for(user_id, ingredient_id, meal_id)
        if check is None:
            check = IngredientCheck(user_id=user_id, ingredient_id=ingredient_id, meal_id=meal_id)
            db.add(check)
        check.checked = checked
        check.checked_at = utcnow() if checked else None
        db.commit()
        db.refresh(check)
        return check

    @staticmethod
    def review_menu(
        db: Session,
        user_id: UUID,
        menu_id: UUID,
        review_type: str,
        rating: int,
        feedback: Optional[str] = None,
    ) -> MenuReview:
        if review_type not in {t.value for t in ReviewType}:
            raise ServiceValidationError("review_type must be 'completed' or 'failed'")
        if not 1 <= rating <= 5:
            raise ServiceValidationError("rating must be between 1 and 5")

        menu = MenuService.get_menu(db, user_id, menu_id)
        review = MenuReview(
            menu_id=menu_id,
            user_id=user_id,
            review_type=review_type,
            rating=rating,
            feedback=feedback,
        )
        db.add(review)
        menu.is_active = False
        UserRepository(db).clear_active_menu(user_id, menu_id)
        db.commit()
        db.refresh(review)
        logger.info("menu_reviewed menu_id=%s type=%s rating=%d", menu_id, review_type, rating)
        return review

    # ---------- derived views ----------

    @staticmethod
    def shopping_list(db: Session, user_id: UUID, menu_id: UUID) -> Dict[str, Any]:
        menu = MenuService.get_menu(db, user_id, menu_id)

        aggregated: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        for meal in sort_meals(menu.meals):
            for ing in meal.ingredients:
                key = ing.name.strip().lower()
                item = aggregated.get(key)
                if item is None:
                    aggregated[key] = {
                        "name": ing.name.strip(),
                        "quantity": ing.quantity or 0,
                        "unit": ing.unit,
                        "category": ing.category or "Other",
                        "estimated_cost": ing.estimated_cost or 0,
                        "meal_count": 1,
                    }
                else:
                    item["quantity"] += ing.quantity or 0
                    item["estimated_cost"] += ing.estimated_cost or 0
                    item["meal_count"] += 1

        categories: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        for item in aggregated.values():
            item["quantity"] = round(item["quantity"], 2)
            item["estimated_cost"] = round(item["estimated_cost"], 2)
            group = categories.setdefault(
                item["category"],
                {"category": item["category"], "items": [], "category_cost": 0.0, "item_count": 0},
            )
            group["items"].append(item)
            group["category_cost"] += item["estimated_cost"]
            group["item_count"] += 1

        for group in categories.values():
            group["category_cost"] = round(group["category_cost"], 2)

        return {
            "menu_id": str(menu.menu_id),
            "categories": list(categories.values()),
            "total_items": len(aggregated),
            "total_estimated_cost": round(sum(i["estimated_cost"] for i in aggregated.values()), 2),
            "generated_at": utcnow().isoformat(),
        }

    @staticmethod
    def completion_summary(db: Session, user_id: UUID, menu_id: UUID) -> Dict[str, Any]:
        menu = MenuService.get_menu(db, user_id, menu_id)
        completions = CompletionRepository(db).list_for_menu(user_id, menu_id)
        done = {(c.day_number, c.meal_type) for c in completions}

        start = menu.start_date or noon(menu.created_at.date())
        breakdown = []
        completed_meals: List[RecommendedMeal] = []
        for day in range(1, menu.days_count + 1):
            day_meals = [m for m in menu.meals if m.day_number == day]
            day_done = [m for m in day_meals if (m.day_number, m.meal_type) in done]
            completed_meals.extend(day_done)
            breakdown.append(
                {
                    "day_number": day,
                    "date": (start + timedelta(days=day - 1)).date().isoformat(),
                    "total_meals": len(day_meals),
                    "completed_meals": len(day_done),
                    "calories": round(sum(m.calories or 0 for m in day_done)),
                    "protein": round(sum(m.protein or 0 for m in day_done), 1),
                }
            )

        total = len(menu.meals)
        days = menu.days_count or 1
        return {
            "menu_id": str(menu.menu_id),
            "total_meals": total,
            "completed_meals": len(completed_meals),
            "completion_rate": round(len(completed_meals) / total * 100, 2) if total else 0,
            "avg_calories_per_day": round(sum(m.calories or 0 for m in completed_meals) / days),
            "avg_protein_per_day": round(sum(m.protein or 0 for m in completed_meals) / days, 1),
            "daily_breakdown": breakdown,
        }

    # ---------- meal preferences ----------

    @staticmethod
    def _upsert_preference(
        db: Session,
        user_id: UUID,
        meal_id: UUID,
        preference_type: PreferenceType,
        rating: int,
        notes: str,
    ) -> UserMealPreference:
        repo = MealPreferenceRepository(db)
        pref = repo.get_for(user_id, meal_id, preference_type.value)
        if pref is None:
            pref = UserMealPreference(
                user_id=user_id, template_id=meal_id, preference_type=preference_type.value
            )
            db.add(pref)
        pref.rating = rating
        pref.notes = notes
        db.commit()
        db.refresh(pref)
        return pref

    @staticmethod
    def set_favorite(db: Session, user_id: UUID, menu_id: UUID, meal_id: UUID, is_favorite: bool) -> UserMealPreference:
        MenuService._get_meal(db, user_id, menu_id, meal_id)
        return MenuService._upsert_preference(
            db,
            user_id,
            meal_id,
            PreferenceType.FAVORITE,
            5 if is_favorite else 1,
            "Marked as favorite" if is_favorite else "Removed from favorites",
        )

    @staticmethod
    def meal_feedback(db: Session, user_id: UUID, menu_id: UUID, meal_id: UUID, liked: bool) -> UserMealPreference:
        MenuService._get_meal(db, user_id, menu_id, meal_id)
        return MenuService._upsert_preference(
            db,
            user_id,
            meal_id,
            PreferenceType.FEEDBACK,
            4 if liked else 2,
            "User liked this meal" if liked else "User disliked this meal",
        )
