"""
Menu Repository - Data access layer for recommended menus and their meals
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID
from sqlalchemy.orm import Session, selectinload

from repositories.base import BaseRepository
from domain.models import (
    IngredientCheck,
    RecommendedMeal,
    RecommendedMenu,
    UserMealPreference,
)


class MenuRepository(BaseRepository[RecommendedMenu]):
    """Repository for recommended menu data access"""

    id_field = "menu_id"

    def __init__(self, db: Session):
        super().__init__(db, RecommendedMenu)

    def _with_meals(self):
        return self.db.query(RecommendedMenu).options(
            selectinload(RecommendedMenu.meals).selectinload(RecommendedMeal.ingredients)
        )

    def get_by_id_and_user(self, menu_id: UUID, user_id: UUID) -> Optional[RecommendedMenu]:
        """Get menu by ID for specific user, meals and ingredients loaded"""
        return (
            self._with_meals()
            .filter(RecommendedMenu.menu_id == menu_id, RecommendedMenu.user_id == user_id)
            .first()
        )

    def list_for_user(self, user_id: UUID) -> List[RecommendedMenu]:
        """All menus of a user, newest first"""
        return (
            self._with_meals()
            .filter(RecommendedMenu.user_id == user_id)
            .order_by(RecommendedMenu.created_at.desc())
            .all()
        )

    def count_for_user(self, user_id: UUID) -> int:
        return self.db.query(RecommendedMenu).filter(RecommendedMenu.user_id == user_id).count()

    def get_active_for_user(self, user_id: UUID) -> Optional[RecommendedMenu]:
        return (
            self._with_meals()
            .filter(RecommendedMenu.user_id == user_id, RecommendedMenu.is_active.is_(True))
            .order_by(RecommendedMenu.start_date.desc())
            .first()
        )

    def deactivate_for_user(self, user_id: UUID, keep_menu_id: Optional[UUID] = None) -> int:
        """Deactivate every active menu of a user except `keep_menu_id`; no commit."""
        query = self.db.query(RecommendedMenu).filter(
            RecommendedMenu.user_id == user_id, RecommendedMenu.is_active.is_(True)
        )
        if keep_menu_id is not None:
            query = query.filter(RecommendedMenu.menu_id != keep_menu_id)
        return query.update({RecommendedMenu.is_active: False}, synchronize_session="fetch")

    def list_active(self) -> List[RecommendedMenu]:
        return self.db.query(RecommendedMenu).filter(RecommendedMenu.is_active.is_(True)).all()

    def list_active_ending_before(self, moment: datetime) -> List[RecommendedMenu]:
        return (
            self.db.query(RecommendedMenu)
            .filter(
                RecommendedMenu.is_active.is_(True),
                RecommendedMenu.end_date.isnot(None),
                RecommendedMenu.end_date < moment,
            )
            .all()
        )

    def list_active_ending_between(self, start: datetime, end: datetime) -> List[RecommendedMenu]:
        return (
            self.db.query(RecommendedMenu)
            .filter(
                RecommendedMenu.is_active.is_(True),
                RecommendedMenu.end_date >= start,
                RecommendedMenu.end_date <= end,
            )
            .order_by(RecommendedMenu.end_date)
            .all()
        )

    def list_active_without_end_date(self) -> List[RecommendedMenu]:
        return (
            self.db.query(RecommendedMenu)
            .filter(
                RecommendedMenu.is_active.is_(True),
                RecommendedMenu.start_date.isnot(None),
                RecommendedMenu.end_date.is_(None),
            )
            .all()
        )


class MealRepository(BaseRepository[RecommendedMeal]):
    """Repository for menu meals"""

    id_field = "meal_id"

    def __init__(self, db: Session):
        super().__init__(db, RecommendedMeal)

    def get_in_menu(self, meal_id: UUID, menu_id: UUID) -> Optional[RecommendedMeal]:
        return (
            self.db.query(RecommendedMeal)
            .filter(RecommendedMeal.meal_id == meal_id, RecommendedMeal.menu_id == menu_id)
            .first()
        )

    def get_for_user(self, meal_id: UUID, user_id: UUID) -> Optional[RecommendedMeal]:
        """Meal by id, only when its menu belongs to the user"""
        return (
            self.db.query(RecommendedMeal)
            .join(RecommendedMenu, RecommendedMenu.menu_id == RecommendedMeal.menu_id)
            .filter(RecommendedMeal.meal_id == meal_id, RecommendedMenu.user_id == user_id)
            .first()
        )

    def list_for_menu(self, menu_id: UUID) -> List[RecommendedMeal]:
        return (
            self.db.query(RecommendedMeal)
            .options(selectinload(RecommendedMeal.ingredients))
            .filter(RecommendedMeal.menu_id == menu_id)
            .order_by(RecommendedMeal.day_number)
            .all()
        )

    def list_by_cooking_method(self, menu_id: UUID, cooking_method: str) -> List[RecommendedMeal]:
        return (
            self.db.query(RecommendedMeal)
            .filter(
                RecommendedMeal.menu_id == menu_id,
                RecommendedMeal.cooking_method == cooking_method,
            )
            .all()
        )


class IngredientCheckRepository(BaseRepository[IngredientCheck]):
    id_field = "check_id"

    def __init__(self, db: Session):
        super().__init__(db, IngredientCheck)

    def get_for(self, user_id: UUID, ingredient_id: UUID, meal_id: UUID) -> Optional[IngredientCheck]:
        return (
            self.db.query(IngredientCheck)
            .filter(
                IngredientCheck.user_id == user_id,
                IngredientCheck.ingredient_id == ingredient_id,
                IngredientCheck.meal_id == meal_id,
            )
            .first()
        )

    def list_for_menu(self, user_id: UUID, menu_id: UUID) -> List[IngredientCheck]:
        return (
            self.db.query(IngredientCheck)
            .join(RecommendedMeal, RecommendedMeal.meal_id == IngredientCheck.meal_id)
            .filter(IngredientCheck.user_id == user_id, RecommendedMeal.menu_id == menu_id)
            .all()
        )


class MealPreferenceRepository(BaseRepository[UserMealPreference]):
    id_field = "preference_id"

    def __init__(self, db: Session):
        super().__init__(db, UserMealPreference)

    def get_for(self, user_id: UUID, template_id: UUID, preference_type: str) -> Optional[UserMealPreference]:
        return (
            self.db.query(UserMealPreference)
            .filter(
                UserMealPreference.user_id == user_id,
                UserMealPreference.template_id == template_id,
                UserMealPreference.preference_type == preference_type,
            )
            .first()
        )
