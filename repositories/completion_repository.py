"""
Completion Repository - Data access layer for meal completions, logged meals
and meal plans
"""

from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.models import Meal, MealCompletion, UserMealPlan


class CompletionRepository(BaseRepository[MealCompletion]):
    """Repository for meal completion data access"""

    id_field = "completion_id"

    def __init__(self, db: Session):
        super().__init__(db, MealCompletion)

    def list_for_menu(self, user_id: UUID, menu_id: UUID, include_skipped: bool = False) -> List[MealCompletion]:
        query = self.db.query(MealCompletion).filter(
            MealCompletion.user_id == user_id, MealCompletion.menu_id == menu_id
        )
        if not include_skipped:
            query = query.filter(MealCompletion.skipped.is_(False))
        return query.order_by(MealCompletion.completed_date).all()

    def list_between(
        self,
        user_id: UUID,
        start: datetime,
        end: Optional[datetime] = None,
        include_skipped: bool = False,
    ) -> List[MealCompletion]:
        query = self.db.query(MealCompletion).filter(
            MealCompletion.user_id == user_id, MealCompletion.completed_date >= start
        )
        if end is not None:
            query = query.filter(MealCompletion.completed_date < end)
        if not include_skipped:
            query = query.filter(MealCompletion.skipped.is_(False))
        return query.all()

    def get_slot(self, user_id: UUID, menu_id: UUID, day_number: int, meal_type: str) -> Optional[MealCompletion]:
        """Completion for one (menu, day, meal type) slot"""
        return (
            self.db.query(MealCompletion)
            .filter(
                MealCompletion.user_id == user_id,
                MealCompletion.menu_id == menu_id,
                MealCompletion.day_number == day_number,
                MealCompletion.meal_type == meal_type,
            )
            .first()
        )

    def history(
        self,
        user_id: UUID,
        limit: int,
        offset: int,
        meal_type: Optional[str] = None,
        menu_id: Optional[UUID] = None,
        plan_id: Optional[UUID] = None,
    ) -> Tuple[List[MealCompletion], int]:
        query = self.db.query(MealCompletion).filter(
            MealCompletion.user_id == user_id, MealCompletion.skipped.is_(False)
        )
        if meal_type:
            query = query.filter(MealCompletion.meal_type == meal_type)
        if menu_id:
            query = query.filter(MealCompletion.menu_id == menu_id)
        if plan_id:
            query = query.filter(MealCompletion.plan_id == plan_id)
        total = query.count()
        items = (
            query.order_by(MealCompletion.completed_date.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return items, total


class MealLogRepository(BaseRepository[Meal]):
    """Repository for logged history meals"""

    id_field = "meal_id"

    def __init__(self, db: Session):
        super().__init__(db, Meal)

    def count_mandatory_between(self, user_id: UUID, start: datetime, end: datetime) -> int:
        return (
            self.db.query(Meal)
            .filter(
                Meal.user_id == user_id,
                Meal.is_mandatory.is_(True),
                Meal.upload_time >= start,
                Meal.upload_time < end,
            )
            .count()
        )

    def list_for_user(self, user_id: UUID, limit: int, offset: int) -> List[Meal]:
        return (
            self.db.query(Meal)
            .filter(Meal.user_id == user_id)
            .order_by(Meal.upload_time.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def list_since(self, user_id: UUID, start: datetime) -> List[Meal]:
        return self.db.query(Meal).filter(Meal.user_id == user_id, Meal.upload_time >= start).all()

    def get_for_user(self, meal_id: UUID, user_id: UUID) -> Optional[Meal]:
        return self.db.query(Meal).filter(Meal.meal_id == meal_id, Meal.user_id == user_id).first()


class MealPlanRepository(BaseRepository[UserMealPlan]):
    """Repository for meal plan data access"""

    id_field = "plan_id"

    def __init__(self, db: Session):
        super().__init__(db, UserMealPlan)

    def get_by_id_and_user(self, plan_id: UUID, user_id: UUID) -> Optional[UserMealPlan]:
        """Get meal plan by ID for specific user"""
        return (
            self.db.query(UserMealPlan)
            .filter(UserMealPlan.plan_id == plan_id, UserMealPlan.user_id == user_id)
            .first()
        )
