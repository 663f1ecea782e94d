from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from app.clock import utcnow
from app.exceptions import LimitExceededError, NotFoundError
from domain.enums import MealPeriod
from domain.models import Meal
from domain.schemas.completion_schemas import MealLogCreate
from repositories import MealLogRepository
from services.meal_tracking_service import MealTrackingService
from services.user_service import UserService

logger = logging.getLogger("calo.meals")


class MealService:
    """Logged meal history"""

    @staticmethod
    def log_meal(db: Session, user_id: UUID, data: MealLogCreate) -> Meal:
        UserService.get_user(db, user_id)

        period = (data.meal_period or MealPeriod.OTHER.value).lower()
        if period not in {p.value for p in MealPeriod}:
            period = MealPeriod.OTHER.value
        is_mandatory = (
            data.is_mandatory if data.is_mandatory is not None else period != MealPeriod.SNACK.value
        )

        if is_mandatory:
            status = MealTrackingService.get_meals_remaining(db, user_id)
            if not status["can_log_mandatory"]:
                raise LimitExceededError(
                    "Daily mandatory meal limit reached. "
                    f"You have logged {status['used']}/{status['limit']} mandatory meals today. "
                    "You can still log snacks.",
                    details=status,
                    code="MEAL_LIMIT_REACHED",
                )

        cost = data.estimated_cost
        if cost is None:
            cost = sum(float(i.get("estimated_cost") or 0) for i in data.ingredients)

        meal = Meal(
            user_id=user_id,
            meal_name=data.meal_name.strip(),
            meal_period=period,
            calories=data.calories,
            protein_g=data.protein_g,
            carbs_g=data.carbs_g,
            fats_g=data.fats_g,
            ingredients=data.ingredients,
            estimated_cost=cost,
            image_url=data.image_url,
            is_mandatory=is_mandatory,
            upload_time=utcnow(),
        )
        meal = MealLogRepository(db).create(meal)
        logger.info(f"meal_logged user_id={user_id} meal_id={meal.meal_id} mandatory={is_mandatory}")
        return meal

    @staticmethod
    def list_meals(db: Session, user_id: UUID, limit: int = 50, offset: int = 0) -> List[Meal]:
        return MealLogRepository(db).list_for_user(user_id, limit, offset)

    @staticmethod
    def delete_meal(db: Session, user_id: UUID, meal_id: UUID) -> None:
        meal = MealLogRepository(db).get_for_user(meal_id, user_id)
        if meal is None:
            raise NotFoundError(f"Meal {meal_id} not found")
        db.delete(meal)
        db.commit()
        logger.info(f"meal_deleted user_id={user_id} meal_id={meal_id}")
