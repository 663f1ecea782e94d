from __future__ import annotations

import logging
from collections import Counter
from datetime import timedelta
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.clock import utcnow
from app.exceptions import ServiceValidationError
from domain.enums import MealPeriod, PlanStatus
from domain.models import Meal, MealCompletion
from domain.schemas.completion_schemas import CompleteMealRequest, CompletionResponse
from domain.schemas.user_schemas import GamificationResponse
from repositories import CompletionRepository, MealPlanRepository, MealRepository
from services.user_service import UserService

logger = logging.getLogger("calo.completions")

BASE_XP = 10
HIGH_RATING_BONUS_XP = 5
HIGH_RATING = 4

MEAL_PERIODS = {
    "BREAKFAST": MealPeriod.BREAKFAST,
    "LUNCH": MealPeriod.LUNCH,
    "DINNER": MealPeriod.DINNER,
    "SNACK": MealPeriod.SNACK,
    "MORNING_SNACK": MealPeriod.SNACK,
    "AFTERNOON_SNACK": MealPeriod.SNACK,
}

STATS_PERIODS = {"week": 7, "month": 30, "year": 365}


def meal_period_for(meal_type: str) -> str:
    return MEAL_PERIODS.get((meal_type or "").upper(), MealPeriod.OTHER).value


def xp_for_rating(rating: Optional[int]) -> int:
    return BASE_XP + (HIGH_RATING_BONUS_XP if rating is not None and rating >= HIGH_RATING else 0)


class MealCompletionService:
    """Meal completions and the gamification they drive"""

    @staticmethod
    def _save_to_history(db: Session, user_id: UUID, completion: MealCompletion, data: CompleteMealRequest) -> None:
        cost = data.estimated_cost or 0
        if not cost and data.ingredients:
            cost = sum(float(i.get("estimated_cost") or 0) for i in data.ingredients)

        meal = Meal(
            user_id=user_id,
            meal_name=data.meal_name,
            meal_period=meal_period_for(data.meal_type),
            calories=data.calories or 0,
            protein_g=data.protein_g or 0,
            carbs_g=data.carbs_g or 0,
            fats_g=data.fats_g or 0,
            ingredients=data.ingredients or [],
            estimated_cost=cost,
            image_url=data.image_url,
            confidence=100,
            is_mandatory=meal_period_for(data.meal_type) != MealPeriod.SNACK.value,
        )
        db.add(meal)
        db.flush()
        completion.saved_to_history = True
        completion.history_meal_id = meal.meal_id

    @staticmethod
    def complete_meal(db: Session, user_id: UUID, data: CompleteMealRequest) -> Dict[str, Any]:
        """Record a completion and apply history, plan progress and XP updates."""
        user = UserService.get_user(db, user_id)
        now = utcnow()
        meal_type = data.meal_type.strip().upper()

        completion = MealCompletion(
            user_id=user_id,
            menu_id=data.menu_id,
            plan_id=data.plan_id,
            meal_id_ref=data.meal_id_ref,
            meal_name=data.meal_name.strip(),
            meal_type=meal_type,
            day_number=data.day_number or 1,
            completed_date=now,
            calories=data.calories,
            protein_g=data.protein_g,
            carbs_g=data.carbs_g,
            fats_g=data.fats_g,
            rating=data.rating,
            notes=data.notes,
            prep_time_actual=data.prep_time_actual,
            image_url=data.image_url,
            ingredients_json=data.ingredients,
        )
        db.add(completion)
        db.flush()

        # History is best effort; the completion itself must not be lost.
        try:
            with db.begin_nested():
                MealCompletionService._save_to_history(db, user_id, completion, data)
        except Exception as e:
            logger.warning("Could not save completion %s to history: %s", completion.completion_id, e)

        if data.meal_id_ref:
            planned = MealRepository(db).get_for_user(data.meal_id_ref, user_id)
            if planned is not None:
                planned.is_completed = True
                planned.completed_at = now

        if data.plan_id:
            plan = MealPlanRepository(db).get_by_id_and_user(data.plan_id, user_id)
            if plan is not None:
                plan.meals_completed = (plan.meals_completed or 0) + 1
                if plan.total_meals:
                    plan.progress_percentage = min(
                        100.0, round(plan.meals_completed / plan.total_meals * 100, 2)
                    )
                if plan.progress_percentage >= 100:
                    plan.status = PlanStatus.COMPLETED.value

        xp = xp_for_rating(data.rating)
        UserService.award_completion(user, xp, now.date())

        db.commit()
        db.refresh(completion)
        db.refresh(user)
        logger.info(
            "meal_completed user_id=%s type=%s xp=%d streak=%d",
            user_id,
            meal_type,
            xp,
            user.current_streak,
        )
        return {
            "completion": CompletionResponse.model_validate(completion).model_dump(mode="json"),
            "xp_awarded": xp,
            "gamification": GamificationResponse.model_validate(user).model_dump(mode="json"),
        }

    @staticmethod
    def history(
        db: Session,
        user_id: UUID,
        limit: int = 20,
        offset: int = 0,
        meal_type: Optional[str] = None,
        menu_id: Optional[UUID] = None,
        plan_id: Optional[UUID] = None,
    ) -> Dict[str, Any]:
        items, total = CompletionRepository(db).history(
            user_id,
            limit,
            offset,
            meal_type=meal_type.upper() if meal_type else None,
            menu_id=menu_id,
            plan_id=plan_id,
        )
        return {
            "completions": [CompletionResponse.model_validate(c).model_dump(mode="json") for c in items],
            "pagination": {
                "total": total,
                "limit": limit,
                "offset": offset,
                "has_more": offset + len(items) < total,
            },
        }

    @staticmethod
    def stats(db: Session, user_id: UUID, period: str = "week") -> Dict[str, Any]:
        days = STATS_PERIODS.get(period)
        if days is None:
            raise ServiceValidationError(
                "period must be one of: week, month, year", details={"period": period}
            )

        since = utcnow() - timedelta(days=days)
        completions = CompletionRepository(db).list_between(user_id, since)
        ratings = [c.rating for c in completions if c.rating is not None]
        return {
            "period": period,
            "total_completed": len(completions),
            "average_rating": round(sum(ratings) / len(ratings), 1) if ratings else 0,
            "total_calories": round(sum(c.calories or 0 for c in completions)),
            "total_protein": round(sum(c.protein_g or 0 for c in completions), 1),
            "meal_type_breakdown": dict(Counter(c.meal_type for c in completions)),
        }
