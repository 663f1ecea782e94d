from datetime import timedelta
from typing import Any, Dict
from uuid import UUID

from sqlalchemy.orm import Session

from app.clock import start_of_day
from repositories import MealLogRepository
from services.questionnaire_service import QuestionnaireService


class MealTrackingService:
    """Daily mandatory-meal allowance derived from the questionnaire"""

    @staticmethod
    def get_meals_remaining(db: Session, user_id: UUID) -> Dict[str, Any]:
        limit = QuestionnaireService.get_meals_per_day(db, user_id)
        today = start_of_day()
        used = MealLogRepository(db).count_mandatory_between(
            user_id, today, today + timedelta(days=1)
        )
        remaining = max(0, limit - used)
        return {
            "limit": limit,
            "used": used,
            "remaining": remaining,
            "can_log_mandatory": remaining > 0,
        }
