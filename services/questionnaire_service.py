from typing import Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from domain.models import UserQuestionnaire
from domain.schemas.user_schemas import QuestionnaireUpsert
from repositories import QuestionnaireRepository, UserRepository
from services.questionnaire_validation import OPEN_TEXT_FIELDS
from app.exceptions import NotFoundError

logger = logging.getLogger("calo.questionnaire")

DEFAULT_MEALS_PER_DAY = 3

MEAL_STRUCTURE_COUNTS = {
    "2_main": 2,
    "3_main": 3,
    "3_plus_2_snacks": 5,
    "2_plus_1_intermediate": 3,
}


def meals_per_day(questionnaire: Optional[UserQuestionnaire]) -> int:
    """Number of daily meals a questionnaire asks for (3 when unknown)."""
    if questionnaire is None:
        return DEFAULT_MEALS_PER_DAY
    if questionnaire.meals_per_day:
        return questionnaire.meals_per_day
    return MEAL_STRUCTURE_COUNTS.get(questionnaire.meal_structure or "", DEFAULT_MEALS_PER_DAY)


class QuestionnaireService:
    """Business logic for the onboarding questionnaire"""

    @staticmethod
    def save_questionnaire(db: Session, user_id: UUID, data: QuestionnaireUpsert) -> UserQuestionnaire:
        """Create or update the user's questionnaire.

        Open-text answers given as a plain string are stored as a one-item list.
        Validation of those answers is scheduled by the caller.
        """
        if not UserRepository(db).exists(user_id):
            raise NotFoundError(f"User {user_id} not found")

        values = data.model_dump()
        for field_name in OPEN_TEXT_FIELDS:
            raw = values.get(field_name)
            if isinstance(raw, str):
                values[field_name] = [raw] if raw.strip() else []

        repo = QuestionnaireRepository(db)
        questionnaire = repo.get_latest(user_id)
        if questionnaire is None:
            questionnaire = UserQuestionnaire(user_id=user_id, **values)
            db.add(questionnaire)
            logger.info(f"questionnaire_created user_id={user_id}")
        else:
            for key, value in values.items():
                setattr(questionnaire, key, value)
            logger.info(f"questionnaire_updated user_id={user_id}")

        db.commit()
        db.refresh(questionnaire)
        return questionnaire

    @staticmethod
    def get_questionnaire(db: Session, user_id: UUID) -> UserQuestionnaire:
        questionnaire = QuestionnaireRepository(db).get_latest(user_id)
        if questionnaire is None:
            raise NotFoundError(f"No questionnaire found for user {user_id}")
        return questionnaire

    @staticmethod
    def get_meals_per_day(db: Session, user_id: UUID) -> int:
        return meals_per_day(QuestionnaireRepository(db).get_latest(user_id))
