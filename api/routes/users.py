"""User, gamification and questionnaire routes"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session
import logging
from uuid import UUID

from api.responses import success_response
from app.exceptions import NotFoundError
from domain.models import get_db_session
from domain.schemas.user_schemas import (
    GamificationResponse,
    QuestionnaireResponse,
    QuestionnaireUpsert,
    UserCreate,
    UserResponse,
)
from services.questionnaire_service import QuestionnaireService
from services.questionnaire_validation import run_validation_job, validate_questionnaire
from services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])
logger = logging.getLogger("calo.api.users")


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(user: UserCreate, db: Session = Depends(get_db_session)):
    """Create a new user from JSON body"""
    new_user = UserService.create_user(db, user)
    return success_response(UserResponse.model_validate(new_user), "User created")


@router.get("")
def get_all_users(db: Session = Depends(get_db_session)):
    users = UserService.get_all_users(db)
    return success_response([UserResponse.model_validate(u) for u in users])


@router.get("/{user_id}")
def get_user(user_id: UUID, db: Session = Depends(get_db_session)):
    user = UserService.get_user(db, user_id)
    return success_response(UserResponse.model_validate(user))


@router.delete("/{user_id}")
def delete_user(user_id: UUID, db: Session = Depends(get_db_session)):
    """Delete a user and all their related data."""
    if not UserService.delete_user(db, user_id):
        raise NotFoundError(f"User {user_id} not found")
    return success_response({"deleted": str(user_id)}, "User deleted")


@router.get("/{user_id}/gamification")
def get_gamification(user_id: UUID, db: Session = Depends(get_db_session)):
    user = UserService.get_user(db, user_id)
    return success_response(GamificationResponse.model_validate(user))


@router.put("/{user_id}/questionnaire")
def save_questionnaire(
    user_id: UUID,
    data: QuestionnaireUpsert,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db_session),
):
    """Save answers now; open-text answers are checked in the background."""
    questionnaire = QuestionnaireService.save_questionnaire(db, user_id, data)
    background_tasks.add_task(run_validation_job, user_id)
    return success_response(
        QuestionnaireResponse.model_validate(questionnaire), "Questionnaire saved"
    )


@router.get("/{user_id}/questionnaire")
def get_questionnaire(user_id: UUID, db: Session = Depends(get_db_session)):
    questionnaire = QuestionnaireService.get_questionnaire(db, user_id)
    return success_response(QuestionnaireResponse.model_validate(questionnaire))


@router.post("/{user_id}/questionnaire/validate")
def validate_user_questionnaire(user_id: UUID, db: Session = Depends(get_db_session)):
    """Run open-text validation immediately and report per-field results."""
    QuestionnaireService.get_questionnaire(db, user_id)
    results = validate_questionnaire(db, user_id)
    return success_response(
        {
            "results": [r.to_dict() for r in results],
            "invalid_fields": [r.field_name for r in results if not r.is_valid],
        }
    )
