"""Meal completion routes"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from api.responses import success_response
from domain.models import get_db_session
from domain.schemas.completion_schemas import CompleteMealRequest
from services.meal_completion_service import MealCompletionService

router = APIRouter(prefix="/users/{user_id}/completions", tags=["Completions"])


@router.post("", status_code=status.HTTP_201_CREATED)
def complete_meal(user_id: UUID, data: CompleteMealRequest, db: Session = Depends(get_db_session)):
    result = MealCompletionService.complete_meal(db, user_id, data)
    return success_response(result, f"Meal completed! +{result['xp_awarded']} XP")


@router.get("/history")
def completion_history(
    user_id: UUID,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    meal_type: Optional[str] = None,
    menu_id: Optional[UUID] = None,
    plan_id: Optional[UUID] = None,
    db: Session = Depends(get_db_session),
):
    return success_response(
        MealCompletionService.history(db, user_id, limit, offset, meal_type, menu_id, plan_id)
    )


@router.get("/stats")
def completion_stats(user_id: UUID, period: str = "week", db: Session = Depends(get_db_session)):
    return success_response(MealCompletionService.stats(db, user_id, period))
