"""Logged meal routes"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from uuid import UUID

from api.responses import success_response
from domain.models import get_db_session
from domain.schemas.completion_schemas import MealLogCreate, MealLogResponse
from services.meal_service import MealService
from services.meal_tracking_service import MealTrackingService

router = APIRouter(prefix="/users/{user_id}/meals", tags=["Meals"])


@router.get("")
def list_meals(
    user_id: UUID,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db_session),
):
    meals = MealService.list_meals(db, user_id, limit, offset)
    return success_response([MealLogResponse.model_validate(m) for m in meals])


@router.post("", status_code=status.HTTP_201_CREATED)
def log_meal(user_id: UUID, data: MealLogCreate, db: Session = Depends(get_db_session)):
    meal = MealService.log_meal(db, user_id, data)
    return success_response(MealLogResponse.model_validate(meal), "Meal logged")


@router.get("/remaining")
def meals_remaining(user_id: UUID, db: Session = Depends(get_db_session)):
    return success_response(MealTrackingService.get_meals_remaining(db, user_id))


@router.delete("/{meal_id}")
def delete_meal(user_id: UUID, meal_id: UUID, db: Session = Depends(get_db_session)):
    MealService.delete_meal(db, user_id, meal_id)
    return success_response({"deleted": str(meal_id)}, "Meal deleted")
