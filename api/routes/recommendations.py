"""Daily AI recommendation routes"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from uuid import UUID

from api.responses import success_response
from domain.models import get_db_session
from domain.schemas.recommendation_schemas import RecommendationResponse
from services.recommendation_service import RecommendationService

router = APIRouter(prefix="/users/{user_id}/recommendations", tags=["Recommendations"])


@router.get("")
def list_recommendations(
    user_id: UUID,
    limit: int = Query(7, ge=1, le=30),
    db: Session = Depends(get_db_session),
):
    items = RecommendationService.list_recommendations(db, user_id, limit)
    return success_response([RecommendationResponse.model_validate(r) for r in items])


@router.post("/generate", status_code=status.HTTP_201_CREATED)
def generate_recommendation(user_id: UUID, db: Session = Depends(get_db_session)):
    recommendation = RecommendationService.generate_for_user(db, user_id)
    return success_response(
        RecommendationResponse.model_validate(recommendation), "Recommendations generated"
    )


@router.post("/{recommendation_id}/read")
def mark_recommendation_read(user_id: UUID, recommendation_id: UUID, db: Session = Depends(get_db_session)):
    recommendation = RecommendationService.mark_read(db, user_id, recommendation_id)
    return success_response(RecommendationResponse.model_validate(recommendation))
