"""
Recommendation Repository - Data access for daily AI recommendations
"""

from datetime import date
from typing import List, Optional
from uuid import UUID
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.models import DailyRecommendation


class RecommendationRepository(BaseRepository[DailyRecommendation]):
    id_field = "recommendation_id"

    def __init__(self, db: Session):
        super().__init__(db, DailyRecommendation)

    def get_for_day(self, user_id: UUID, day: date) -> Optional[DailyRecommendation]:
        return (
            self.db.query(DailyRecommendation)
            .filter(DailyRecommendation.user_id == user_id, DailyRecommendation.date == day)
            .first()
        )

    def get_for_user(self, recommendation_id: UUID, user_id: UUID) -> Optional[DailyRecommendation]:
        return (
            self.db.query(DailyRecommendation)
            .filter(
                DailyRecommendation.recommendation_id == recommendation_id,
                DailyRecommendation.user_id == user_id,
            )
            .first()
        )

    def list_for_user(self, user_id: UUID, limit: int) -> List[DailyRecommendation]:
        """Most recent days first"""
        return (
            self.db.query(DailyRecommendation)
            .filter(DailyRecommendation.user_id == user_id)
            .order_by(DailyRecommendation.date.desc())
            .limit(limit)
            .all()
        )
