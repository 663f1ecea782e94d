from __future__ import annotations

from datetime import date as date_type, datetime
from typing import Any, Dict
from uuid import UUID

from pydantic import BaseModel


class RecommendationResponse(BaseModel):
    recommendation_id: UUID
    user_id: UUID
    date: date_type
    recommendations: Dict[str, Any]
    priority_level: str
    confidence_score: float
    is_read: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
