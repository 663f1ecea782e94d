from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class CompleteMealRequest(BaseModel):
    meal_name: str = Field(..., min_length=1)
    meal_type: str = Field(..., min_length=1)
    menu_id: Optional[UUID] = None
    plan_id: Optional[UUID] = None
    meal_id_ref: Optional[UUID] = None
    day_number: Optional[int] = Field(default=None, ge=1)
    calories: Optional[float] = None
    protein_g: Optional[float] = None
    carbs_g: Optional[float] = None
    fats_g: Optional[float] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    notes: Optional[str] = None
    prep_time_actual: Optional[int] = None
    image_url: Optional[str] = None
    estimated_cost: Optional[float] = None
    ingredients: Optional[List[Dict[str, Any]]] = None


class CompletionResponse(BaseModel):
    completion_id: UUID
    user_id: UUID
    menu_id: Optional[UUID] = None
    plan_id: Optional[UUID] = None
    meal_id_ref: Optional[UUID] = None
    meal_name: str
    meal_type: str
    day_number: int
    completed_date: datetime
    calories: Optional[float] = None
    protein_g: Optional[float] = None
    carbs_g: Optional[float] = None
    fats_g: Optional[float] = None
    rating: Optional[int] = None
    notes: Optional[str] = None
    skipped: bool = False
    skip_reason: Optional[str] = None
    saved_to_history: bool = False
    history_meal_id: Optional[UUID] = None

    model_config = {"from_attributes": True}


class MealLogCreate(BaseModel):
    meal_name: str = Field(..., min_length=1)
    meal_period: Optional[str] = None
    calories: float = 0
    protein_g: float = 0
    carbs_g: float = 0
    fats_g: float = 0
    ingredients: List[Dict[str, Any]] = Field(default_factory=list)
    estimated_cost: Optional[float] = None
    image_url: Optional[str] = None
    is_mandatory: Optional[bool] = None


class MealLogResponse(BaseModel):
    meal_id: UUID
    user_id: UUID
    meal_name: str
    meal_period: str
    calories: Optional[float] = None
    protein_g: Optional[float] = None
    carbs_g: Optional[float] = None
    fats_g: Optional[float] = None
    estimated_cost: Optional[float] = None
    image_url: Optional[str] = None
    confidence: Optional[int] = None
    is_mandatory: bool
    upload_time: datetime

    model_config = {"from_attributes": True}
