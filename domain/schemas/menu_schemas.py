from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class IngredientIn(BaseModel):
    name: str = Field(..., min_length=1)
    quantity: float = 1
    unit: str = "piece"
    category: str = "Other"
    estimated_cost: float = 0


class IngredientResponse(BaseModel):
    ingredient_id: UUID
    name: str
    quantity: Optional[float] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    estimated_cost: Optional[float] = None

    model_config = {"from_attributes": True}


class MealResponse(BaseModel):
    meal_id: UUID
    menu_id: UUID
    name: str
    meal_type: str
    day_number: int
    calories: float
    protein: float
    carbs: float
    fat: float
    prep_time_minutes: Optional[int] = None
    cooking_method: Optional[str] = None
    instructions: Optional[str] = None
    image_url: Optional[str] = None
    language: Optional[str] = None
    dietary_tags: List[str] = Field(default_factory=list)
    is_completed: bool = False
    ingredients: List[IngredientResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class MenuResponse(BaseModel):
    menu_id: UUID
    user_id: UUID
    title: str
    description: Optional[str] = None
    total_calories: float
    total_protein: float
    total_carbs: float
    total_fat: float
    days_count: int
    dietary_category: Optional[str] = None
    estimated_cost: Optional[float] = None
    prep_time_minutes: Optional[int] = None
    difficulty_level: Optional[int] = None
    is_active: bool
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: datetime
    meals: List[MealResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class GenerateMenuRequest(BaseModel):
    days: int = 7
    meal_count: Optional[int] = Field(default=None, ge=1, le=3)
    cuisine: Optional[str] = None
    dietary_restrictions: List[str] = Field(default_factory=list)
    cooking_difficulty: Optional[str] = None
    budget_range: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)
    custom_name: Optional[str] = None

    @field_validator("days", mode="before")
    @classmethod
    def clamp_days(cls, v):
        """Out-of-range durations are clamped rather than rejected"""
        try:
            days = int(v)
        except (TypeError, ValueError):
            return 7
        return max(1, min(days, 30))


class MenuUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    dietary_category: Optional[str] = None


class MealCreate(BaseModel):
    name: str = Field(..., min_length=1)
    meal_type: str = Field(..., min_length=1)
    day_number: int = Field(default=1, ge=1)
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    prep_time_minutes: Optional[int] = None
    cooking_method: Optional[str] = None
    instructions: Optional[str] = None
    dietary_tags: List[str] = Field(default_factory=list)
    ingredients: List[IngredientIn] = Field(default_factory=list)


class MealUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    meal_type: Optional[str] = None
    calories: Optional[float] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None
    prep_time_minutes: Optional[int] = None
    cooking_method: Optional[str] = None
    instructions: Optional[str] = None
    dietary_tags: Optional[List[str]] = None
    ingredients: Optional[List[IngredientIn]] = None


class SkipMealRequest(BaseModel):
    day_number: int = Field(..., ge=1)
    meal_type: str = Field(..., min_length=1)
    reason: Optional[str] = None


class IngredientCheckRequest(BaseModel):
    ingredient_id: UUID
    meal_id: Optional[UUID] = None
    checked: bool = True


class MenuReviewRequest(BaseModel):
    review_type: str = Field(..., pattern="^(completed|failed)$")
    rating: int = Field(..., ge=1, le=5)
    feedback: Optional[str] = None


class FavoriteRequest(BaseModel):
    is_favorite: bool = True


class FeedbackRequest(BaseModel):
    liked: bool
