from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    email: str = Field(..., min_length=3)
    name: Optional[str] = None
    preferred_lang: str = "en"
    timezone: Optional[str] = None


class GamificationResponse(BaseModel):
    current_xp: int
    total_points: int
    level: int
    current_streak: int
    best_streak: int
    last_complete_date: Optional[date] = None

    model_config = {"from_attributes": True}


class UserResponse(BaseModel):
    user_id: UUID
    email: str
    name: Optional[str] = None
    preferred_lang: str
    timezone: Optional[str] = None
    current_xp: int
    total_points: int
    level: int
    current_streak: int
    best_streak: int
    active_menu_id: Optional[UUID] = None
    active_meal_plan_id: Optional[UUID] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class QuestionnaireUpsert(BaseModel):
    """Onboarding answers; open-text answers accept a string or a list of strings"""

    age: Optional[int] = Field(default=None, ge=1, le=120)
    gender: Optional[str] = None
    height_cm: Optional[float] = Field(default=None, gt=0)
    weight_kg: Optional[float] = Field(default=None, gt=0)
    target_weight_kg: Optional[float] = Field(default=None, gt=0)
    main_goal: Optional[str] = None
    physical_activity_level: Optional[str] = None
    meal_structure: Optional[str] = None
    meals_per_day: Optional[int] = Field(default=None, ge=1, le=8)
    dietary_style: Optional[str] = None
    kosher: bool = False
    cooking_preference: Optional[str] = None
    daily_food_budget: Optional[float] = Field(default=None, ge=0)
    allergies: List[str] = Field(default_factory=list)

    additional_personal_info: List[str] | str = Field(default_factory=list)
    main_goal_text: List[str] | str = Field(default_factory=list)
    specific_goal: List[str] | str = Field(default_factory=list)
    most_important_outcome: List[str] | str = Field(default_factory=list)
    special_personal_goal: List[str] | str = Field(default_factory=list)
    medications: List[str] | str = Field(default_factory=list)
    health_goals: List[str] | str = Field(default_factory=list)
    functional_issues: List[str] | str = Field(default_factory=list)
    food_related_medical_issues: List[str] | str = Field(default_factory=list)
    disliked_foods: List[str] | str = Field(default_factory=list)
    liked_foods: List[str] | str = Field(default_factory=list)
    dietary_restrictions: List[str] | str = Field(default_factory=list)
    upcoming_events: List[str] | str = Field(default_factory=list)
    personalized_tips: List[str] | str = Field(default_factory=list)
    family_medical_history: List[str] | str = Field(default_factory=list)
    medical_conditions_text: List[str] | str = Field(default_factory=list)
    allergies_text: List[str] | str = Field(default_factory=list)
    additional_activity_info: List[str] | str = Field(default_factory=list)


class QuestionnaireResponse(BaseModel):
    questionnaire_id: UUID
    user_id: UUID
    age: Optional[int] = None
    gender: Optional[str] = None
    height_cm: Optional[float] = None
    weight_kg: Optional[float] = None
    target_weight_kg: Optional[float] = None
    main_goal: Optional[str] = None
    physical_activity_level: Optional[str] = None
    meal_structure: Optional[str] = None
    meals_per_day: Optional[int] = None
    dietary_style: Optional[str] = None
    kosher: bool = False
    cooking_preference: Optional[str] = None
    daily_food_budget: Optional[float] = None
    allergies: List[str] = Field(default_factory=list)
    dietary_restrictions: List[str] = Field(default_factory=list)
    disliked_foods: List[str] = Field(default_factory=list)
    liked_foods: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
