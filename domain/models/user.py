"""
User-related database models.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    Float,
    ForeignKey,
    Integer,
    JSON,
    Text,
    DateTime,
    Uuid,
)
from sqlalchemy.orm import relationship
import uuid

from app.clock import utcnow
from domain.models.database import Base


class AppUser(Base):
    """User account with gamification state"""

    __tablename__ = "app_user"

    user_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(Text, unique=True, nullable=False)
    name = Column(Text)
    preferred_lang = Column(Text, default="en", nullable=False)
    timezone = Column(Text)

    # Gamification
    current_xp = Column(Integer, default=0, nullable=False)
    total_points = Column(Integer, default=0, nullable=False)
    level = Column(Integer, default=1, nullable=False)
    current_streak = Column(Integer, default=0, nullable=False)
    best_streak = Column(Integer, default=0, nullable=False)
    last_complete_date = Column(Date)

    # Active plan pointers (plain ids, not foreign keys)
    active_menu_id = Column(Uuid)
    active_meal_plan_id = Column(Uuid)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    questionnaires = relationship(
        "UserQuestionnaire",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="UserQuestionnaire.created_at.desc()",
    )
    menus = relationship(
        "RecommendedMenu", back_populates="user", cascade="all, delete-orphan"
    )
    meals = relationship("Meal", back_populates="user", cascade="all, delete-orphan")
    completions = relationship(
        "MealCompletion", back_populates="user", cascade="all, delete-orphan"
    )
    meal_plans = relationship(
        "UserMealPlan", back_populates="user", cascade="all, delete-orphan"
    )
    devices = relationship(
        "DeviceToken", back_populates="user", cascade="all, delete-orphan"
    )
    notification_preference = relationship(
        "NotificationPreference",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    notifications = relationship(
        "NotificationHistory", back_populates="user", cascade="all, delete-orphan"
    )
    recommendations = relationship(
        "DailyRecommendation", back_populates="user", cascade="all, delete-orphan"
    )


class UserQuestionnaire(Base):
    """Onboarding questionnaire; the newest row is the one in effect"""

    __tablename__ = "user_questionnaire"

    questionnaire_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("app_user.user_id", ondelete="CASCADE"), nullable=False
    )

    # Profile
    age = Column(Integer)
    gender = Column(Text)
    height_cm = Column(Float)
    weight_kg = Column(Float)
    target_weight_kg = Column(Float)
    main_goal = Column(Text)
    physical_activity_level = Column(Text)

    # Eating habits
    meal_structure = Column(Text)
    meals_per_day = Column(Integer)
    dietary_style = Column(Text)
    kosher = Column(Boolean, default=False, nullable=False)
    cooking_preference = Column(Text)
    daily_food_budget = Column(Float)
    allergies = Column(JSON, default=list)

    # Open-text answers, stored as lists of strings
    additional_personal_info = Column(JSON, default=list)
    main_goal_text = Column(JSON, default=list)
    specific_goal = Column(JSON, default=list)
    most_important_outcome = Column(JSON, default=list)
    special_personal_goal = Column(JSON, default=list)
    medications = Column(JSON, default=list)
    health_goals = Column(JSON, default=list)
    functional_issues = Column(JSON, default=list)
    food_related_medical_issues = Column(JSON, default=list)
    disliked_foods = Column(JSON, default=list)
    liked_foods = Column(JSON, default=list)
    dietary_restrictions = Column(JSON, default=list)
    upcoming_events = Column(JSON, default=list)
    personalized_tips = Column(JSON, default=list)
    family_medical_history = Column(JSON, default=list)
    medical_conditions_text = Column(JSON, default=list)
    allergies_text = Column(JSON, default=list)
    additional_activity_info = Column(JSON, default=list)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("AppUser", back_populates="questionnaires")
