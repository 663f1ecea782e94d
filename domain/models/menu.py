"""
Recommended menu models: menus, their meals and ingredients, and the
per-user tracking rows attached to them.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship
import uuid

from app.clock import utcnow
from domain.models.database import Base


class RecommendedMenu(Base):
    """Multi-day AI generated menu"""

    __tablename__ = "recommended_menu"

    menu_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("app_user.user_id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(Text, nullable=False)
    description = Column(Text)
    total_calories = Column(Float, default=0, nullable=False)
    total_protein = Column(Float, default=0, nullable=False)
    total_carbs = Column(Float, default=0, nullable=False)
    total_fat = Column(Float, default=0, nullable=False)
    days_count = Column(Integer, default=7, nullable=False)
    dietary_category = Column(Text)
    estimated_cost = Column(Float, default=0)
    prep_time_minutes = Column(Integer)
    difficulty_level = Column(Integer, default=2)
    is_active = Column(Boolean, default=False, nullable=False)
    start_date = Column(DateTime)
    end_date = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("AppUser", back_populates="menus")
    meals = relationship(
        "RecommendedMeal",
        back_populates="menu",
        cascade="all, delete-orphan",
        order_by="RecommendedMeal.day_number",
    )
    reviews = relationship(
        "MenuReview", back_populates="menu", cascade="all, delete-orphan"
    )


class RecommendedMeal(Base):
    """Single meal slot of a menu day"""

    __tablename__ = "recommended_meal"

    meal_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    menu_id = Column(
        Uuid,
        ForeignKey("recommended_menu.menu_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(Text, nullable=False)
    meal_type = Column(Text, nullable=False)
    day_number = Column(Integer, default=1, nullable=False)
    calories = Column(Float, default=0, nullable=False)
    protein = Column(Float, default=0, nullable=False)
    carbs = Column(Float, default=0, nullable=False)
    fat = Column(Float, default=0, nullable=False)
    prep_time_minutes = Column(Integer)
    cooking_method = Column(Text)
    instructions = Column(Text)
    image_url = Column(Text)
    language = Column(Text, default="english")
    dietary_tags = Column(JSON, default=list)
    is_completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    menu = relationship("RecommendedMenu", back_populates="meals")
    ingredients = relationship(
        "RecommendedIngredient", back_populates="meal", cascade="all, delete-orphan"
    )


class RecommendedIngredient(Base):
    """Ingredient line of a recommended meal"""

    __tablename__ = "recommended_ingredient"

    ingredient_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    meal_id = Column(
        Uuid,
        ForeignKey("recommended_meal.meal_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(Text, nullable=False)
    quantity = Column(Float, default=1)
    unit = Column(Text, default="piece")
    category = Column(Text, default="Other")
    estimated_cost = Column(Float, default=0)

    meal = relationship("RecommendedMeal", back_populates="ingredients")
    checks = relationship(
        "IngredientCheck", back_populates="ingredient", cascade="all, delete-orphan"
    )


class MealCompletion(Base):
    """A planned meal the user ate (or explicitly skipped)"""

    __tablename__ = "meal_completion"

    completion_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("app_user.user_id", ondelete="CASCADE"), nullable=False, index=True
    )
    menu_id = Column(Uuid, index=True)
    plan_id = Column(Uuid)
    meal_id_ref = Column(Uuid)
    meal_name = Column(Text, nullable=False)
    meal_type = Column(Text, nullable=False)
    day_number = Column(Integer, default=1, nullable=False)
    completed_date = Column(DateTime, default=utcnow, nullable=False, index=True)
    calories = Column(Float)
    protein_g = Column(Float)
    carbs_g = Column(Float)
    fats_g = Column(Float)
    rating = Column(Integer)
    notes = Column(Text)
    prep_time_actual = Column(Integer)
    image_url = Column(Text)
    ingredients_json = Column(JSON)
    skipped = Column(Boolean, default=False, nullable=False)
    skip_reason = Column(Text)
    saved_to_history = Column(Boolean, default=False, nullable=False)
    history_meal_id = Column(Uuid)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("AppUser", back_populates="completions")


class IngredientCheck(Base):
    """Shopping tick for an ingredient of a menu meal"""

    __tablename__ = "ingredient_check"

    check_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("app_user.user_id", ondelete="CASCADE"), nullable=False
    )
    ingredient_id = Column(
        Uuid,
        ForeignKey("recommended_ingredient.ingredient_id", ondelete="CASCADE"),
        nullable=False,
    )
    meal_id = Column(Uuid, nullable=False)
    checked = Column(Boolean, default=False, nullable=False)
    checked_at = Column(DateTime)

    ingredient = relationship("RecommendedIngredient", back_populates="checks")


class MenuReview(Base):
    """Review left when a user finishes or abandons a menu"""

    __tablename__ = "menu_review"

    review_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    menu_id = Column(
        Uuid,
        ForeignKey("recommended_menu.menu_id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id = Column(
        Uuid, ForeignKey("app_user.user_id", ondelete="CASCADE"), nullable=False
    )
    review_type = Column(Text, nullable=False)
    rating = Column(Integer, nullable=False)
    feedback = Column(Text)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    menu = relationship("RecommendedMenu", back_populates="reviews")


class UserMealPreference(Base):
    """Favorite / feedback flag a user attached to a menu meal"""

    __tablename__ = "user_meal_preference"

    preference_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("app_user.user_id", ondelete="CASCADE"), nullable=False
    )
    template_id = Column(Uuid, nullable=False)
    preference_type = Column(Text, nullable=False)
    rating = Column(Integer)
    notes = Column(Text)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
