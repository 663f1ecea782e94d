"""
Meal plan progress models.
"""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, Text, Uuid
from sqlalchemy.orm import relationship
import uuid

from app.clock import utcnow
from domain.models.database import Base


class UserMealPlan(Base):
    """Long-running meal plan whose progress advances with each completion"""

    __tablename__ = "user_meal_plan"

    plan_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("app_user.user_id", ondelete="CASCADE"), nullable=False
    )
    name = Column(Text, nullable=False)
    total_meals = Column(Integer, default=0, nullable=False)
    meals_completed = Column(Integer, default=0, nullable=False)
    progress_percentage = Column(Float, default=0, nullable=False)
    status = Column(Text, default="active", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    start_date = Column(DateTime)
    end_date = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("AppUser", back_populates="meal_plans")
