"""
Logged meal history.
"""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, JSON, Text, Uuid
from sqlalchemy.orm import relationship
import uuid

from app.clock import utcnow
from domain.models.database import Base


class Meal(Base):
    """A meal the user actually ate"""

    __tablename__ = "meal"

    meal_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("app_user.user_id", ondelete="CASCADE"), nullable=False, index=True
    )
    meal_name = Column(Text, nullable=False)
    meal_period = Column(Text, default="other", nullable=False)
    calories = Column(Float, default=0)
    protein_g = Column(Float, default=0)
    carbs_g = Column(Float, default=0)
    fats_g = Column(Float, default=0)
    ingredients = Column(JSON, default=list)
    estimated_cost = Column(Float, default=0)
    image_url = Column(Text)
    confidence = Column(Integer)
    is_mandatory = Column(Boolean, default=True, nullable=False)
    upload_time = Column(DateTime, default=utcnow, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("AppUser", back_populates="meals")
