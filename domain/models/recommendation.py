"""
Daily AI recommendation model.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    JSON,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
import uuid

from app.clock import utcnow
from domain.models.database import Base


class DailyRecommendation(Base):
    """Nutrition tips generated for a user, at most one row per day"""

    __tablename__ = "daily_recommendation"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_recommendation_user_date"),
    )

    recommendation_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("app_user.user_id", ondelete="CASCADE"), nullable=False, index=True
    )
    date = Column(Date, nullable=False)
    recommendations = Column(JSON, nullable=False)
    priority_level = Column(Text, default="medium", nullable=False)
    confidence_score = Column(Float, default=0.75, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("AppUser", back_populates="recommendations")
