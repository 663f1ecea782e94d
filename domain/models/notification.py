"""
Notification models: device registrations, per-user preferences and the
notification log.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    JSON,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship
import uuid

from app.clock import utcnow
from domain.enums import DevicePlatform, NotificationStatus
from domain.models.database import Base


class DeviceToken(Base):
    __tablename__ = "device_token"

    device_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("app_user.user_id", ondelete="CASCADE"), nullable=False, index=True
    )
    token = Column(Text, unique=True, nullable=False)
    platform = Column(SQLEnum(DevicePlatform), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_used_at = Column(DateTime, default=utcnow)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("AppUser", back_populates="devices")


class NotificationPreference(Base):
    """Which notifications a user wants and when"""

    __tablename__ = "notification_preference"

    preference_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid,
        ForeignKey("app_user.user_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    meal_reminders = Column(Boolean, default=True, nullable=False)
    breakfast_reminder_time = Column(Text, default="08:00")
    lunch_reminder_time = Column(Text, default="13:00")
    dinner_reminder_time = Column(Text, default="19:00")
    snack_reminder_time = Column(Text)
    water_reminders = Column(Boolean, default=False, nullable=False)
    water_reminder_interval = Column(Integer, default=120, nullable=False)
    goal_reminders = Column(Boolean, default=True, nullable=False)
    achievement_notifications = Column(Boolean, default=True, nullable=False)
    weekly_reports = Column(Boolean, default=True, nullable=False)
    menu_notifications = Column(Boolean, default=True, nullable=False)
    quiet_hours_enabled = Column(Boolean, default=True, nullable=False)
    quiet_hours_start = Column(Text, default="22:00", nullable=False)
    quiet_hours_end = Column(Text, default="07:00", nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("AppUser", back_populates="notification_preference")


class NotificationHistory(Base):
    __tablename__ = "notification_history"

    notification_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid, ForeignKey("app_user.user_id", ondelete="CASCADE"), nullable=False, index=True
    )
    type = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    body = Column(Text, nullable=False)
    data = Column(JSON)
    status = Column(
        SQLEnum(NotificationStatus), default=NotificationStatus.PENDING, nullable=False
    )
    sent_at = Column(DateTime)
    read_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    user = relationship("AppUser", back_populates="notifications")
