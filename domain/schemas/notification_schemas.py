from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel

from domain.enums import DevicePlatform, NotificationStatus


class DeviceRegisterRequest(BaseModel):
    token: Optional[str] = None
    platform: Optional[str] = None


class DeviceUnregisterRequest(BaseModel):
    token: str


class DeviceResponse(BaseModel):
    device_id: UUID
    token: str
    platform: DevicePlatform
    is_active: bool
    last_used_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class PreferencesUpdate(BaseModel):
    """Partial update; time fields are validated by the service as HH:MM"""

    meal_reminders: Optional[bool] = None
    breakfast_reminder_time: Optional[str] = None
    lunch_reminder_time: Optional[str] = None
    dinner_reminder_time: Optional[str] = None
    snack_reminder_time: Optional[str] = None
    water_reminders: Optional[bool] = None
    water_reminder_interval: Optional[int] = None
    goal_reminders: Optional[bool] = None
    achievement_notifications: Optional[bool] = None
    weekly_reports: Optional[bool] = None
    menu_notifications: Optional[bool] = None
    quiet_hours_enabled: Optional[bool] = None
    quiet_hours_start: Optional[str] = None
    quiet_hours_end: Optional[str] = None


class PreferencesResponse(BaseModel):
    meal_reminders: bool
    breakfast_reminder_time: Optional[str] = None
    lunch_reminder_time: Optional[str] = None
    dinner_reminder_time: Optional[str] = None
    snack_reminder_time: Optional[str] = None
    water_reminders: bool
    water_reminder_interval: int
    goal_reminders: bool
    achievement_notifications: bool
    weekly_reports: bool
    menu_notifications: bool
    quiet_hours_enabled: bool
    quiet_hours_start: str
    quiet_hours_end: str

    model_config = {"from_attributes": True}


class NotificationResponse(BaseModel):
    notification_id: UUID
    type: str
    title: str
    body: str
    data: Optional[Dict[str, Any]] = None
    status: NotificationStatus
    sent_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}
