"""
Notification service: device registry, per-user preferences and the
notification log.

Delivery is not performed here. A notification that passes the preference,
quiet-hours and device checks is recorded with status PENDING.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.clock import hhmm, local_now, utcnow
from app.config import settings
from app.exceptions import NotFoundError, ServiceValidationError
from domain.enums import DevicePlatform, NotificationStatus, NotificationType
from domain.models import DeviceToken, NotificationHistory, NotificationPreference
from domain.schemas.notification_schemas import NotificationResponse, PreferencesUpdate
from repositories import (
    DeviceRepository,
    NotificationHistoryRepository,
    NotificationPreferenceRepository,
)
from services.user_service import UserService

logger = logging.getLogger("calo.notifications")

TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
TIME_FIELDS = (
    "breakfast_reminder_time",
    "lunch_reminder_time",
    "dinner_reminder_time",
    "snack_reminder_time",
    "quiet_hours_start",
    "quiet_hours_end",
)
WATER_INTERVAL_RANGE = (30, 480)
MAX_HISTORY_LIMIT = 100
NULLABLE_PREFERENCES = {"snack_reminder_time"}

# Preference flag that gates each notification type
TYPE_PREFERENCE = {
    NotificationType.MEAL_REMINDER: "meal_reminders",
    NotificationType.WATER_REMINDER: "water_reminders",
    NotificationType.STREAK_REMINDER: "goal_reminders",
    NotificationType.ACHIEVEMENT: "achievement_notifications",
    NotificationType.WEEKLY_REPORT: "weekly_reports",
    NotificationType.MENU_EXPIRING: "menu_notifications",
}


def _minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def is_in_quiet_hours(prefs: NotificationPreference, now_hhmm: str) -> bool:
    """True when `now_hhmm` falls in [start, end); the window may wrap midnight."""
    if not prefs.quiet_hours_enabled:
        return False
    start = _minutes(prefs.quiet_hours_start or "22:00")
    end = _minutes(prefs.quiet_hours_end or "07:00")
    current = _minutes(now_hhmm)
    if start == end:
        return False
    if start < end:
        return start <= current < end
    return current >= start or current < end


class NotificationService:
    """Business logic for devices, preferences and notification history"""

    # ---------------------------------------------------------------- devices

    @staticmethod
    def register_device(
        db: Session, user_id: UUID, token: Optional[str], platform: Optional[str]
    ) -> DeviceToken:
        if not token or not platform:
            raise ServiceValidationError("Token and platform are required")
        try:
            platform_value = DevicePlatform(platform.strip().upper())
        except ValueError:
            raise ServiceValidationError(
                "Platform must be IOS or ANDROID", details={"platform": platform}
            )
        UserService.get_user(db, user_id)

        repo = DeviceRepository(db)
        device = repo.get_by_token(token)
        if device is None:
            device = DeviceToken(user_id=user_id, token=token, platform=platform_value)
            db.add(device)
        else:
            device.user_id = user_id
            device.platform = platform_value
            device.is_active = True
        device.last_used_at = utcnow()
        db.commit()
        db.refresh(device)
        logger.info(f"device_registered user_id={user_id} platform={platform_value.value}")
        return device

    @staticmethod
    def unregister_device(db: Session, user_id: UUID, token: str) -> bool:
        device = DeviceRepository(db).get_by_token(token)
        if device is None or device.user_id != user_id:
            return False
        device.is_active = False
        db.commit()
        logger.info(f"device_unregistered user_id={user_id}")
        return True

    @staticmethod
    def list_devices(db: Session, user_id: UUID) -> List[DeviceToken]:
        return DeviceRepository(db).list_for_user(user_id)

    @staticmethod
    def delete_device(db: Session, user_id: UUID, device_id: UUID) -> None:
        device = DeviceRepository(db).get_by_id(device_id)
        if device is None or device.user_id != user_id:
            raise NotFoundError(f"Device {device_id} not found")
        db.delete(device)
        db.commit()

    # ------------------------------------------------------------ preferences

    @staticmethod
    def get_preferences(db: Session, user_id: UUID) -> NotificationPreference:
        """Return the user's preferences, creating defaults on first read."""
        prefs = NotificationPreferenceRepository(db).get_for_user(user_id)
        if prefs is None:
            UserService.get_user(db, user_id)
            prefs = NotificationPreference(user_id=user_id)
            db.add(prefs)
            db.commit()
            db.refresh(prefs)
        return prefs

    @staticmethod
    def update_preferences(db: Session, user_id: UUID, data: PreferencesUpdate) -> NotificationPreference:
        values = data.model_dump(exclude_unset=True)

        invalid = {
            name: values[name]
            for name in TIME_FIELDS
            if values.get(name) is not None and not TIME_RE.match(values[name])
        }
        if invalid:
            raise ServiceValidationError("Time values must use HH:MM format", details=invalid)

        interval = values.get("water_reminder_interval")
        low, high = WATER_INTERVAL_RANGE
        if interval is not None and not low <= interval <= high:
            raise ServiceValidationError(
                f"water_reminder_interval must be between {low} and {high} minutes",
                details={"water_reminder_interval": interval},
            )

        prefs = NotificationService.get_preferences(db, user_id)
        for key, value in values.items():
            if value is None and key not in NULLABLE_PREFERENCES:
                continue
            setattr(prefs, key, value)
        db.commit()
        db.refresh(prefs)
        return prefs

    # ---------------------------------------------------------------- history

    @staticmethod
    def history(
        db: Session,
        user_id: UUID,
        limit: int = 20,
        offset: int = 0,
        type_: Optional[str] = None,
        unread_only: bool = False,
    ) -> Dict[str, Any]:
        limit = max(1, min(limit, MAX_HISTORY_LIMIT))
        items, total = NotificationHistoryRepository(db).list_for_user(
            user_id, limit, offset, type_=type_, unread_only=unread_only
        )
        return {
            "notifications": [
                NotificationResponse.model_validate(n).model_dump(mode="json") for n in items
            ],
            "pagination": {
                "total": total,
                "limit": limit,
                "offset": offset,
                "has_more": offset + len(items) < total,
            },
        }

    @staticmethod
    def unread_count(db: Session, user_id: UUID) -> int:
        return NotificationHistoryRepository(db).count_unread(user_id)

    @staticmethod
    def mark_read(db: Session, user_id: UUID, notification_id: UUID) -> NotificationHistory:
        notification = NotificationHistoryRepository(db).get_for_user(notification_id, user_id)
        if notification is None:
            raise NotFoundError(f"Notification {notification_id} not found")
        notification.status = NotificationStatus.READ
        notification.read_at = notification.read_at or utcnow()
        db.commit()
        db.refresh(notification)
        return notification

    @staticmethod
    def mark_all_read(db: Session, user_id: UUID) -> int:
        unread = NotificationHistoryRepository(db).list_unread(user_id)
        now = utcnow()
        for notification in unread:
            notification.status = NotificationStatus.READ
            notification.read_at = now
        db.commit()
        return len(unread)

    # ---------------------------------------------------------------- sending

    @staticmethod
    def send_to_user(
        db: Session,
        user_id: UUID,
        type_: NotificationType,
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
        now_hhmm: Optional[str] = None,
    ) -> bool:
        """Record a notification for the user when their settings allow it.

        Returns False without recording when the type is disabled, the
        current local time is inside quiet hours, or the user has no
        active device.
        """
        prefs = NotificationPreferenceRepository(db).get_for_user(user_id)
        if prefs is not None:
            flag = TYPE_PREFERENCE.get(type_)
            if flag and not getattr(prefs, flag):
                logger.debug(f"notification_disabled user_id={user_id} type={type_.value}")
                return False
            if now_hhmm is None:
                user = prefs.user
                now_hhmm = hhmm(local_now(user.timezone if user else None, settings.default_timezone))
            if is_in_quiet_hours(prefs, now_hhmm):
                logger.info(f"notification_quiet_hours user_id={user_id} type={type_.value}")
                return False

        if not DeviceRepository(db).list_for_user(user_id, active_only=True):
            logger.info(f"notification_no_devices user_id={user_id} type={type_.value}")
            return False

        db.add(
            NotificationHistory(
                user_id=user_id,
                type=type_.value,
                title=title,
                body=body,
                data=data or {},
                status=NotificationStatus.PENDING,
            )
        )
        db.commit()
        logger.info(f"notification_recorded user_id={user_id} type={type_.value}")
        return True
