"""
Notification service tests: quiet hours, preferences, devices and the
recorded notification log.
"""

import uuid
from types import SimpleNamespace

import pytest

from test_fixtures import create_user
from app.exceptions import NotFoundError, ServiceValidationError
from domain.enums import DevicePlatform, NotificationStatus, NotificationType
from domain.schemas.notification_schemas import PreferencesUpdate
from services.notification_service import NotificationService, is_in_quiet_hours


def _prefs(enabled=True, start="22:00", end="07:00"):
    return SimpleNamespace(quiet_hours_enabled=enabled, quiet_hours_start=start, quiet_hours_end=end)


def _send(db, user, type_=NotificationType.MEAL_REMINDER, now_hhmm="12:00"):
    return NotificationService.send_to_user(
        db, user.user_id, type_, "Lunch time", "Your lunch is waiting", now_hhmm=now_hhmm
    )


# =============================================================================
# QUIET HOURS
# =============================================================================


def test_quiet_hours_wrap_midnight():
    prefs = _prefs()
    assert is_in_quiet_hours(prefs, "23:30") is True
    assert is_in_quiet_hours(prefs, "22:00") is True
    assert is_in_quiet_hours(prefs, "06:59") is True
    assert is_in_quiet_hours(prefs, "07:00") is False
    assert is_in_quiet_hours(prefs, "12:00") is False


def test_quiet_hours_same_day_window():
    prefs = _prefs(start="13:00", end="15:00")
    assert is_in_quiet_hours(prefs, "14:00") is True
    assert is_in_quiet_hours(prefs, "15:00") is False


def test_quiet_hours_disabled_or_empty():
    assert is_in_quiet_hours(_prefs(enabled=False), "23:30") is False
    assert is_in_quiet_hours(_prefs(start="10:00", end="10:00"), "10:00") is False


# =============================================================================
# PREFERENCES
# =============================================================================


def test_preferences_defaults_created_on_first_read(db_session):
    user = create_user(db_session)
    prefs = NotificationService.get_preferences(db_session, user.user_id)
    assert prefs.meal_reminders is True
    assert prefs.breakfast_reminder_time == "08:00"
    assert prefs.quiet_hours_start == "22:00"
    assert NotificationService.get_preferences(db_session, user.user_id).preference_id == prefs.preference_id


def test_update_preferences(db_session):
    user = create_user(db_session)
    NotificationService.update_preferences(
        db_session, user.user_id, PreferencesUpdate(snack_reminder_time="16:30")
    )
    prefs = NotificationService.update_preferences(
        db_session,
        user.user_id,
        PreferencesUpdate(lunch_reminder_time="12:15", weekly_reports=False, snack_reminder_time=None),
    )
    assert prefs.lunch_reminder_time == "12:15"
    assert prefs.weekly_reports is False
    assert prefs.snack_reminder_time is None
    assert prefs.dinner_reminder_time == "19:00"


def test_update_preferences_rejects_bad_time(db_session):
    user = create_user(db_session)
    with pytest.raises(ServiceValidationError) as exc:
        NotificationService.update_preferences(
            db_session, user.user_id, PreferencesUpdate(breakfast_reminder_time="25:00")
        )
    assert exc.value.details == {"breakfast_reminder_time": "25:00"}


def test_update_preferences_rejects_water_interval(db_session):
    user = create_user(db_session)
    with pytest.raises(ServiceValidationError):
        NotificationService.update_preferences(
            db_session, user.user_id, PreferencesUpdate(water_reminder_interval=10)
        )


# =============================================================================
# DEVICES
# =============================================================================


def test_register_device_normalizes_platform(db_session):
    user = create_user(db_session)
    device = NotificationService.register_device(db_session, user.user_id, "fcm-1", "android")
    assert device.platform == DevicePlatform.ANDROID
    assert device.is_active is True


def test_register_device_validation(db_session):
    user = create_user(db_session)
    with pytest.raises(ServiceValidationError, match="Token and platform are required"):
        NotificationService.register_device(db_session, user.user_id, "", "IOS")
    with pytest.raises(ServiceValidationError, match="Platform must be IOS or ANDROID"):
        NotificationService.register_device(db_session, user.user_id, "fcm-1", "web")


def test_existing_token_moves_to_new_user(db_session):
    first = create_user(db_session)
    second = create_user(db_session)
    device = NotificationService.register_device(db_session, first.user_id, "shared-token", "IOS")
    NotificationService.unregister_device(db_session, first.user_id, "shared-token")

    moved = NotificationService.register_device(db_session, second.user_id, "shared-token", "IOS")

    assert moved.device_id == device.device_id
    assert moved.user_id == second.user_id
    assert moved.is_active is True
    assert NotificationService.list_devices(db_session, first.user_id) == []


def test_unregister_requires_owner(db_session):
    owner = create_user(db_session)
    other = create_user(db_session)
    NotificationService.register_device(db_session, owner.user_id, "fcm-2", "IOS")
    assert NotificationService.unregister_device(db_session, other.user_id, "fcm-2") is False
    assert NotificationService.unregister_device(db_session, owner.user_id, "missing") is False
    assert NotificationService.unregister_device(db_session, owner.user_id, "fcm-2") is True


def test_delete_device(db_session):
    user = create_user(db_session)
    device = NotificationService.register_device(db_session, user.user_id, "fcm-3", "IOS")
    NotificationService.delete_device(db_session, user.user_id, device.device_id)
    with pytest.raises(NotFoundError):
        NotificationService.delete_device(db_session, user.user_id, device.device_id)


# =============================================================================
# SENDING AND HISTORY
# =============================================================================


def test_send_without_devices_records_nothing(db_session):
    user = create_user(db_session)
    assert _send(db_session, user) is False
    assert NotificationService.unread_count(db_session, user.user_id) == 0


def test_send_records_pending_notification(db_session):
    user = create_user(db_session)
    NotificationService.register_device(db_session, user.user_id, "fcm-4", "ANDROID")

    assert _send(db_session, user) is True

    history = NotificationService.history(db_session, user.user_id)
    assert history["pagination"]["total"] == 1
    notification = history["notifications"][0]
    assert notification["type"] == "MEAL_REMINDER"
    assert notification["status"] == NotificationStatus.PENDING.value


def test_send_respects_disabled_type_and_quiet_hours(db_session):
    user = create_user(db_session)
    NotificationService.register_device(db_session, user.user_id, "fcm-5", "IOS")
    NotificationService.update_preferences(db_session, user.user_id, PreferencesUpdate(goal_reminders=False))

    assert _send(db_session, user, NotificationType.STREAK_REMINDER) is False
    assert _send(db_session, user, now_hhmm="23:15") is False
    assert _send(db_session, user, NotificationType.SYSTEM, now_hhmm="12:00") is True


def test_mark_read_and_read_all(db_session):
    user = create_user(db_session)
    NotificationService.register_device(db_session, user.user_id, "fcm-6", "IOS")
    for _ in range(3):
        _send(db_session, user)
    assert NotificationService.unread_count(db_session, user.user_id) == 3

    first_id = NotificationService.history(db_session, user.user_id)["notifications"][0]["notification_id"]
    read = NotificationService.mark_read(db_session, user.user_id, uuid.UUID(first_id))
    assert read.status == NotificationStatus.READ
    assert read.read_at is not None
    assert NotificationService.unread_count(db_session, user.user_id) == 2

    assert NotificationService.mark_all_read(db_session, user.user_id) == 2
    assert NotificationService.unread_count(db_session, user.user_id) == 0


def test_history_limit_is_clamped(db_session):
    user = create_user(db_session)
    result = NotificationService.history(db_session, user.user_id, limit=500)
    assert result["pagination"]["limit"] == 100
