from datetime import datetime, timedelta

import pytest

from test_fixtures import create_menu, create_user
from app.clock import utcnow
from domain.models import NotificationHistory
from domain.schemas.notification_schemas import PreferencesUpdate
from services import scheduled_notifications
from services.meal_completion_service import MealCompletionService
from domain.schemas.completion_schemas import CompleteMealRequest
from services.notification_service import NotificationService


@pytest.fixture(autouse=True)
def clear_dedup():
    scheduled_notifications._sent_reminders.clear()
    yield
    scheduled_notifications._sent_reminders.clear()


def _subscribed_user(db, token, **prefs):
    user = create_user(db)
    NotificationService.register_device(db, user.user_id, token, "IOS")
    prefs.setdefault("quiet_hours_enabled", False)
    NotificationService.update_preferences(db, user.user_id, PreferencesUpdate(**prefs))
    return user


def _titles(db, user):
    history = NotificationService.history(db, user.user_id)
    return [n["title"] for n in history["notifications"]]


def test_meal_reminder_uses_todays_menu_meal(db_session, monkeypatch):
    user = _subscribed_user(db_session, "tok-1", lunch_reminder_time="13:00")
    create_menu(db_session, user, days=2)
    monkeypatch.setattr(
        scheduled_notifications, "local_now", lambda tz, fallback: datetime(2026, 3, 10, 13, 0)
    )

    assert scheduled_notifications.send_meal_reminders(db_session) == {"sent": 1}

    history = NotificationService.history(db_session, user.user_id)["notifications"]
    assert history[0]["title"] == "Lunch reminder"
    assert history[0]["body"] == "Time for lunch: Shakshuka lunch 1"
    assert history[0]["data"]["meal_type"] == "LUNCH"


def test_meal_reminder_is_sent_once_per_slot(db_session, monkeypatch):
    _subscribed_user(db_session, "tok-2", breakfast_reminder_time="08:00")
    monkeypatch.setattr(
        scheduled_notifications, "local_now", lambda tz, fallback: datetime(2026, 3, 10, 8, 0)
    )

    assert scheduled_notifications.send_meal_reminders(db_session) == {"sent": 1}
    assert scheduled_notifications.send_meal_reminders(db_session) == {"sent": 0}


def test_no_reminder_outside_reminder_time(db_session, monkeypatch):
    _subscribed_user(db_session, "tok-3")
    monkeypatch.setattr(
        scheduled_notifications, "local_now", lambda tz, fallback: datetime(2026, 3, 10, 9, 41)
    )
    assert scheduled_notifications.send_meal_reminders(db_session) == {"sent": 0}


def _at_local_time(monkeypatch, hour, minute=0):
    monkeypatch.setattr(
        scheduled_notifications, "local_now", lambda tz, fallback: datetime(2026, 3, 10, hour, minute)
    )


def test_water_reminder_waits_for_interval(db_session, monkeypatch):
    user = _subscribed_user(db_session, "tok-w1", water_reminders=True, water_reminder_interval=60)
    _at_local_time(monkeypatch, 11)

    assert scheduled_notifications.send_water_reminders(db_session) == {"sent": 1}
    assert scheduled_notifications.send_water_reminders(db_session) == {"sent": 0}

    reminder = db_session.query(NotificationHistory).filter_by(user_id=user.user_id).one()
    assert reminder.title == "Water reminder"
    assert reminder.data == {"interval_minutes": 60}
    reminder.created_at = utcnow() - timedelta(minutes=60)
    db_session.commit()

    assert scheduled_notifications.send_water_reminders(db_session) == {"sent": 1}


@pytest.mark.parametrize("hour", [6, 7, 22, 23])
def test_no_water_reminder_outside_waking_hours(db_session, monkeypatch, hour):
    _subscribed_user(db_session, "tok-w2", water_reminders=True)
    _at_local_time(monkeypatch, hour, 30)
    assert scheduled_notifications.send_water_reminders(db_session) == {"sent": 0}


def test_water_reminder_respects_quiet_hours(db_session, monkeypatch):
    _subscribed_user(
        db_session,
        "tok-w3",
        water_reminders=True,
        quiet_hours_enabled=True,
        quiet_hours_start="13:00",
        quiet_hours_end="15:00",
    )
    _at_local_time(monkeypatch, 14)
    assert scheduled_notifications.send_water_reminders(db_session) == {"sent": 0}


def test_water_reminders_are_opt_in(db_session, monkeypatch):
    _subscribed_user(db_session, "tok-w4")
    _at_local_time(monkeypatch, 11)
    assert scheduled_notifications.send_water_reminders(db_session) == {"sent": 0}


def test_streak_reminder_skips_users_who_completed_today(db_session):
    at_risk = _subscribed_user(db_session, "tok-4")
    at_risk.current_streak = 4
    done = _subscribed_user(db_session, "tok-5")
    db_session.commit()
    MealCompletionService.complete_meal(
        db_session, done.user_id, CompleteMealRequest(meal_name="Oatmeal", meal_type="BREAKFAST")
    )

    assert scheduled_notifications.send_streak_reminders(db_session) == {"sent": 1}
    assert _titles(db_session, at_risk) == ["4-day streak at risk!"]
    assert _titles(db_session, done) == []


def test_streak_reminder_respects_goal_preference(db_session):
    user = _subscribed_user(db_session, "tok-6", goal_reminders=False)
    user.current_streak = 2
    db_session.commit()
    assert scheduled_notifications.send_streak_reminders(db_session) == {"sent": 0}


def test_weekly_report_summarizes_week(db_session):
    user = _subscribed_user(db_session, "tok-7")
    other = _subscribed_user(db_session, "tok-8", weekly_reports=False)
    for meal_type in ("BREAKFAST", "LUNCH"):
        MealCompletionService.complete_meal(
            db_session,
            user.user_id,
            CompleteMealRequest(meal_name="Bowl", meal_type=meal_type, calories=450),
        )

    assert scheduled_notifications.send_weekly_reports(db_session) == {"sent": 1}

    report = NotificationService.history(db_session, user.user_id)["notifications"][0]
    assert report["body"] == "You completed 2/21 meals and logged 900 calories this week."
    assert report["data"]["meals_completed"] == 2
    assert _titles(db_session, other) == []


def test_prune_sent_drops_old_keys():
    scheduled_notifications._sent_reminders["old"] = 0.0
    scheduled_notifications._sent_reminders["fresh"] = 1000.0
    scheduled_notifications._prune_sent(1000.0 + 10)
    assert list(scheduled_notifications._sent_reminders) == ["fresh"]
