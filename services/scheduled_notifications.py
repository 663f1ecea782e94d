"""
Scheduled notification jobs: meal reminders, water reminders, streak reminders
and weekly reports. Each job opens its own session and returns a small summary
dict.
"""

from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Dict, Optional, Tuple

from sqlalchemy.orm import Session

from app.clock import current_day_number, hhmm, local_now, start_of_day, utcnow
from app.config import settings
from domain.enums import NotificationType
from domain.models import AppUser, SessionLocal
from repositories import (
    CompletionRepository,
    MealLogRepository,
    MenuRepository,
    NotificationHistoryRepository,
    NotificationPreferenceRepository,
    UserRepository,
)
from services.notification_service import NotificationService

logger = logging.getLogger("calo.scheduler.notifications")

DEDUP_WINDOW_SEC = 5 * 60
EXPECTED_WEEKLY_MEALS = 21
WATER_HOURS = (8, 22)
DEFAULT_WATER_INTERVAL = 120
# Tolerance for the water job firing slightly after an interval boundary
INTERVAL_SLACK = timedelta(minutes=1)

REMINDER_SLOTS = (
    ("BREAKFAST", "breakfast_reminder_time"),
    ("LUNCH", "lunch_reminder_time"),
    ("DINNER", "dinner_reminder_time"),
    ("SNACK", "snack_reminder_time"),
)

# "{user}-{type}-{time}" -> monotonic time the reminder was recorded
_sent_reminders: Dict[str, float] = {}


def _prune_sent(now: float) -> None:
    for key, sent_at in list(_sent_reminders.items()):
        if now - sent_at > DEDUP_WINDOW_SEC:
            del _sent_reminders[key]


def upcoming_meal(db: Session, user: AppUser, meal_type: str) -> Optional[Tuple[str, int]]:
    """(name, day_number) of the active menu's meal of this type for today."""
    if not user.active_menu_id:
        return None
    menu = MenuRepository(db).get_by_id_and_user(user.active_menu_id, user.user_id)
    if menu is None or menu.start_date is None:
        return None
    day = current_day_number(menu.start_date, menu.days_count)
    for meal in menu.meals:
        if meal.day_number == day and meal.meal_type == meal_type:
            return meal.name, day
    return None


def send_meal_reminders(db: Session) -> Dict[str, int]:
    sent = 0
    now = time.monotonic()
    _prune_sent(now)

    for prefs in NotificationPreferenceRepository(db).list_with_meal_reminders():
        user = prefs.user
        if user is None:
            continue
        user_time = hhmm(local_now(user.timezone, settings.default_timezone))

        for meal_type, field_name in REMINDER_SLOTS:
            if getattr(prefs, field_name) != user_time:
                continue
            key = f"{user.user_id}-{meal_type}-{user_time}"
            if key in _sent_reminders:
                continue

            upcoming = upcoming_meal(db, user, meal_type)
            label = meal_type.lower()
            if upcoming:
                body = f"Time for {label}: {upcoming[0]}"
            else:
                body = f"Time for {label}! Don't forget to log your meal."
            data = {"meal_type": meal_type, "day_number": upcoming[1] if upcoming else 1}
            if user.active_menu_id:
                data["menu_id"] = str(user.active_menu_id)

            if NotificationService.send_to_user(
                db,
                user.user_id,
                NotificationType.MEAL_REMINDER,
                f"{label.capitalize()} reminder",
                body,
                data,
                now_hhmm=user_time,
            ):
                sent += 1
            _sent_reminders[key] = now
            logger.debug(f"meal_reminder user_id={user.user_id} type={meal_type}")

    return {"sent": sent}


def send_water_reminders(db: Session) -> Dict[str, int]:
    """Remind users to drink during waking hours, at most once per their interval."""
    now = utcnow()
    history = NotificationHistoryRepository(db)
    sent = 0

    for prefs in NotificationPreferenceRepository(db).list_with_water_reminders():
        user = prefs.user
        if user is None:
            continue
        local = local_now(user.timezone, settings.default_timezone)
        if not WATER_HOURS[0] <= local.hour < WATER_HOURS[1]:
            continue

        interval = prefs.water_reminder_interval or DEFAULT_WATER_INTERVAL
        last = history.latest_of_type(user.user_id, NotificationType.WATER_REMINDER.value)
        if last is not None and now - last.created_at < timedelta(minutes=interval) - INTERVAL_SLACK:
            continue

        if NotificationService.send_to_user(
            db,
            user.user_id,
            NotificationType.WATER_REMINDER,
            "Water reminder",
            "Time for a glass of water! Small sips through the day add up.",
            {"interval_minutes": interval},
            now_hhmm=hhmm(local),
        ):
            sent += 1

    return {"sent": sent}


def send_streak_reminders(db: Session) -> Dict[str, int]:
    today = start_of_day()
    tomorrow = today + timedelta(days=1)
    completions = CompletionRepository(db)
    sent = 0

    for user in UserRepository(db).list_with_streak():
        prefs = user.notification_preference
        if prefs is None or not prefs.goal_reminders:
            continue
        if completions.list_between(user.user_id, today, tomorrow):
            continue
        if NotificationService.send_to_user(
            db,
            user.user_id,
            NotificationType.STREAK_REMINDER,
            f"{user.current_streak}-day streak at risk!",
            "Don't lose your streak! Complete a meal today.",
            {"current_streak": user.current_streak, "best_streak": user.best_streak},
        ):
            sent += 1

    return {"sent": sent}


def send_weekly_reports(db: Session) -> Dict[str, int]:
    week_ago = utcnow() - timedelta(days=7)
    completions = CompletionRepository(db)
    meals = MealLogRepository(db)
    sent = 0

    for user in UserRepository(db).get_all(limit=None):
        prefs = user.notification_preference
        if prefs is None or not prefs.weekly_reports:
            continue
        completed = len(completions.list_between(user.user_id, week_ago))
        calories = round(sum(m.calories or 0 for m in meals.list_since(user.user_id, week_ago)))
        if NotificationService.send_to_user(
            db,
            user.user_id,
            NotificationType.WEEKLY_REPORT,
            "Your weekly report",
            f"You completed {completed}/{EXPECTED_WEEKLY_MEALS} meals and "
            f"logged {calories} calories this week.",
            {
                "total_calories": calories,
                "meals_completed": completed,
                "total_meals": EXPECTED_WEEKLY_MEALS,
                "streak_days": user.current_streak or 0,
            },
        ):
            sent += 1

    return {"sent": sent}


def _run(job, name: str) -> Dict[str, int]:
    db = SessionLocal()
    try:
        return job(db)
    except Exception:
        db.rollback()
        logger.exception(f"{name} failed")
        raise
    finally:
        db.close()


def run_meal_reminders() -> Dict[str, int]:
    return _run(send_meal_reminders, "meal_reminders")


def run_water_reminders() -> Dict[str, int]:
    return _run(send_water_reminders, "water_reminders")


def run_streak_reminders() -> Dict[str, int]:
    return _run(send_streak_reminders, "streak_reminders")


def run_weekly_reports() -> Dict[str, int]:
    return _run(send_weekly_reports, "weekly_reports")
