"""
Domain enums for Calo application.
Contains all enumeration types used across the domain models.
"""

import enum


class MealType(str, enum.Enum):
    """Meal slots used by menus and completions"""

    BREAKFAST = "BREAKFAST"
    LUNCH = "LUNCH"
    DINNER = "DINNER"
    SNACK = "SNACK"
    MORNING_SNACK = "MORNING_SNACK"
    AFTERNOON_SNACK = "AFTERNOON_SNACK"


class MealPeriod(str, enum.Enum):
    """Period stored on logged history meals"""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"
    OTHER = "other"


class DevicePlatform(str, enum.Enum):
    IOS = "IOS"
    ANDROID = "ANDROID"


class NotificationType(str, enum.Enum):
    """Kinds of notification a user can receive"""

    MEAL_REMINDER = "MEAL_REMINDER"
    WATER_REMINDER = "WATER_REMINDER"
    STREAK_REMINDER = "STREAK_REMINDER"
    WEEKLY_REPORT = "WEEKLY_REPORT"
    MENU_EXPIRING = "MENU_EXPIRING"
    ACHIEVEMENT = "ACHIEVEMENT"
    SYSTEM = "SYSTEM"


class NotificationStatus(str, enum.Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"
    READ = "READ"


class ReviewType(str, enum.Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class PreferenceType(str, enum.Enum):
    FAVORITE = "favorite"
    FEEDBACK = "feedback"


class PlanStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
