from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.clock import days_until, end_of_day, start_of_day, utcnow
from repositories import MenuRepository, UserRepository

logger = logging.getLogger("calo.menus.expiration")


class MenuExpirationService:
    """Keeps the active flag of menus in line with their end dates"""

    @staticmethod
    def deactivate_expired_menus(db: Session) -> Dict[str, Any]:
        """Deactivate active menus that ended before today.

        Each menu is handled on its own; a failure is recorded and the
        remaining menus are still processed.
        """
        today = start_of_day()
        expired = MenuRepository(db).list_active_ending_before(today)
        users = UserRepository(db)

        deactivated = 0
        users_cleaned = 0
        errors: List[str] = []
        for menu in expired:
            try:
                menu.is_active = False
                if users.clear_active_menu(menu.user_id, menu.menu_id):
                    users_cleaned += 1
                db.commit()
                deactivated += 1
                logger.info("Deactivated expired menu %s (ended %s)", menu.menu_id, menu.end_date)
            except Exception as e:
                db.rollback()
                errors.append(f"Menu {menu.menu_id}: {e}")
                logger.error("Failed to deactivate menu %s: %s", menu.menu_id, e)

        return {"deactivated": deactivated, "users_cleaned": users_cleaned, "errors": errors}

    @staticmethod
    def get_expiring_menus(db: Session) -> List[Dict[str, Any]]:
        """Active menus ending today or tomorrow"""
        now = utcnow()
        window_start = start_of_day(now)
        window_end = end_of_day(now + timedelta(days=1))
        menus = MenuRepository(db).list_active_ending_between(window_start, window_end)
        return [
            {
                "menu_id": str(m.menu_id),
                "user_id": str(m.user_id),
                "title": m.title,
                "end_date": m.end_date.isoformat(),
                "days_remaining": days_until(m.end_date, now),
            }
            for m in menus
        ]

    @staticmethod
    def fix_menus_without_end_date(db: Session) -> int:
        """Give active menus that have a start date an end date derived from their length."""
        menus = MenuRepository(db).list_active_without_end_date()
        for menu in menus:
            menu.end_date = end_of_day(menu.start_date + timedelta(days=(menu.days_count or 1) - 1))
            logger.info("Set end date of menu %s to %s", menu.menu_id, menu.end_date)
        db.commit()
        return len(menus)

    @staticmethod
    def get_menu_stats(db: Session) -> Dict[str, int]:
        now = utcnow()
        today = start_of_day(now)
        today_end = end_of_day(now)
        week_end = end_of_day(now + timedelta(days=7))

        active = MenuRepository(db).list_active()
        with_end = [m for m in active if m.end_date is not None]
        return {
            "total_active": len(active),
            "expired_but_active": sum(1 for m in with_end if m.end_date < today),
            "expiring_today": sum(1 for m in with_end if today <= m.end_date <= today_end),
            "expiring_this_week": sum(1 for m in with_end if today <= m.end_date <= week_end),
        }

    @staticmethod
    def run_expiration_check(db: Session) -> Dict[str, Any]:
        """Scheduled entry point: repair end dates, then deactivate expired menus."""
        fixed = MenuExpirationService.fix_menus_without_end_date(db)
        result = MenuExpirationService.deactivate_expired_menus(db)
        result["fixed_end_dates"] = fixed
        logger.info(
            "Menu expiration check: fixed=%d deactivated=%d users_cleaned=%d errors=%d",
            fixed,
            result["deactivated"],
            result["users_cleaned"],
            len(result["errors"]),
        )
        return result
