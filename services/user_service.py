from datetime import date, timedelta
from typing import List, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from domain.models import AppUser
from domain.schemas.user_schemas import UserCreate
from repositories import UserRepository
from app.exceptions import NotFoundError

logger = logging.getLogger("calo.users")

XP_PER_LEVEL = 100


def level_for_xp(xp: int) -> int:
    return xp // XP_PER_LEVEL + 1


def next_streak(current: int, last_date: Optional[date], today: date) -> int:
    """Streak after a completion logged on `today`."""
    if last_date == today:
        return max(current, 1)
    if last_date == today - timedelta(days=1):
        return current + 1
    return 1


class UserService:
    """Business logic for users and their gamification state"""

    @staticmethod
    def create_user(db: Session, data: UserCreate) -> AppUser:
        user = UserRepository(db).create_user(
            email=data.email.strip().lower(),
            name=data.name,
            preferred_lang=data.preferred_lang,
            timezone=data.timezone,
        )
        logger.info(f"user_created user_id={user.user_id}")
        return user

    @staticmethod
    def get_all_users(db: Session) -> List[AppUser]:
        return UserRepository(db).get_all()

    @staticmethod
    def get_user(db: Session, user_id: UUID) -> AppUser:
        """Return the user or raise NotFoundError"""
        user = UserRepository(db).get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user

    @staticmethod
    def delete_user(db: Session, user_id: UUID) -> bool:
        deleted = UserRepository(db).delete(user_id)
        if deleted:
            logger.info(f"user_deleted user_id={user_id}")
        return deleted

    @staticmethod
    def award_completion(user: AppUser, xp: int, today: date) -> None:
        """Apply XP, level and streak changes for one completion; caller commits."""
        user.current_xp = (user.current_xp or 0) + xp
        user.total_points = (user.total_points or 0) + xp
        user.level = level_for_xp(user.current_xp)
        user.current_streak = next_streak(
            user.current_streak or 0, user.last_complete_date, today
        )
        user.best_streak = max(user.best_streak or 0, user.current_streak)
        user.last_complete_date = today
