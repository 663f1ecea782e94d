"""
User Repository - Data access layer for users and their questionnaires
"""

from typing import Optional, List
from uuid import UUID
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from repositories.base import BaseRepository
from domain.models import AppUser, UserQuestionnaire
from app.exceptions import ConflictError


class UserRepository(BaseRepository[AppUser]):
    """Repository for user data access"""

    id_field = "user_id"

    def __init__(self, db: Session):
        super().__init__(db, AppUser)

    def get_by_email(self, email: str) -> Optional[AppUser]:
        """Get user by email"""
        return self.db.query(AppUser).filter(AppUser.email == email).first()

    def create_user(self, email: str, name: str = None, **fields) -> AppUser:
        """Create a new user"""
        user = AppUser(email=email, name=name, **fields)
        try:
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
            return user
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(f"User with email {email} already exists")

    def clear_active_menu(self, user_id: UUID, menu_id: UUID) -> bool:
        """Drop the user's active menu pointer if it points at `menu_id`; no commit."""
        updated = (
            self.db.query(AppUser)
            .filter(AppUser.user_id == user_id, AppUser.active_menu_id == menu_id)
            .update({AppUser.active_menu_id: None}, synchronize_session="fetch")
        )
        return bool(updated)

    def list_with_streak(self) -> List[AppUser]:
        return self.db.query(AppUser).filter(AppUser.current_streak > 0).all()


class QuestionnaireRepository(BaseRepository[UserQuestionnaire]):
    """Repository for questionnaire data access"""

    id_field = "questionnaire_id"

    def __init__(self, db: Session):
        super().__init__(db, UserQuestionnaire)

    def get_latest(self, user_id: UUID) -> Optional[UserQuestionnaire]:
        """Newest questionnaire of a user"""
        return (
            self.db.query(UserQuestionnaire)
            .filter(UserQuestionnaire.user_id == user_id)
            .order_by(UserQuestionnaire.created_at.desc())
            .first()
        )
