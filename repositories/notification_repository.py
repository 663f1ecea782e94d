"""
Notification Repository - devices, preferences and notification history
"""

from typing import List, Optional, Tuple
from uuid import UUID
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.enums import NotificationStatus
from domain.models import DeviceToken, NotificationHistory, NotificationPreference


class DeviceRepository(BaseRepository[DeviceToken]):
    id_field = "device_id"

    def __init__(self, db: Session):
        super().__init__(db, DeviceToken)

    def get_by_token(self, token: str) -> Optional[DeviceToken]:
        return self.db.query(DeviceToken).filter(DeviceToken.token == token).first()

    def list_for_user(self, user_id: UUID, active_only: bool = False) -> List[DeviceToken]:
        query = self.db.query(DeviceToken).filter(DeviceToken.user_id == user_id)
        if active_only:
            query = query.filter(DeviceToken.is_active.is_(True))
        return query.order_by(DeviceToken.created_at.desc()).all()


class NotificationPreferenceRepository(BaseRepository[NotificationPreference]):
    id_field = "preference_id"

    def __init__(self, db: Session):
        super().__init__(db, NotificationPreference)

    def get_for_user(self, user_id: UUID) -> Optional[NotificationPreference]:
        return (
            self.db.query(NotificationPreference)
            .filter(NotificationPreference.user_id == user_id)
            .first()
        )

    def list_with_meal_reminders(self) -> List[NotificationPreference]:
        return (
            self.db.query(NotificationPreference)
            .filter(NotificationPreference.meal_reminders.is_(True))
            .all()
        )

    def list_with_water_reminders(self) -> List[NotificationPreference]:
        return (
            self.db.query(NotificationPreference)
            .filter(NotificationPreference.water_reminders.is_(True))
            .all()
        )


class NotificationHistoryRepository(BaseRepository[NotificationHistory]):
    id_field = "notification_id"

    def __init__(self, db: Session):
        super().__init__(db, NotificationHistory)

    def _unread(self, user_id: UUID):
        return self.db.query(NotificationHistory).filter(
            NotificationHistory.user_id == user_id,
            NotificationHistory.read_at.is_(None),
            NotificationHistory.status != NotificationStatus.READ,
        )

    def list_for_user(
        self,
        user_id: UUID,
        limit: int,
        offset: int,
        type_: Optional[str] = None,
        unread_only: bool = False,
    ) -> Tuple[List[NotificationHistory], int]:
        query = self._unread(user_id) if unread_only else self.db.query(
            NotificationHistory
        ).filter(NotificationHistory.user_id == user_id)
        if type_:
            query = query.filter(NotificationHistory.type == type_)
        total = query.count()
        items = (
            query.order_by(NotificationHistory.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return items, total

    def count_unread(self, user_id: UUID) -> int:
        return self._unread(user_id).count()

    def list_unread(self, user_id: UUID) -> List[NotificationHistory]:
        return self._unread(user_id).all()

    def get_for_user(self, notification_id: UUID, user_id: UUID) -> Optional[NotificationHistory]:
        return (
            self.db.query(NotificationHistory)
            .filter(
                NotificationHistory.notification_id == notification_id,
                NotificationHistory.user_id == user_id,
            )
            .first()
        )

    def latest_of_type(self, user_id: UUID, type_: str) -> Optional[NotificationHistory]:
        return (
            self.db.query(NotificationHistory)
            .filter(NotificationHistory.user_id == user_id, NotificationHistory.type == type_)
            .order_by(NotificationHistory.created_at.desc())
            .first()
        )
