"""Notification device, preference and history routes"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from api.responses import success_response
from app.exceptions import NotFoundError
from domain.models import get_db_session
from domain.schemas.notification_schemas import (
    DeviceRegisterRequest,
    DeviceResponse,
    DeviceUnregisterRequest,
    NotificationResponse,
    PreferencesResponse,
    PreferencesUpdate,
)
from services.notification_service import NotificationService

router = APIRouter(prefix="/users/{user_id}/notifications", tags=["Notifications"])


@router.post("/devices", status_code=status.HTTP_201_CREATED)
def register_device(user_id: UUID, data: DeviceRegisterRequest, db: Session = Depends(get_db_session)):
    device = NotificationService.register_device(db, user_id, data.token, data.platform)
    return success_response(DeviceResponse.model_validate(device), "Device registered")


@router.get("/devices")
def list_devices(user_id: UUID, db: Session = Depends(get_db_session)):
    devices = NotificationService.list_devices(db, user_id)
    return success_response([DeviceResponse.model_validate(d) for d in devices])


@router.delete("/devices")
def unregister_device(user_id: UUID, data: DeviceUnregisterRequest, db: Session = Depends(get_db_session)):
    if not NotificationService.unregister_device(db, user_id, data.token):
        raise NotFoundError("Device not found")
    return success_response(None, "Device unregistered")


@router.delete("/devices/{device_id}")
def delete_device(user_id: UUID, device_id: UUID, db: Session = Depends(get_db_session)):
    NotificationService.delete_device(db, user_id, device_id)
    return success_response({"deleted": str(device_id)}, "Device deleted")


@router.get("/preferences")
def get_preferences(user_id: UUID, db: Session = Depends(get_db_session)):
    prefs = NotificationService.get_preferences(db, user_id)
    return success_response(PreferencesResponse.model_validate(prefs))


@router.put("/preferences")
def update_preferences(user_id: UUID, data: PreferencesUpdate, db: Session = Depends(get_db_session)):
    prefs = NotificationService.update_preferences(db, user_id, data)
    return success_response(PreferencesResponse.model_validate(prefs), "Preferences updated")


@router.get("/history")
def notification_history(
    user_id: UUID,
    limit: int = Query(20, ge=1),
    offset: int = Query(0, ge=0),
    type: Optional[str] = None,
    unread_only: bool = False,
    db: Session = Depends(get_db_session),
):
    return success_response(
        NotificationService.history(db, user_id, limit, offset, type_=type, unread_only=unread_only)
    )


@router.get("/unread-count")
def unread_count(user_id: UUID, db: Session = Depends(get_db_session)):
    return success_response({"count": NotificationService.unread_count(db, user_id)})


@router.post("/read-all")
def mark_all_read(user_id: UUID, db: Session = Depends(get_db_session)):
    updated = NotificationService.mark_all_read(db, user_id)
    return success_response({"updated": updated}, "All notifications marked as read")


@router.post("/{notification_id}/read")
def mark_read(user_id: UUID, notification_id: UUID, db: Session = Depends(get_db_session)):
    notification = NotificationService.mark_read(db, user_id, notification_id)
    return success_response(NotificationResponse.model_validate(notification))
