from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from perfeval.database import get_db
from perfeval.schemas.notification import NotificationResponse
from perfeval.services import user_service
from perfeval.services.notification import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/users/{user_id}", response_model=List[NotificationResponse])
def get_notifications(
    user_id: int,
    unread_only: bool = False,
    db: Session = Depends(get_db),
):
    user_service.get_user(db, user_id)
    return NotificationService.list_for_user(db, user_id, unread_only=unread_only)


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
def mark_notification_as_read(notification_id: int, db: Session = Depends(get_db)):
    return NotificationService.mark_as_read(db, notification_id)
