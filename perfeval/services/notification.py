from typing import List, Optional

from sqlalchemy.orm import Session

from perfeval.core.exceptions import NotFoundError
from perfeval.models.notification import Notification

class NotificationService:
    @staticmethod
    def create_notification(
        db: Session,
        user_id: int,
        title: str,
        message: str,
        type: str = "info",
        link: Optional[str] = None,
        evaluation_id: Optional[int] = None
    ) -> Notification:
        """
        Internal utility for creating notifications.
        Adds only: the caller's commit decides whether it is kept.
        """
        notification = Notification(
            user_id=user_id,
            evaluation_id=evaluation_id,
            title=title,
            message=message,
            type=type,
            link=link
        )
        db.add(notification)
        return notification

    @staticmethod
    def notify_evaluation_event(db: Session, evaluation, title: str, message: str, type: str = "info") -> Notification:
        """
        Notify the evaluated employee about a change to their evaluation.
        """
        return NotificationService.create_notification(
            db,
            evaluation.employee_id,
            title,
            message,
            type=type,
            link=f"/evaluations/{evaluation.id}",
            evaluation_id=evaluation.id,
        )

    @staticmethod
    def list_for_user(db: Session, user_id: int, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        query = db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()

    @staticmethod
    def mark_as_read(db: Session, notification_id: int) -> Notification:
        notification = db.get(Notification, notification_id)
        if not notification:
            raise NotFoundError("Notification", notification_id)
        notification.is_read = True
        db.commit()
        db.refresh(notification)
        return notification
