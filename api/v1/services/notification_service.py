from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import select, func, update
from api.v1.models.notification import (
    Notification,
    NotificationType,
    NotificationPriority,
)
from api.v1.utils.exceptions import NotFoundError
from api.v1.utils.logger import get_logger

logger = get_logger("notification_service")

MAX_PAGE_SIZE = 50


class NotificationService:
    def __init__(self):
        pass

    def create_notification(
        self,
        user_id: str,
        title: str,
        message: str,
        db: Session,
        notification_type: NotificationType = NotificationType.SYSTEM,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
        action_url: Optional[str] = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=notification_type,
            priority=priority,
            action_url=action_url,
        )

        db.add(notification)
        db.commit()
        db.refresh(notification)

        logger.info(
            "Notification created",
            extra={
                "notification_id": notification.id,
                "user_id": user_id,
                "type": notification_type.value,
            },
        )

        return notification

    def list_notifications(
        self,
        user_id: str,
        db: Session,
        page: int = 1,
        limit: int = 20,
        unread_only: bool = False,
    ) -> tuple[list[Notification], int]:
        limit = min(limit, MAX_PAGE_SIZE)
        filters = [Notification.user_id == user_id]
        if unread_only:
            filters.append(Notification.is_read.is_(False))

        total = db.scalar(
            select(func.count()).select_from(Notification).where(*filters)
        )
        notifications = db.scalars(
            select(Notification)
            .where(*filters)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()

        return list(notifications), total or 0

    def unread_count(self, user_id: str, db: Session) -> int:
        return (
            db.scalar(
                select(func.count())
                .select_from(Notification)
                .where(
                    Notification.user_id == user_id,
                    Notification.is_read.is_(False),
                )
            )
            or 0
        )

    def mark_as_read(
        self, notification_id: str, user_id: str, db: Session
    ) -> Notification:
        notification = db.scalar(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        if not notification:
            raise NotFoundError("Notification not found")

        notification.is_read = True
        db.commit()
        db.refresh(notification)

        return notification

    def mark_all_as_read(self, user_id: str, db: Session) -> int:
        result = db.execute(
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        db.commit()

        logger.info(
            "Notifications marked as read",
            extra={"user_id": user_id, "modified_count": result.rowcount},
        )

        return result.rowcount

    def delete_notification(
        self, notification_id: str, user_id: str, db: Session
    ) -> Notification:
        notification = db.scalar(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        if not notification:
            raise NotFoundError("Notification not found")

        db.delete(notification)
        db.commit()

        return notification

    def get_stats(self, user_id: str, db: Session) -> dict:
        rows = db.execute(
            select(
                Notification.type,
                Notification.priority,
                Notification.is_read,
                func.count(Notification.id),
            )
            .where(Notification.user_id == user_id)
            .group_by(Notification.type, Notification.priority, Notification.is_read)
        ).all()

        total = unread = 0
        by_type: dict[str, int] = {}
        by_priority: dict[str, int] = {}
        for notification_type, priority, is_read, count in rows:
            total += count
            if not is_read:
                unread += count
            by_type[notification_type.value] = by_type.get(notification_type.value, 0) + count
            by_priority[priority.value] = by_priority.get(priority.value, 0) + count

        return {
            "total": total,
            "unread": unread,
            "read": total - unread,
            "byType": by_type,
            "byPriority": by_priority,
        }


notification_service = NotificationService()
