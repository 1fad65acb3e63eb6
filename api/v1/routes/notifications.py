from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from api.v1.models.user import User
from api.v1.schemas.notification import NotificationCreate, NotificationResponse
from api.v1.responses.success_response import success_response
from api.v1.services.notification_service import notification_service, MAX_PAGE_SIZE
from api.v1.services.user import user_service
from api.v1.utils.dependencies import get_db
from api.v1.utils.helpers import pagination_block

notifications = APIRouter(prefix="/notifications", tags=["Notifications"])


def _serialize(notification) -> dict:
    return NotificationResponse.model_validate(notification).model_dump(by_alias=True)


@notifications.get("", status_code=status.HTTP_200_OK)
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    unread_only: bool = Query(False, alias="unreadOnly"),
    user: User = Depends(user_service.get_current_user),
    db: Session = Depends(get_db),
):
    items, total = notification_service.list_notifications(
        user.id, db, page=page, limit=limit, unread_only=unread_only
    )
    message = (
        "No notifications right now, enjoy your day!"
        if not items and page == 1
        else None
    )

    return success_response(
        message=message,
        notifications=[_serialize(item) for item in items],
        unreadCount=notification_service.unread_count(user.id, db),
        pagination=pagination_block(page, limit, total, "totalNotifications"),
    )


@notifications.post("", status_code=status.HTTP_201_CREATED)
async def create_notification(
    payload: NotificationCreate,
    user: User = Depends(user_service.get_current_user),
    db: Session = Depends(get_db),
):
    notification = notification_service.create_notification(
        user.id,
        payload.title,
        payload.message,
        db,
        notification_type=payload.type,
        priority=payload.priority,
        action_url=str(payload.action_url) if payload.action_url else None,
    )

    return success_response(
        status_code=status.HTTP_201_CREATED,
        message="Notification created successfully",
        notification=_serialize(notification),
    )


@notifications.get("/stats", status_code=status.HTTP_200_OK)
async def notification_stats(
    user: User = Depends(user_service.get_current_user),
    db: Session = Depends(get_db),
):
    return success_response(stats=notification_service.get_stats(user.id, db))


@notifications.patch("/mark-all-read", status_code=status.HTTP_200_OK)
async def mark_all_read(
    user: User = Depends(user_service.get_current_user),
    db: Session = Depends(get_db),
):
    modified = notification_service.mark_all_as_read(user.id, db)

    return success_response(
        message=f"{modified} notifications marked as read", modifiedCount=modified
    )


@notifications.patch("/{notification_id}/read", status_code=status.HTTP_200_OK)
async def mark_read(
    notification_id: str,
    user: User = Depends(user_service.get_current_user),
    db: Session = Depends(get_db),
):
    notification = notification_service.mark_as_read(notification_id, user.id, db)

    return success_response(
        message="Notification marked as read", notification=_serialize(notification)
    )


@notifications.delete("/{notification_id}", status_code=status.HTTP_200_OK)
async def delete_notification(
    notification_id: str,
    user: User = Depends(user_service.get_current_user),
    db: Session = Depends(get_db),
):
    notification = notification_service.delete_notification(
        notification_id, user.id, db
    )

    return success_response(
        message="Notification deleted successfully",
        deletedNotification=_serialize(notification),
    )
