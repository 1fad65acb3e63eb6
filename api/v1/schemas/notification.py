from datetime import datetime
from typing import Annotated, Optional
from pydantic import HttpUrl, StringConstraints
from api.v1.models.notification import NotificationType, NotificationPriority
from api.v1.schemas.base import CamelModel


class NotificationCreate(CamelModel):
    title: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)
    ]
    message: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)
    ]
    type: NotificationType = NotificationType.SYSTEM
    priority: NotificationPriority = NotificationPriority.MEDIUM
    action_url: Optional[HttpUrl] = None


class NotificationResponse(CamelModel):
    id: str
    title: str
    message: str
    type: NotificationType
    priority: NotificationPriority
    is_read: bool
    action_url: Optional[str] = None
    created_at: datetime
