from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from enum import Enum as PyEnum
from sqlalchemy import String, ForeignKey, Enum, Boolean
from sqlalchemy.orm import Mapped, mapped_column, relationship
from api.v1.models.abstract_base import AbstractBaseModel

if TYPE_CHECKING:
    from api.v1.models.user import User


class NotificationType(PyEnum):
    BUDGET_ALERT = "budget_alert"
    SAVINGS_REMINDER = "savings_reminder"
    TRANSACTION_UPDATE = "transaction_update"
    SYSTEM = "system"
    ACHIEVEMENT = "achievement"


class NotificationPriority(PyEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Notification(AbstractBaseModel):
    __tablename__ = "notifications"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    message: Mapped[str] = mapped_column(String(500), nullable=False)
    type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType, native_enum=False),
        nullable=False,
        default=NotificationType.SYSTEM,
    )
    priority: Mapped[NotificationPriority] = mapped_column(
        Enum(NotificationPriority, native_enum=False),
        nullable=False,
        default=NotificationPriority.MEDIUM,
    )
    is_read: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, index=True
    )
    action_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)

    user: Mapped[User] = relationship("User", back_populates="notifications")
