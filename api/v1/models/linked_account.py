from __future__ import annotations

from typing import TYPE_CHECKING

from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import String, ForeignKey, Enum, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from api.v1.models.abstract_base import AbstractBaseModel
from api.v1.utils.helpers import utcnow

if TYPE_CHECKING:
    from api.v1.models.user import User


class AccountProvider(PyEnum):
    GOOGLE = "google"
    APPLE = "apple"
    FACEBOOK = "facebook"
    BANK = "bank"


class LinkedAccount(AbstractBaseModel):
    __tablename__ = "linked_accounts"
    __table_args__ = (
        UniqueConstraint("user_id", "provider", "account_id"),
    )

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    provider: Mapped[AccountProvider] = mapped_column(
        Enum(AccountProvider, native_enum=False), nullable=False
    )
    account_id: Mapped[str] = mapped_column(String(255), nullable=False)
    account_name: Mapped[str] = mapped_column(String(255), nullable=False)
    linked_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    user: Mapped[User] = relationship("User", back_populates="linked_accounts")
