from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from datetime import datetime
from decimal import Decimal
from sqlalchemy import String, Numeric, Boolean, Integer, DateTime, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from api.v1.models.abstract_base import AbstractBaseModel
from api.v1.models.verification import (
    Credential,
    HashedPin,
    NoCredential,
    PendingVerification,
    RegistrationState,
    Unverified,
    Verified,
    VerificationState,
    VerificationStatus,
)
from api.v1.utils.helpers import to_utc

if TYPE_CHECKING:
    from api.v1.models.transaction import Transaction
    from api.v1.models.notification import Notification
    from api.v1.models.linked_account import LinkedAccount
    from api.v1.models.savings_goal import SavingsGoal


class User(AbstractBaseModel):
    __tablename__ = "users"

    full_name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(
        String(254), unique=True, index=True, nullable=False
    )
    # NULL until the user sets a PIN; see ``credential``
    pin_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    verification_status: Mapped[VerificationStatus] = mapped_column(
        Enum(VerificationStatus, native_enum=False),
        nullable=False,
        default=VerificationStatus.UNVERIFIED,
    )
    otp_code: Mapped[Optional[str]] = mapped_column(String(6), nullable=True)
    otp_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    otp_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    monthly_budget: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(12, 2), nullable=True
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    notify_email: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notify_budget_alerts: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    notify_savings_reminders: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )

    transactions: Mapped[list[Transaction]] = relationship(
        "Transaction", back_populates="user", cascade="all, delete-orphan"
    )
    notifications: Mapped[list[Notification]] = relationship(
        "Notification", back_populates="user", cascade="all, delete-orphan"
    )
    linked_accounts: Mapped[list[LinkedAccount]] = relationship(
        "LinkedAccount",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="LinkedAccount.linked_at",
    )
    savings_goals: Mapped[list[SavingsGoal]] = relationship(
        "SavingsGoal",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="SavingsGoal.created_at",
    )

    @property
    def credential(self) -> Credential:
        if self.pin_hash is None:
            return NoCredential()
        return HashedPin(self.pin_hash)

    @credential.setter
    def credential(self, value: Credential) -> None:
        self.pin_hash = value.value if isinstance(value, HashedPin) else None

    @property
    def verification(self) -> VerificationState:
        if self.verification_status == VerificationStatus.VERIFIED:
            return Verified()
        if self.verification_status == VerificationStatus.PENDING:
            return PendingVerification(
                code=self.otp_code,
                expires_at=to_utc(self.otp_expires_at),
                attempts=self.otp_attempts or 0,
            )
        return Unverified()

    @verification.setter
    def verification(self, state: VerificationState) -> None:
        if isinstance(state, PendingVerification):
            self.verification_status = VerificationStatus.PENDING
            self.otp_code = state.code
            self.otp_expires_at = state.expires_at
            self.otp_attempts = state.attempts
            return

        self.verification_status = (
            VerificationStatus.VERIFIED
            if isinstance(state, Verified)
            else VerificationStatus.UNVERIFIED
        )
        self.otp_code = None
        self.otp_expires_at = None
        self.otp_attempts = 0

    @property
    def is_verified(self) -> bool:
        return self.verification_status == VerificationStatus.VERIFIED

    @property
    def registration_state(self) -> RegistrationState:
        if not self.is_verified:
            return RegistrationState.PENDING_VERIFICATION
        if isinstance(self.credential, NoCredential):
            return RegistrationState.VERIFIED_NO_PIN
        return RegistrationState.ACTIVE

    @property
    def preferences(self) -> dict:
        return {
            "notifications": {
                "email": self.notify_email,
                "budgetAlerts": self.notify_budget_alerts,
                "savingsReminders": self.notify_savings_reminders,
            },
            "currency": self.currency,
        }
