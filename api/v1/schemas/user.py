from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional
from pydantic import Field, StringConstraints, field_validator
from api.v1.models.linked_account import AccountProvider
from api.v1.schemas.auth import LinkedAccountResponse
from api.v1.schemas.base import CamelModel

NonEmpty = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class SavingsPlanRequest(CamelModel):
    monthly_budget: Annotated[Decimal, Field(ge=0, max_digits=12, decimal_places=2)]


class SavingsGoalCreate(CamelModel):
    title: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)
    ]
    target_amount: Annotated[Decimal, Field(gt=0, max_digits=12, decimal_places=2)]
    current_amount: Annotated[
        Decimal, Field(ge=0, max_digits=12, decimal_places=2)
    ] = Decimal("0")
    deadline: Optional[datetime] = None


class SavingsGoalResponse(CamelModel):
    id: str
    title: str
    target_amount: Decimal
    current_amount: Decimal
    deadline: Optional[datetime] = None
    created_at: datetime


class LinkAccountRequest(CamelModel):
    provider: AccountProvider
    account_id: NonEmpty
    account_name: NonEmpty


class NotificationPreferencesUpdate(CamelModel):
    email: Optional[bool] = None
    budget_alerts: Optional[bool] = None
    savings_reminders: Optional[bool] = None


class PreferencesPayload(CamelModel):
    notifications: Optional[NotificationPreferencesUpdate] = None
    currency: Optional[
        Annotated[str, StringConstraints(pattern=r"^[A-Za-z]{3}$")]
    ] = None

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, value: Optional[str]) -> Optional[str]:
        return value.upper() if value else value


class PreferencesUpdateRequest(CamelModel):
    preferences: PreferencesPayload


class ProfileResponse(CamelModel):
    full_name: str
    email: str
    account_created: datetime
    monthly_budget: Optional[Decimal] = None
    linked_accounts: list[LinkedAccountResponse] = Field(default_factory=list)
    savings_goals: list[SavingsGoalResponse] = Field(default_factory=list)
    preferences: dict
