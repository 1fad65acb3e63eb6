from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional
from pydantic import EmailStr, Field, StringConstraints, field_validator
from api.v1.schemas.base import CamelModel

Pin = Annotated[str, StringConstraints(pattern=r"^[0-9]{4}$")]
OtpCode = Annotated[str, StringConstraints(pattern=r"^[0-9]{6}$")]


class EmailRequest(CamelModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class RegisterRequest(EmailRequest):
    full_name: Annotated[
        str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)
    ]


class VerifyOtpRequest(EmailRequest):
    otp: OtpCode


class SetPinRequest(EmailRequest):
    pin: Pin
    confirm_pin: Pin


class LoginRequest(EmailRequest):
    pin: Pin


class UserResponse(CamelModel):
    id: str
    full_name: str
    email: str
    created_at: datetime


class LinkedAccountResponse(CamelModel):
    id: str
    provider: str
    account_id: str
    account_name: str
    linked_at: datetime

    @field_validator("provider", mode="before")
    @classmethod
    def provider_value(cls, value):
        return getattr(value, "value", value)


class CurrentUserResponse(UserResponse):
    monthly_budget: Optional[Decimal] = None
    linked_accounts: list[LinkedAccountResponse] = Field(default_factory=list)
    preferences: dict
