"""
Explicit state types for a user's credential and email verification.

The database stores these as plain columns; ``User`` exposes them only
through the types below so that a verified user can never carry a pending
OTP and a missing PIN is never confused with a real one.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum as PyEnum
from typing import Union


class VerificationStatus(PyEnum):
    UNVERIFIED = "unverified"
    PENDING = "pending"
    VERIFIED = "verified"


@dataclass(frozen=True)
class Unverified:
    pass


@dataclass(frozen=True)
class PendingVerification:
    code: str
    expires_at: datetime
    attempts: int = 0


@dataclass(frozen=True)
class Verified:
    pass


VerificationState = Union[Unverified, PendingVerification, Verified]


@dataclass(frozen=True)
class NoCredential:
    pass


@dataclass(frozen=True)
class HashedPin:
    value: str


Credential = Union[NoCredential, HashedPin]


class RegistrationState(PyEnum):
    PENDING_VERIFICATION = "pending_verification"
    VERIFIED_NO_PIN = "verified_no_pin"
    ACTIVE = "active"
