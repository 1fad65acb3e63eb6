from typing import Any, Optional
from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    message = "Validation error"

    def __init__(
        self, message: Optional[str] = None, errors: Optional[list[dict[str, Any]]] = None
    ):
        super().__init__(message)
        self.errors = errors or []


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Resource not found"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    message = "Resource already exists"


class DependencyFailureError(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY
    message = "An upstream service failed"


# Registration and login


class AlreadyExistsError(ConflictError):
    message = "An account with this email already exists"


class PinMismatchError(ValidationError):
    message = "PINs do not match"

    def __init__(self):
        super().__init__(
            errors=[
                {
                    "field": "confirmPin",
                    "message": self.message,
                    "type": "pin_mismatch",
                }
            ]
        )


class NotVerifiedError(UnauthorizedError):
    message = "Please verify your email first"


class PinAlreadySetError(ConflictError):
    message = "A PIN has already been set for this account"


class InvalidCredentialsError(UnauthorizedError):
    message = "Invalid email or PIN"


class EmailDeliveryError(DependencyFailureError):
    message = "Failed to send email. Please try again."


# One-time passcodes


class OtpNotFoundError(NotFoundError):
    message = "No OTP found"


class OtpExpiredError(UnauthorizedError):
    message = "OTP has expired"


class OtpAttemptsExceededError(UnauthorizedError):
    message = "Too many failed attempts"


class OtpMismatchError(UnauthorizedError):
    message = "Invalid OTP"

    def __init__(self, state):
        super().__init__()
        # verification state with the attempt counted; must be persisted
        self.state = state
