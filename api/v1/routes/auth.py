from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from api.v1.models.user import User
from api.v1.schemas.auth import (
    CurrentUserResponse,
    EmailRequest,
    LoginRequest,
    RegisterRequest,
    SetPinRequest,
    UserResponse,
    VerifyOtpRequest,
)
from api.v1.responses.error_responses import ErrorResponse, ValidationErrorResponse
from api.v1.responses.success_response import success_response
from api.v1.services.auth import AuthService
from api.v1.services.user import user_service, oauth2_scheme
from api.v1.utils.dependencies import get_auth_service, get_db

auth = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        401: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ValidationErrorResponse},
        502: {"model": ErrorResponse},
    },
)


@auth.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    created = auth_service.register(payload.full_name, payload.email, db)

    if not created:
        return success_response(
            message="OTP sent to your email address", step="verify_otp"
        )

    return success_response(
        status_code=status.HTTP_201_CREATED,
        message="Registration initiated! Please check your email for the verification code.",
        step="verify_otp",
    )


@auth.post("/verify-otp", status_code=status.HTTP_200_OK)
async def verify_otp(
    payload: VerifyOtpRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    auth_service.verify_otp(payload.email, payload.otp, db)

    return success_response(
        message="Email verified successfully! Now create your secure PIN.",
        step="create_pin",
    )


@auth.post("/set-pin", status_code=status.HTTP_200_OK)
async def set_pin(
    payload: SetPinRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    user, token = auth_service.set_pin(
        payload.email, payload.pin, payload.confirm_pin, db
    )

    return success_response(
        message="Account created successfully! Welcome to Credit Tracker!",
        token=token,
        user=UserResponse.model_validate(user).model_dump(by_alias=True),
    )


@auth.post("/login", status_code=status.HTTP_200_OK)
async def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    user, token = auth_service.login(credentials.email, credentials.pin, db)

    return success_response(
        message="Login successful! Welcome back!",
        token=token,
        user=UserResponse.model_validate(user).model_dump(by_alias=True),
    )


@auth.post("/resend-otp", status_code=status.HTTP_200_OK)
async def resend_otp(
    payload: EmailRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    auth_service.resend_otp(payload.email, db)

    return success_response(message="New OTP sent to your email address")


@auth.get("/me", status_code=status.HTTP_200_OK)
async def me(current_user: User = Depends(user_service.get_current_user)):
    return success_response(
        user=CurrentUserResponse.model_validate(current_user).model_dump(by_alias=True)
    )


@auth.post("/logout", status_code=status.HTTP_200_OK)
async def logout(
    current_user: User = Depends(user_service.get_current_user),
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    auth_service.logout(token, db)

    return success_response(message="Logout successful")
