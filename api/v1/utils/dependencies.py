from typing import Generator
from fastapi import Depends
from sqlalchemy.orm import Session
from api.v1.services.auth import AuthService
from api.v1.services.email_service import EmailService
from api.v1.utils.config import Settings, get_settings
from api.v1.utils.database import SessionLocal


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_email_service(settings: Settings = Depends(get_settings)) -> EmailService:
    return EmailService(settings)


def get_auth_service(
    settings: Settings = Depends(get_settings),
    email_service: EmailService = Depends(get_email_service),
) -> AuthService:
    return AuthService(settings, email_service)
