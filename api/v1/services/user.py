from typing import Annotated, Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from sqlalchemy import select
from api.v1.models.user import User
from api.v1.models.linked_account import LinkedAccount, AccountProvider
from api.v1.models.verification import RegistrationState
from api.v1.schemas.user import PreferencesPayload
from api.v1.services.auth import AuthService
from api.v1.utils.dependencies import get_db, get_auth_service
from api.v1.utils.exceptions import ConflictError, NotFoundError
from api.v1.utils.logger import get_logger

logger = get_logger("user_service")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


class UserService:
    def __init__(self):
        pass

    def get_user_by_id(self, user_id: str, db: Session) -> User | None:
        return db.scalar(select(User).where(User.id == user_id))

    def link_account(
        self,
        user: User,
        provider: AccountProvider,
        account_id: str,
        account_name: str,
        db: Session,
    ) -> LinkedAccount:
        existing = db.scalar(
            select(LinkedAccount).where(
                LinkedAccount.user_id == user.id,
                LinkedAccount.provider == provider,
                LinkedAccount.account_id == account_id,
            )
        )
        if existing:
            raise ConflictError("This account is already linked")

        linked_account = LinkedAccount(
            user_id=user.id,
            provider=provider,
            account_id=account_id,
            account_name=account_name,
        )
        db.add(linked_account)
        db.commit()
        db.refresh(linked_account)

        logger.info(
            "Account linked",
            extra={
                "user_id": user.id,
                "linked_account_id": linked_account.id,
                "provider": provider.value,
            },
        )

        return linked_account

    def unlink_account(
        self, user: User, linked_account_id: str, db: Session
    ) -> LinkedAccount:
        linked_account = db.scalar(
            select(LinkedAccount).where(
                LinkedAccount.id == linked_account_id,
                LinkedAccount.user_id == user.id,
            )
        )
        if not linked_account:
            raise NotFoundError("Linked account not found")

        db.delete(linked_account)
        db.commit()

        logger.info(
            "Account unlinked",
            extra={"user_id": user.id, "linked_account_id": linked_account_id},
        )

        return linked_account

    def update_preferences(
        self, user: User, preferences: PreferencesPayload, db: Session
    ) -> User:
        if preferences.notifications is not None:
            notifications = preferences.notifications
            if notifications.email is not None:
                user.notify_email = notifications.email
            if notifications.budget_alerts is not None:
                user.notify_budget_alerts = notifications.budget_alerts
            if notifications.savings_reminders is not None:
                user.notify_savings_reminders = notifications.savings_reminders
        if preferences.currency is not None:
            user.currency = preferences.currency

        db.commit()
        db.refresh(user)

        logger.info(
            "User preferences updated",
            extra={"user_id": user.id, "preferences": user.preferences},
        )

        return user

    def get_current_user(
        self,
        token: Annotated[str, Depends(oauth2_scheme)],
        db: Session = Depends(get_db),
        auth_service: AuthService = Depends(get_auth_service),
    ) -> User:
        credential_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

        payload = auth_service.verify_token(token, db)
        if not payload:
            raise credential_exception

        user_id: Optional[str] = payload.get("sub")
        if not user_id:
            raise credential_exception

        user = self.get_user_by_id(user_id, db)
        if not user or user.registration_state != RegistrationState.ACTIVE:
            raise credential_exception

        return user


user_service = UserService()
