import hashlib
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, InvalidHashError
import jwt
from jwt.exceptions import InvalidTokenError
from sqlalchemy.orm import Session
from sqlalchemy import select, update
from api.v1.models.user import User
from api.v1.models.blacklisted_token import BlacklistedToken
from api.v1.models.verification import RegistrationState, VerificationStatus
from api.v1.services.email_service import EmailService
from api.v1.services.otp import OtpService
from api.v1.utils.config import Settings
from api.v1.utils.exceptions import (
    AlreadyExistsError,
    ConflictError,
    EmailDeliveryError,
    InvalidCredentialsError,
    NotFoundError,
    NotVerifiedError,
    OtpMismatchError,
    OtpNotFoundError,
    PinAlreadySetError,
    PinMismatchError,
)
from api.v1.utils.helpers import utcnow
from api.v1.utils.logger import get_logger

logger = get_logger("auth_service")


@lru_cache(maxsize=1)
def _dummy_pin_hash() -> str:
    return PasswordHasher().hash("0000")


class AuthService:
    def __init__(
        self,
        settings: Settings,
        email_service: EmailService,
        otp_service: Optional[OtpService] = None,
    ):
        self.ph = PasswordHasher()
        self.email_service = email_service
        self.otp_service = otp_service or OtpService(
            ttl_minutes=settings.OTP_TTL_MINUTES,
            max_attempts=settings.OTP_MAX_ATTEMPTS,
        )
        self.secret_key = settings.JWT_SECRET_KEY
        self.algorithm = settings.JWT_ALGORITHM
        self.access_token_expire_hours = settings.ACCESS_TOKEN_EXPIRE_HOURS

    def hash_pin(self, pin: str) -> str:
        return self.ph.hash(pin)

    def verify_pin(self, plain_pin: str, hashed_pin: str) -> bool:
        try:
            self.ph.verify(hashed_pin, plain_pin)
            return True
        except (VerifyMismatchError, InvalidHashError):
            return False

    def create_access_token(
        self, data: dict, expires_delta: Optional[timedelta] = None
    ) -> str:
        to_encode = data.copy()
        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(
                hours=self.access_token_expire_hours
            )

        to_encode.update({"exp": expire, "iat": datetime.now(timezone.utc)})
        encoded_jwt = jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)
        return encoded_jwt

    def issue_token(self, user: User) -> str:
        return self.create_access_token(data={"sub": user.id, "email": user.email})

    @staticmethod
    def token_digest(token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()

    def verify_token(self, token: str, db: Session) -> Optional[dict]:
        try:
            blacklisted = db.scalar(
                select(BlacklistedToken).where(
                    BlacklistedToken.token_digest == self.token_digest(token)
                )
            )
            if blacklisted:
                return None

            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
            return payload
        except InvalidTokenError:
            return None

    def get_user_by_email(self, email: str, db: Session) -> Optional[User]:
        return db.scalar(select(User).where(User.email == email.strip().lower()))

    def register(self, full_name: str, email: str, db: Session) -> bool:
        """
        Start or restart a registration.

        Returns True when a new pending user was created and False when an
        existing unverified user was sent a fresh code.
        """
        existing_user = self.get_user_by_email(email, db)

        if existing_user:
            if existing_user.is_verified:
                logger.warning(
                    "Registration rejected, email already verified",
                    extra={"user_id": existing_user.id},
                )
                raise AlreadyExistsError()

            pending = self.otp_service.issue()
            existing_user.verification = pending
            db.commit()

            self.email_service.send_otp(existing_user.email, existing_user.full_name, pending.code)

            logger.info("OTP reissued", extra={"user_id": existing_user.id})
            return False

        pending = self.otp_service.issue()
        new_user = User(full_name=full_name, email=email.strip().lower())
        new_user.verification = pending

        db.add(new_user)
        db.commit()
        db.refresh(new_user)

        try:
            self.email_service.send_otp(new_user.email, new_user.full_name, pending.code)
        except EmailDeliveryError:
            # free the email for another registration attempt
            db.delete(new_user)
            db.commit()
            logger.warning(
                "Registration rolled back after OTP delivery failure",
                extra={"email": email},
            )
            raise

        logger.info(
            "User registered, verification pending",
            extra={"user_id": new_user.id, "email": new_user.email},
        )
        return True

    def verify_otp(
        self, email: str, otp: str, db: Session, now: Optional[datetime] = None
    ) -> User:
        user = self.get_user_by_email(email, db)
        if not user:
            raise OtpNotFoundError()

        try:
            user.verification = self.otp_service.verify(user.verification, otp, now)
        except OtpMismatchError as exc:
            user.verification = exc.state
            db.commit()
            logger.warning(
                "OTP mismatch",
                extra={"user_id": user.id, "attempts": exc.state.attempts},
            )
            raise

        db.commit()
        db.refresh(user)

        logger.info("Email verified", extra={"user_id": user.id})
        return user

    def resend_otp(self, email: str, db: Session) -> None:
        user = self.get_user_by_email(email, db)
        if not user:
            raise NotFoundError("User not found")

        if user.is_verified:
            raise ConflictError("User is already verified")

        pending = self.otp_service.issue()
        user.verification = pending
        db.commit()

        self.email_service.send_otp(user.email, user.full_name, pending.code)

        logger.info("OTP resent", extra={"user_id": user.id})

    def set_pin(
        self, email: str, pin: str, confirm_pin: str, db: Session
    ) -> tuple[User, str]:
        if pin != confirm_pin:
            raise PinMismatchError()

        user = self.get_user_by_email(email, db)
        if not user or not user.is_verified:
            raise NotVerifiedError()

        if user.registration_state == RegistrationState.ACTIVE:
            raise PinAlreadySetError()

        # only one concurrent request can move the row out of "no PIN"
        result = db.execute(
            update(User)
            .where(
                User.id == user.id,
                User.verification_status == VerificationStatus.VERIFIED,
                User.pin_hash.is_(None),
            )
            .values(pin_hash=self.hash_pin(pin), updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            logger.warning("Concurrent PIN set rejected", extra={"user_id": user.id})
            raise PinAlreadySetError()

        db.commit()
        db.refresh(user)

        logger.info("PIN set, account active", extra={"user_id": user.id})

        self._send_welcome_email(user)

        return user, self.issue_token(user)

    def _send_welcome_email(self, user: User) -> None:
        try:
            self.email_service.send_welcome_email(user.email, user.full_name)
        except Exception:
            logger.warning(
                "Welcome email failed", extra={"user_id": user.id}, exc_info=True
            )

    def authenticate_user(self, email: str, pin: str, db: Session) -> Optional[User]:
        user = self.get_user_by_email(email, db)

        if not user or user.registration_state != RegistrationState.ACTIVE:
            # same hashing cost as a real check
            self.verify_pin(pin, _dummy_pin_hash())
            return None

        if not self.verify_pin(pin, user.pin_hash):
            return None

        if self.ph.check_needs_rehash(user.pin_hash):
            user.pin_hash = self.hash_pin(pin)
            db.commit()

        return user

    def login(self, email: str, pin: str, db: Session) -> tuple[User, str]:
        user = self.authenticate_user(email, pin, db)

        if not user:
            logger.warning("Login failed", extra={"email": email})
            raise InvalidCredentialsError()

        logger.info("User logged in", extra={"user_id": user.id})

        return user, self.issue_token(user)

    def logout(self, token: str, db: Session) -> None:
        payload = self.verify_token(token, db)

        if payload:
            expires_at = datetime.fromtimestamp(payload.get("exp"), tz=timezone.utc)
            db.add(
                BlacklistedToken(
                    token_digest=self.token_digest(token), expires_at=expires_at
                )
            )
            db.commit()

            logger.info("User logged out", extra={"user_id": payload.get("sub")})
