import secrets
from datetime import datetime, timedelta
from typing import Optional
from api.v1.models.verification import (
    PendingVerification,
    Verified,
    VerificationState,
)
from api.v1.utils.exceptions import (
    OtpAttemptsExceededError,
    OtpExpiredError,
    OtpMismatchError,
    OtpNotFoundError,
)
from api.v1.utils.helpers import utcnow


class OtpService:
    """
    Issues and checks six digit email verification codes.

    The service is pure: it takes a verification state and returns the next
    one. Persisting the result is the caller's job, including the attempt
    count carried by ``OtpMismatchError``.
    """

    def __init__(self, ttl_minutes: int = 10, max_attempts: int = 3):
        self.ttl = timedelta(minutes=ttl_minutes)
        self.max_attempts = max_attempts

    def generate_code(self) -> str:
        return str(100000 + secrets.randbelow(900000))

    def issue(self, now: Optional[datetime] = None) -> PendingVerification:
        now = now or utcnow()
        return PendingVerification(
            code=self.generate_code(), expires_at=now + self.ttl, attempts=0
        )

    def verify(
        self,
        state: VerificationState,
        candidate: str,
        now: Optional[datetime] = None,
    ) -> VerificationState:
        """
        Check ``candidate`` against a pending verification.

        Checks run in a fixed order: pending, expiry, attempt limit, code.
        An expired code that has also used up its attempts reports as expired.

        Returns:
            ``Verified()`` on a match.

        Raises:
            OtpNotFoundError: no verification is pending
            OtpExpiredError: ``now`` is at or past the expiry
            OtpAttemptsExceededError: the attempt limit was already reached
            OtpMismatchError: wrong code; ``exc.state`` holds the counted attempt
        """
        now = now or utcnow()

        if not isinstance(state, PendingVerification) or not state.code:
            raise OtpNotFoundError()

        if now >= state.expires_at:
            raise OtpExpiredError()

        if state.attempts >= self.max_attempts:
            raise OtpAttemptsExceededError()

        if not secrets.compare_digest(state.code.encode(), candidate.encode()):
            raise OtpMismatchError(
                PendingVerification(
                    code=state.code,
                    expires_at=state.expires_at,
                    attempts=state.attempts + 1,
                )
            )

        return Verified()
