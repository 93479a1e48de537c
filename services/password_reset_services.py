import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from config import Config
from models.User import User
from utils import get_hashed_password, get_jkt_now, verify_password

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "Jika email terdaftar, Anda akan menerima kode OTP"

# the stored hash is bound to the step it belongs to, so an OTP can never be
# presented as a reset token and vice versa
OTP_PURPOSE = "otp"
RESET_TOKEN_PURPOSE = "reset"


class PasswordResetError(ValueError):
    pass


def generate_otp() -> str:
    return str(100000 + secrets.randbelow(900000))


def generate_reset_token() -> str:
    return secrets.token_hex(32)


def _hash_secret(purpose: str, value: str) -> str:
    return get_hashed_password(f"{purpose}:{value}")


def _matches(purpose: str, value: str, hashed: str) -> bool:
    return verify_password(f"{purpose}:{value}", hashed)


class PasswordResetService:
    """
    NoReset -> OTPIssued -> OTPVerified(reset token) -> PasswordReset -> NoReset.

    Each user holds at most one pending secret (reset_password_token) with its
    expiry. Issuing a new OTP overwrites whatever was pending; any expired
    secret is cleared on first use and the flow restarts from NoReset.
    """

    def __init__(self, db: Session, now: Callable[[], datetime] = get_jkt_now):
        self.db = db
        self.now = now

    def _find_user(self, email: str) -> Optional[User]:
        return (
            self.db.query(User)
            .filter(User.email == email.strip().lower(), User.is_active == True)
            .first()
        )

    def _clear(self, user: User) -> None:
        user.clear_reset_state()
        self.db.commit()

    def request_reset(self, email: str) -> Optional[str]:
        """Returns the plain OTP to deliver, or None when the account does not exist."""
        user = self._find_user(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return None

        otp = generate_otp()
        user.reset_password_token = _hash_secret(OTP_PURPOSE, otp)
        user.reset_password_expires = self.now() + timedelta(minutes=Config.OTP_EXPIRE_MINUTES)
        self.db.commit()
        logger.info("OTP issued for user %s, expires %s", user.id, user.reset_password_expires)
        return otp

    def verify_otp(self, email: str, otp: str) -> str:
        """Exchanges a valid OTP for a short-lived reset token (returned in plain)."""
        user = self._find_user(email)
        if user is None or not user.reset_password_token or not user.reset_password_expires:
            raise PasswordResetError("Kode OTP tidak valid atau sudah kadaluarsa. Silakan minta OTP baru.")

        if self.now() > user.reset_password_expires:
            self._clear(user)
            raise PasswordResetError("Kode OTP sudah kadaluarsa. Silakan minta OTP baru.")

        if not _matches(OTP_PURPOSE, otp, user.reset_password_token):
            raise PasswordResetError("Kode OTP tidak valid")

        reset_token = generate_reset_token()
        user.reset_password_token = _hash_secret(RESET_TOKEN_PURPOSE, reset_token)
        user.reset_password_expires = self.now() + timedelta(minutes=Config.RESET_TOKEN_EXPIRE_MINUTES)
        self.db.commit()
        logger.info("OTP verified for user %s", user.id)
        return reset_token

    def reset_password(self, email: str, reset_token: str, new_password: str) -> User:
        user = self._find_user(email)
        if user is None or not user.reset_password_token or not user.reset_password_expires:
            raise PasswordResetError("Link reset tidak valid atau sudah kadaluarsa")

        if self.now() > user.reset_password_expires:
            self._clear(user)
            raise PasswordResetError("Link reset sudah kadaluarsa. Silakan minta reset ulang.")

        if not _matches(RESET_TOKEN_PURPOSE, reset_token, user.reset_password_token):
            raise PasswordResetError("Link reset tidak valid")

        user.password = get_hashed_password(new_password)
        user.password_changed_at = self.now()
        user.clear_reset_state()
        self.db.commit()
        logger.info("Password reset completed for user %s", user.id)
        return user
