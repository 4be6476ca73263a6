# pm_api/services/otp_service.py
"""
One-time passwords for the password-reset flow.

send_otp stores a bcrypt hash of a fresh numeric code (replacing any pending
one) and hands the plain code to an OtpSender. verify_otp consumes the code
and returns a short-lived verification token accepted by reset-password.
"""
from __future__ import annotations

import logging
import secrets
import string
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Optional

from sqlalchemy.orm import Session

from pm_api.config import settings
from pm_api.core.database import unit_of_work
from pm_api.core.security import hash_password, verify_password
from pm_api.entities import OtpCode
from pm_api.exceptions import AppError, ErrorCode
from pm_api.repositories.otp_repository import OtpRepository
from pm_api.repositories.user_repository import UserRepository
from pm_api.services.token_service import TokenService

logger = logging.getLogger(__name__)

OTP_SUBJECT = "Your One-Time Password (OTP)"


class OtpSender:
    """Delivery stub: logs that a code went out. Swap in a mail-backed sender via dependency override."""

    def send(self, email: str, subject: str, body: str) -> None:
        logger.info("OTP message '%s' queued for %s", subject, email)


@lru_cache
def get_otp_sender() -> OtpSender:
    return OtpSender()


def _generate_code(length: int) -> str:
    return "".join(secrets.choice(string.digits) for _ in range(length))


def _require_known_email(db: Session, email: str) -> None:
    if not UserRepository(db).exists_by_email(email):
        logger.warning("Email not found in the database: %s", email)
        raise AppError(ErrorCode.USER_NOT_FOUND)


def send_otp(
    db: Session,
    sender: OtpSender,
    email: str,
    ttl: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> None:
    _require_known_email(db, email)
    ttl = ttl or timedelta(seconds=settings.OTP_TTL_SECONDS)
    now = now or datetime.now()
    code = _generate_code(settings.OTP_LENGTH)

    with unit_of_work(db):
        otps = OtpRepository(db)
        otp = otps.get_by_email(email) or OtpCode(email=email)
        otp.code_hash = hash_password(code)
        otp.expires_at = now + ttl
        otps.save(otp)

        minutes = max(1, int(ttl.total_seconds()) // 60)
        try:
            sender.send(email, OTP_SUBJECT, f"Your OTP is: {code}. It will expire in {minutes} minute(s).")
        except OSError as e:
            logger.error("Failed to send OTP to %s: %s", email, e)
            raise AppError(ErrorCode.EMAIL_SENDING_FAILED) from e

    logger.info("OTP sent to email: %s", email)


def verify_otp(
    db: Session, tokens: TokenService, email: str, code: str, now: Optional[datetime] = None
) -> str:
    """A code is single-use: it is deleted once it matches or is found expired."""
    _require_known_email(db, email)
    now = now or datetime.now()

    with unit_of_work(db):
        otps = OtpRepository(db)
        otp = otps.get_by_email(email)
        if otp is None:
            logger.warning("OTP not found for email: %s", email)
            raise AppError(ErrorCode.OTP_EXPIRED)
        if otp.expires_at < now:
            # the delete must commit before the expiry is reported
            otps.delete(otp)
            expired = True
        else:
            expired = False
            if not verify_password(code, otp.code_hash):
                logger.warning("Invalid OTP provided for email: %s", email)
                raise AppError(ErrorCode.OTP_INVALID)
            otps.delete(otp)

    if expired:
        logger.warning("OTP expired for email: %s", email)
        raise AppError(ErrorCode.OTP_EXPIRED)
    logger.info("OTP verified successfully for email: %s", email)
    return tokens.issue_verification_token(email)
