# pm_api/services/auth_service.py
import logging

from sqlalchemy.orm import Session

from pm_api.core.security import hash_password, is_valid_email, is_valid_password, verify_password
from pm_api.entities import User
from pm_api.exceptions import AppError, ErrorCode
from pm_api.models.auth import AuthResponse, RegisterRequest
from pm_api.repositories.user_repository import RoleRepository, UserRepository
from pm_api.services.permission_service import DEVELOPER
from pm_api.services.token_service import TokenService, VERIFICATION_TOKEN_TYPE

logger = logging.getLogger(__name__)


# ---------- Login / register ----------

def login(db: Session, tokens: TokenService, email: str, password: str) -> AuthResponse:
    if not is_valid_email(email):
        logger.warning("Invalid email format on login: %s", email)
        raise AppError(ErrorCode.INVALID_EMAIL_FORMAT)

    user = UserRepository(db).get_by_email(email)
    if user is None:
        raise AppError(ErrorCode.USER_NOT_FOUND)
    if not verify_password(password, user.password_hash):
        raise AppError(ErrorCode.ACCOUNT_INVALID)

    logger.info("User ID %s logged in", user.id)
    return AuthResponse(
        access_token=tokens.issue_access_token(user),
        refresh_token=tokens.issue_refresh_token(user),
    )


def register(db: Session, req: RegisterRequest) -> User:
    email = str(req.email)
    if not is_valid_email(email):
        raise AppError(ErrorCode.INVALID_EMAIL_FORMAT)
    if not is_valid_password(req.password):
        raise AppError(ErrorCode.INVALID_PASSWORD_FORMAT)

    users = UserRepository(db)
    if users.exists_by_email(email):
        raise AppError(ErrorCode.DUPLICATE_ENTITY, "Email already exists")

    # self-registration always yields a developer; promotion is an admin action
    role = RoleRepository(db).get_by_name(DEVELOPER)
    if role is None:
        raise AppError(ErrorCode.INTERNAL_ERROR, f"Role {DEVELOPER} is not seeded")

    user = users.add(User(
        name=req.name,
        email=email,
        password_hash=hash_password(req.password),
        role=role,
    ))
    db.commit()
    logger.info("Registered user ID %s with role %s", user.id, DEVELOPER)
    return user


# ---------- Refresh ----------

def refresh(db: Session, tokens: TokenService, refresh_token: str) -> str:
    return tokens.refresh_access_token(db, refresh_token)


# ---------- Password reset ----------

def reset_password(db: Session, tokens: TokenService, token: str, new_password: str) -> None:
    """Consumes a verification token issued after OTP confirmation."""
    claims = tokens.validate(token)
    if not claims.email:
        logger.warning("Email not found in reset token")
        raise AppError(ErrorCode.TOKEN_INVALID)
    if claims.type != VERIFICATION_TOKEN_TYPE:
        logger.warning("Invalid token type for password reset: %s", claims.type)
        raise AppError(ErrorCode.TOKEN_INVALID)
    if not is_valid_password(new_password):
        raise AppError(ErrorCode.INVALID_PASSWORD_FORMAT)

    user = UserRepository(db).get_by_email(claims.email)
    if user is None:
        raise AppError(ErrorCode.USER_NOT_FOUND)
    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info("Password reset successful for user ID %s", user.id)
