# pm_api/services/token_service.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict

import jwt
from pydantic import ValidationError
from sqlalchemy.orm import Session

from pm_api.config import settings
from pm_api.core.security import SigningKey
from pm_api.entities import User
from pm_api.exceptions import AppError, ErrorCode
from pm_api.models.auth import Actor, IntrospectResponse, TokenClaims
from pm_api.repositories.user_repository import UserRepository
from pm_api.services.permission_service import permission_claims

logger = logging.getLogger(__name__)

ALGORITHM = "HS512"
VERIFICATION_TOKEN_TYPE = "OTP_VERIFICATION"
REFRESH_TOKEN_TYPE = "refresh"


class TokenService:
    """
    Issues and validates HS512 tokens.

    Access tokens carry identity plus the flattened role permissions; refresh
    tokens carry only subject, type and expiry. All tokens share one signing key.
    """

    def __init__(
        self,
        key: SigningKey,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
        verification_ttl: timedelta = timedelta(minutes=10),
    ):
        self._key = key
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.verification_ttl = verification_ttl

    # ---------- Issue ----------

    def _encode(self, payload: Dict[str, Any], ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {**payload, "iat": now, "exp": now + ttl}
        return jwt.encode(payload, self._key.material, algorithm=ALGORITHM)

    def issue_access_token(self, user: User) -> str:
        if user.role is None:
            logger.error("User ID %s has no role, cannot issue access token", user.id)
            raise AppError(ErrorCode.TOKEN_GENERATION_FAILED)
        try:
            claims = {
                "sub": user.email,
                "id": user.id,
                "email": user.email,
                "role": user.role.name,
                "permissions": [p.model_dump(by_alias=True) for p in permission_claims(user.role)],
            }
            return self._encode(claims, self.access_ttl)
        except (TypeError, ValueError, jwt.PyJWTError) as e:
            logger.error("Access token generation failed for user ID %s: %s", user.id, e)
            raise AppError(ErrorCode.TOKEN_GENERATION_FAILED) from e

    def issue_refresh_token(self, user: User) -> str:
        return self._encode({"sub": user.email, "type": REFRESH_TOKEN_TYPE}, self.refresh_ttl)

    def issue_verification_token(self, email: str) -> str:
        return self._encode(
            {"sub": email, "email": email, "type": VERIFICATION_TOKEN_TYPE},
            self.verification_ttl,
        )

    # ---------- Validate ----------

    def validate(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(
                token,
                self._key.material,
                algorithms=[ALGORITHM],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise AppError(ErrorCode.TOKEN_EXPIRED)
        except jwt.InvalidSignatureError:
            raise AppError(ErrorCode.TOKEN_SIGNATURE_INVALID)
        except jwt.DecodeError:
            raise AppError(ErrorCode.TOKEN_MALFORMED)
        except jwt.InvalidTokenError:
            raise AppError(ErrorCode.TOKEN_INVALID)

        try:
            return TokenClaims.model_validate(payload)
        except ValidationError:
            raise AppError(ErrorCode.TOKEN_INVALID)

    def introspect(self, token: str) -> IntrospectResponse:
        try:
            self.validate(token)
        except AppError as e:
            logger.warning("Token introspection failed: %s", e.message)
            return IntrospectResponse(valid=False)
        return IntrospectResponse(valid=True)

    def decode(self, token: str) -> Actor:
        """
        Request-path decoding: introspection gate first, then validation and
        actor materialization. Every failure surfaces as TOKEN_INVALID.
        """
        if not self.introspect(token).valid:
            raise AppError(ErrorCode.TOKEN_INVALID)
        try:
            claims = self.validate(token)
        except AppError:
            raise AppError(ErrorCode.TOKEN_INVALID)

        if claims.id is None or not claims.role:
            # refresh and verification tokens carry no identity claims
            raise AppError(ErrorCode.TOKEN_INVALID)
        return Actor(
            id=claims.id,
            email=claims.email or claims.sub,
            role=claims.role,
            permissions=claims.permissions,
        )

    # ---------- Refresh ----------

    def refresh_access_token(self, db: Session, refresh_token: str) -> str:
        claims = self.validate(refresh_token)
        if claims.type != REFRESH_TOKEN_TYPE:
            logger.warning("Rejected non-refresh token on refresh, type: %s", claims.type)
            raise AppError(ErrorCode.TOKEN_INVALID)
        user = UserRepository(db).get_by_email(claims.sub)
        if user is None:
            raise AppError(ErrorCode.USER_NOT_FOUND)
        logger.info("Re-issuing access token for user ID %s", user.id)
        return self.issue_access_token(user)


@lru_cache
def get_token_service() -> TokenService:
    return TokenService(
        key=SigningKey.from_hex(settings.JWT_SECRET),
        access_ttl=timedelta(seconds=settings.JWT_ACCESS_TOKEN_TTL_SECONDS),
        refresh_ttl=timedelta(seconds=settings.JWT_REFRESH_TOKEN_TTL_SECONDS),
        verification_ttl=timedelta(seconds=settings.JWT_VERIFICATION_TOKEN_TTL_SECONDS),
    )
