from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pm_api.deps import get_current_actor, get_db
from pm_api.models.auth import (
    Actor, IntrospectRequest, LoginRequest, MeResponse, RefreshRequest, RefreshResponse,
    RegisterRequest, ResetPasswordRequest,
)
from pm_api.models.common import ApiResponse, success
from pm_api.services import auth_service
from pm_api.services.token_service import TokenService, get_token_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=ApiResponse, summary="Login with email and password")
def login(req: LoginRequest, db: Session = Depends(get_db), tokens: TokenService = Depends(get_token_service)):
    return success(auth_service.login(db, tokens, req.email, req.password), "Login successful")


@router.post("/register", response_model=ApiResponse, summary="Register a new user")
def register(req: RegisterRequest, db: Session = Depends(get_db)):
    user = auth_service.register(db, req)
    return success({"id": user.id, "email": user.email, "role": user.role.name}, "User registered successfully")


@router.post("/refresh", response_model=ApiResponse)
def refresh(req: RefreshRequest, db: Session = Depends(get_db), tokens: TokenService = Depends(get_token_service)):
    access_token = auth_service.refresh(db, tokens, req.refresh_token)
    return success(RefreshResponse(access_token=access_token), "Token refreshed")


@router.post("/introspect", response_model=ApiResponse)
def introspect(req: IntrospectRequest, tokens: TokenService = Depends(get_token_service)):
    return success(tokens.introspect(req.token))


@router.post("/reset-password", response_model=ApiResponse)
def reset_password(
    req: ResetPasswordRequest,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    auth_service.reset_password(db, tokens, req.token, req.new_password)
    return success(message="Password reset successfully")


@router.get("/me", response_model=ApiResponse, summary="Current user with authorities")
def me(actor: Actor = Depends(get_current_actor)):
    return success(MeResponse(
        id=actor.id,
        email=actor.email,
        role=actor.role,
        authorities=sorted(actor.authorities),
    ))
