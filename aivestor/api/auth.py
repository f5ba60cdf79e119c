from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from aivestor.dependencies import get_auth_service, get_current_user, limiter
from aivestor.schemas.auth import (
    ForgotPasswordRequest,
    GoogleLoginRequest,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    TokenMessageResponse,
    VerifyEmailRequest,
)
from aivestor.schemas.user import UserResponse
from aivestor.services.auth_service import FORGOT_PASSWORD_MESSAGE, AuthService

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
@limiter.limit("5/minute")
async def register(body: RegisterRequest, request: Request, auth: AuthService = Depends(get_auth_service)):
    user = await auth.register(body.email, body.password, body.risk_tolerance)
    return RegisterResponse(message="User registered", user=UserResponse.model_validate(user))


@router.post("/login", response_model=LoginResponse)
@limiter.limit("10/minute")
async def login(body: LoginRequest, request: Request, auth: AuthService = Depends(get_auth_service)):
    result = await auth.login(body.email, body.password)
    return LoginResponse(
        message="Login successful", token=result.token, user=UserResponse.model_validate(result.user)
    )


@router.post("/google", response_model=LoginResponse)
@limiter.limit("10/minute")
async def google_login(body: GoogleLoginRequest, request: Request, auth: AuthService = Depends(get_auth_service)):
    result = await auth.google_login(body.id_token)
    return LoginResponse(
        message="Google login successful", token=result.token, user=UserResponse.model_validate(result.user)
    )


@router.post("/forgot-password", response_model=TokenMessageResponse)
@limiter.limit("5/minute")
async def forgot_password(body: ForgotPasswordRequest, request: Request, auth: AuthService = Depends(get_auth_service)):
    token = await auth.forgot_password(body.email)
    return TokenMessageResponse(message=FORGOT_PASSWORD_MESSAGE, token=token)


@router.post("/reset-password", response_model=TokenMessageResponse)
@limiter.limit("5/minute")
async def reset_password(body: ResetPasswordRequest, request: Request, auth: AuthService = Depends(get_auth_service)):
    await auth.reset_password(body.token, body.password)
    return TokenMessageResponse(message="Password reset successful")


@router.post("/send-verification", response_model=TokenMessageResponse)
@limiter.limit("5/minute")
async def send_verification(
    request: Request,
    user: dict = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    token = await auth.send_verification(user.get("email") or "")
    return TokenMessageResponse(message="Verification email sent", token=token)


@router.post("/verify-email", response_model=TokenMessageResponse)
@limiter.limit("10/minute")
async def verify_email(body: VerifyEmailRequest, request: Request, auth: AuthService = Depends(get_auth_service)):
    await auth.verify_email(body.token)
    return TokenMessageResponse(message="Email verified successfully")


@router.post("/refresh", response_model=TokenMessageResponse)
@limiter.limit("30/minute")
async def refresh(
    request: Request,
    user: dict = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    return TokenMessageResponse(message="Token refreshed successfully", token=auth.refresh(user))
