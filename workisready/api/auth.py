"""
workisready/api/auth.py

Purpose: Authentication endpoints

- Register (sends verification email)
- Login / logout with opaque bearer tokens
- Email verification link target and resend
- Forgotten password: emailed reset link, then reset
"""

from fastapi import APIRouter, Depends, status

from utils.constants import (
    EMAIL_VERIFIED_MESSAGE,
    LOGIN_MESSAGE,
    PASSWORD_RESET_MESSAGE,
    PASSWORD_RESET_SENT_MESSAGE,
    REGISTRATION_MESSAGE,
    VERIFICATION_RESENT_MESSAGE,
)
from workisready.api.dependencies import get_bearer_token, get_user_service
from workisready.schemas.requests import EmailRequest, LoginRequest, RegisterRequest, ResetPasswordRequest
from workisready.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, users: UserService = Depends(get_user_service)):
    user = await users.register(payload.name, payload.email, payload.password, **payload.profile())
    return {"success": True, "message": REGISTRATION_MESSAGE, "user": user}


@router.post("/login")
async def login(payload: LoginRequest, users: UserService = Depends(get_user_service)):
    session = await users.login(payload.email, payload.password)
    return {"success": True, "message": LOGIN_MESSAGE, **session}


@router.get("/verify-email/{token}")
async def verify_email(token: str, users: UserService = Depends(get_user_service)):
    user = await users.verify_email(token)
    return {"success": True, "message": EMAIL_VERIFIED_MESSAGE, "user": user}


@router.post("/logout")
async def logout(token: str = Depends(get_bearer_token), users: UserService = Depends(get_user_service)):
    await users.logout(token)
    return {"success": True, "message": "Logged out"}


@router.post("/resend-verification")
async def resend_verification(payload: EmailRequest, users: UserService = Depends(get_user_service)):
    await users.resend_verification(payload.email)
    return {"success": True, "message": VERIFICATION_RESENT_MESSAGE}


@router.post("/forgot-password")
async def forgot_password(payload: EmailRequest, users: UserService = Depends(get_user_service)):
    await users.forgot_password(payload.email)
    return {"success": True, "message": PASSWORD_RESET_SENT_MESSAGE}


@router.post("/reset-password")
async def reset_password(payload: ResetPasswordRequest, users: UserService = Depends(get_user_service)):
    await users.reset_password(payload.token, payload.password, payload.confirm_password)
    return {"success": True, "message": PASSWORD_RESET_MESSAGE}
