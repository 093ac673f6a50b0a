"""
app/api/auth.py

Authentication endpoints: register, verify email, login, session and
self-service account updates.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.api.deps import get_current_user
from app.core.config import settings
from app.models.user import strip_private_fields
from app.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    ResendVerificationRequest,
    UpdateDetailsRequest,
    UpdatePasswordRequest,
)
from app.schemas.response import success_response
from app.services import auth_service

router = APIRouter(prefix="/auth")


def _token_response(user: Dict[str, Any]) -> JSONResponse:
    token, body = auth_service.token_response(user)
    response = JSONResponse(content=body)
    response.set_cookie(
        key=settings.COOKIE_NAME,
        value=token,
        max_age=settings.JWT_COOKIE_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )
    return response


def _base_url(request: Request) -> str:
    return str(request.base_url).rstrip("/")


@router.post("/register")
async def register(body: RegisterRequest, request: Request):
    data = body.model_dump()
    result = await auth_service.register(data, _base_url(request))
    return success_response(result)


@router.get("/verify-email/{code}")
async def verify_email(code: str):
    user = await auth_service.verify_email(code)
    return _token_response(user)


@router.post("/resend-verification")
async def resend_verification(body: ResendVerificationRequest, request: Request):
    result = await auth_service.resend_verification(body.email, _base_url(request))
    return success_response(result)


@router.post("/login")
async def login(body: LoginRequest):
    user = await auth_service.login(body.email, body.password)
    return _token_response(user)


@router.get("/me")
async def get_me(user: Dict[str, Any] = Depends(get_current_user)):
    return success_response(strip_private_fields(user))


@router.get("/logout")
async def logout(user: Dict[str, Any] = Depends(get_current_user)):
    response = JSONResponse(content=success_response())
    response.delete_cookie(settings.COOKIE_NAME, httponly=True, samesite="strict")
    return response


@router.put("/updatedetails")
async def update_details(body: UpdateDetailsRequest, user: Dict[str, Any] = Depends(get_current_user)):
    updated = await auth_service.update_details(user, body.model_dump(exclude_unset=True, exclude_none=True))
    return success_response(updated)


@router.put("/updatepassword")
async def update_password(body: UpdatePasswordRequest, user: Dict[str, Any] = Depends(get_current_user)):
    updated = await auth_service.update_password(user, body.current_password, body.new_password)
    return _token_response(updated)
