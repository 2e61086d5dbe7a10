"""
ParkShare Backend — Auth Route Handlers
=========================================

What:  POST /api/auth/register, POST /api/auth/login, GET /api/auth/me.
Who:   Called by the web client's sign-up and sign-in forms. The token
       returned is sent back as `Authorization: Bearer <token>`.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from parkshare.dependencies import get_current_user, get_db_session
from parkshare.models.user import User
from parkshare.schemas.common import ErrorResponse
from parkshare.schemas.user import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserEnvelope,
    UserPublic,
)
from parkshare.services.auth_service import auth_service

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Invalid body or email taken", "model": ErrorResponse}},
    summary="Create an account",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.register(db=db, payload=payload)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"description": "Invalid email or password", "model": ErrorResponse}},
    summary="Exchange credentials for a token",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.login(db=db, payload=payload)


@router.get(
    "/me",
    response_model=UserEnvelope,
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
    summary="Profile of the token holder",
)
async def me(user: User = Depends(get_current_user)) -> UserEnvelope:
    return UserEnvelope(data=UserPublic.model_validate(user))
