from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from fastapi_users import InvalidPasswordException
from fastapi_users.authentication import JWTStrategy
from fastapi_users.exceptions import UserAlreadyExists
from fastapi_users.router.common import ErrorCode

from .auth import get_current_user, get_jwt_strategy
from .schemas import AuthOut, LoginIn, MeOut, UserCreate, UserRead
from .tables import UserTable
from .user_manager import UserManager, get_user_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
async def register(
    payload: UserCreate,
    request: Request,
    user_manager: UserManager = Depends(get_user_manager),
    strategy: JWTStrategy = Depends(get_jwt_strategy),
) -> AuthOut:
    try:
        user = await user_manager.create(payload, safe=True, request=request)
    except UserAlreadyExists:
        logger.warning("Registration rejected, e-mail already in use: %s", payload.email)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=ErrorCode.REGISTER_USER_ALREADY_EXISTS)
    except InvalidPasswordException as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": ErrorCode.REGISTER_INVALID_PASSWORD, "reason": e.reason},
        )
    token = await strategy.write_token(user)
    return AuthOut(user=UserRead.model_validate(user), token=token)


@router.post("/login", response_model=AuthOut)
async def login(
    payload: LoginIn,
    request: Request,
    user_manager: UserManager = Depends(get_user_manager),
    strategy: JWTStrategy = Depends(get_jwt_strategy),
) -> AuthOut:
    credentials = OAuth2PasswordRequestForm(username=payload.email, password=payload.password)
    user = await user_manager.authenticate(credentials)
    if user is None or not user.is_active:
        logger.warning("Failed login for %s", payload.email)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=ErrorCode.LOGIN_BAD_CREDENTIALS)
    await user_manager.on_after_login(user, request)
    token = await strategy.write_token(user)
    return AuthOut(user=UserRead.model_validate(user), token=token)


@router.get("/me", response_model=MeOut)
async def me(user: UserTable = Depends(get_current_user)) -> MeOut:
    return MeOut(user=UserRead.model_validate(user))
