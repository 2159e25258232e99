import uuid
from fastapi import Depends, Request, Response
from fastapi_users import BaseUserManager, InvalidPasswordException, UUIDIDMixin
from typing import Optional, Union
import logging

from settings.config import settings
from .schemas import UserCreate
from .sqlalchemy_db import get_user_db
from .tables import UserTable
from fastapi_users_db_sqlalchemy import SQLAlchemyUserDatabase

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class UserManager(UUIDIDMixin, BaseUserManager[UserTable, uuid.UUID]):
    reset_password_token_secret = settings.ENV_RESET_PASSWORD_TOKEN_SECRET
    verification_token_secret = settings.ENV_VERIFICATION_TOKEN_SECRET

    async def validate_password(self, password: str, user: Union[UserCreate, UserTable]) -> None:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidPasswordException(
                reason=f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )
        if user.email and user.email.lower() in password.lower():
            raise InvalidPasswordException(reason="Password should not contain e-mail")

    async def on_after_register(self, user: UserTable, request: Optional[Request] = None):
        logger.info(f"User {user.email} has registered.")

    async def on_after_login(
        self,
        user: UserTable,
        request: Optional[Request] = None,
        response: Optional[Response] = None,
    ):
        logger.info(f"User {user.email} logged in.")


async def get_user_manager(user_db: SQLAlchemyUserDatabase = Depends(get_user_db)) -> UserManager:
    yield UserManager(user_db)
