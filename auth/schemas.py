from __future__ import annotations

import uuid
from typing import Optional

from fastapi_users import schemas
from pydantic import ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from schemas.common import ApiModel

_camel = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserRead(schemas.BaseUser[uuid.UUID]):
    model_config = _camel

    name: Optional[str] = None


class UserCreate(schemas.BaseUserCreate):
    model_config = _camel

    name: Optional[str] = Field(default=None, max_length=120)


class UserUpdate(schemas.BaseUserUpdate):
    model_config = _camel

    name: Optional[str] = Field(default=None, max_length=120)


class LoginIn(ApiModel):
    email: EmailStr
    password: str


class AuthOut(ApiModel):
    user: UserRead
    token: str


class MeOut(ApiModel):
    user: UserRead
