from __future__ import annotations

from typing import Optional

from fastapi_users_db_sqlalchemy import SQLAlchemyBaseUserTableUUID
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from db.models import Base as AppBase


class UserTable(SQLAlchemyBaseUserTableUUID, AppBase):
    __tablename__ = "users"

    name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
