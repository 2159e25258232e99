from typing import Dict
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth.routes import router as auth_router
from auth.auth import fastapi_users, auth_backend
from auth.schemas import UserRead, UserUpdate
from db.session import init_db, close_db
import logging
from settings.config import settings
from budgets.budget_routes import router as budget_router
from transactions.transaction_routes import router as transaction_router
from settings.logging_config import configure_logging
from exceptions import (
    FinTrackException,
    fintrack_exception_handler,
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing database")
    await init_db()
    yield
    logger.info("Closing database")
    await close_db()


def get_app() -> FastAPI:
    configure_logging()
    logger.info("Starting FinTrack API")
    app = FastAPI(title="FinTrack API", lifespan=lifespan)

    origins = settings.cors_origins_list or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Every error leaves as {message, code}
    app.add_exception_handler(FinTrackException, fintrack_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Routers
    app.include_router(auth_router)
    app.include_router(
        fastapi_users.get_auth_router(auth_backend),
        prefix="/api/auth/jwt",
        tags=["auth"],
    )
    app.include_router(
        fastapi_users.get_users_router(UserRead, UserUpdate),
        prefix="/api/users",
        tags=["users"],
    )
    app.include_router(transaction_router)
    app.include_router(budget_router)
    logger.info("Routers initialized successfully")

    # Health
    @app.get("/health")
    async def health_check() -> Dict[str, str]:
        logger.debug("Health check")
        return {"status": "ok"}

    logger.info("API started")
    return app


# ASGI app instance
app = get_app()
