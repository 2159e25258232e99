from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi_users.router.common import ErrorCode
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# Human wording for fastapi-users error codes
_ERROR_CODE_MESSAGES: dict[str, str] = {
    ErrorCode.LOGIN_BAD_CREDENTIALS.value: "Invalid email or password",
    ErrorCode.REGISTER_USER_ALREADY_EXISTS.value: "User already exists",
    ErrorCode.REGISTER_INVALID_PASSWORD.value: "Invalid password",
    ErrorCode.UPDATE_USER_EMAIL_ALREADY_EXISTS.value: "Email already in use",
    ErrorCode.UPDATE_USER_INVALID_PASSWORD.value: "Invalid password",
}


class FinTrackException(Exception):
    """
    Base exception for the API.

    Carries the HTTP status and a machine-readable code so handlers can
    render the `{message, code}` envelope.
    """

    def __init__(self, message: str, code: str = "FINTRACK_ERROR", status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code}


class NotFoundError(FinTrackException):
    def __init__(self, resource: str, resource_id: Any):
        super().__init__(
            message=f"{resource} not found",
            code=f"{resource.upper()}_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
        )
        self.resource_id = resource_id


class TransactionNotFoundError(NotFoundError):
    def __init__(self, transaction_id: Any):
        super().__init__("Transaction", transaction_id)


class BudgetNotFoundError(NotFoundError):
    def __init__(self, budget_id: Any):
        super().__init__("Budget", budget_id)


class InvalidBudgetWindowError(FinTrackException):
    def __init__(self) -> None:
        super().__init__(
            message="endDate must not be before startDate",
            code="INVALID_BUDGET_WINDOW",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


def _plain(value: Any) -> str:
    # fastapi-users error codes are str enums; str() would render the member name
    return str(value.value) if isinstance(value, Enum) else str(value)


def _http_error_body(exc: StarletteHTTPException) -> dict[str, Any]:
    detail = exc.detail
    if isinstance(detail, dict):
        code = _plain(detail.get("code", f"HTTP_{exc.status_code}"))
        reason = detail.get("reason") or _ERROR_CODE_MESSAGES.get(code, code)
        return {"message": str(reason), "code": code}
    detail = _plain(detail)
    if detail in _ERROR_CODE_MESSAGES:
        return {"message": _ERROR_CODE_MESSAGES[detail], "code": detail}
    return {"message": detail, "code": f"HTTP_{exc.status_code}"}


async def fintrack_exception_handler(request: Request, exc: FinTrackException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_http_error_body(exc),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "message": "Validation error",
            "code": "VALIDATION_ERROR",
            # Raw inputs are left out; a non-finite number cannot be rendered as JSON
            "errors": jsonable_encoder(
                [{"loc": err.get("loc"), "msg": err.get("msg"), "type": err.get("type")} for err in exc.errors()]
            ),
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Server error", "code": "INTERNAL_ERROR"},
    )
