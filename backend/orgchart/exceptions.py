from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, ClassVar

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from orgchart.schemas.base import WireModel

logger = logging.getLogger(__name__)


class ErrorResponse(WireModel):
    """Standard error response schema."""

    error: str
    code: str | None = None
    dependent_count: int | None = None
    fields: dict[str, str] | None = None


class AppError(Exception):
    """Base application exception."""

    code: ClassVar[str] = "INTERNAL_ERROR"
    default_status: ClassVar[int] = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        *,
        dependent_count: int | None = None,
        fields: dict[str, str] | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code or self.default_status
        self.dependent_count = dependent_count
        self.fields = fields or {}
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error=self.message,
            code=self.code,
            dependent_count=self.dependent_count,
            fields=self.fields or None,
        )


class EmployeeValidationError(AppError):
    """A field is missing or malformed, or the change would break the reporting tree."""

    code = "VALIDATION_ERROR"
    default_status = 422


class DuplicateEmailError(AppError):
    code = "DUPLICATE_EMAIL"
    default_status = status.HTTP_409_CONFLICT


class CeoAlreadyExistsError(AppError):
    code = "CEO_ALREADY_EXISTS"
    default_status = status.HTTP_409_CONFLICT


class RoleHasDependentsError(AppError):
    """Other employees still report to the target of a role change or deletion."""

    code = "ROLE_HAS_DEPENDENTS"
    default_status = status.HTTP_409_CONFLICT


class EmployeeNotFoundError(AppError):
    code = "NOT_FOUND"
    default_status = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """A concurrent write kept the change from being saved; retrying may succeed."""

    code = "CONFLICT"
    default_status = status.HTTP_409_CONFLICT


class UnsupportedOperationError(AppError):
    code = "UNSUPPORTED_OPERATION"
    default_status = status.HTTP_400_BAD_REQUEST


class NetworkError(AppError):
    """The persistence service could not be reached or answered unexpectedly."""

    code = "NETWORK_ERROR"
    default_status = status.HTTP_502_BAD_GATEWAY


ERRORS_BY_CODE: dict[str, type[AppError]] = {
    cls.code: cls
    for cls in (
        EmployeeValidationError,
        DuplicateEmailError,
        CeoAlreadyExistsError,
        RoleHasDependentsError,
        EmployeeNotFoundError,
        ConflictError,
        UnsupportedOperationError,
    )
}


def field_errors(errors: Iterable[Mapping[str, Any]]) -> dict[str, str]:
    """Flatten pydantic error dicts into ``{"field": "message"}``, first message wins."""
    fields: dict[str, str] = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        key = ".".join(loc) or "payload"
        message = str(err.get("msg", "Invalid value")).removeprefix("Value error, ")
        fields.setdefault(key, message)
    return fields


def error_from_body(body: Mapping[str, Any], status_code: int) -> AppError:
    """Rebuild the typed error described by an error response body."""
    response = ErrorResponse.model_validate(body)
    error_cls = ERRORS_BY_CODE.get(response.code or "", NetworkError)
    return error_cls(
        response.error,
        status_code,
        dependent_count=response.dependent_count,
        fields=response.fields,
    )


def _render(exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(by_alias=True, exclude_none=True),
        headers={"Access-Control-Allow-Origin": "*"},
    )


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return _render(exc)


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _render(EmployeeValidationError("Invalid request body", fields=field_errors(exc.errors())))


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error while serving %s %s", request.method, request.url.path)
    return _render(AppError("Internal server error"))


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_exception_handler)
