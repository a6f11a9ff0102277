# ruff: noqa: TC001
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from fastapi import APIRouter, Response
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from orgchart.db import SessionDep
from orgchart.exceptions import EmployeeValidationError, UnsupportedOperationError, field_errors
from orgchart.middleware import CORS_PREFLIGHT_HEADERS
from orgchart.models.enums import Operation
from orgchart.schemas.employee import (
    EmailCheckRequest,
    EmailCheckResponse,
    EmployeeDraft,
    EmployeeIdRequest,
    ManagerOptionsRequest,
    UpdateEmployeeRequest,
)
from orgchart.schemas.rpc import RpcRequest
from orgchart.services import employee as employee_service

logger = logging.getLogger(__name__)

rpc_router = APIRouter(tags=["rpc"])

P = TypeVar("P", bound=BaseModel)
Handler = Callable[[AsyncSession, dict[str, Any] | None], Awaitable[Any]]


def _parse(model: type[P], payload: dict[str, Any] | None) -> P:
    try:
        return model.model_validate(payload or {})
    except ValidationError as exc:
        raise EmployeeValidationError("Invalid payload", fields=field_errors(exc.errors())) from None


async def _get_employees(session: AsyncSession, payload: dict[str, Any] | None) -> Any:
    return await employee_service.list_employees(session)


async def _get_roles(session: AsyncSession, payload: dict[str, Any] | None) -> Any:
    return employee_service.list_roles()


async def _get_managers(session: AsyncSession, payload: dict[str, Any] | None) -> Any:
    request = _parse(ManagerOptionsRequest, payload)
    return await employee_service.list_manager_options(session, request.exclude_id)


async def _check_email(session: AsyncSession, payload: dict[str, Any] | None) -> Any:
    request = _parse(EmailCheckRequest, payload)
    return EmailCheckResponse(exists=await employee_service.email_exists(session, request.email))


async def _create(session: AsyncSession, payload: dict[str, Any] | None) -> Any:
    return await employee_service.create_employee(session, _parse(EmployeeDraft, payload))


async def _update(session: AsyncSession, payload: dict[str, Any] | None) -> Any:
    request = _parse(UpdateEmployeeRequest, payload)
    return await employee_service.update_employee(session, request.id, request.to_changes())


async def _delete(session: AsyncSession, payload: dict[str, Any] | None) -> Any:
    request = _parse(EmployeeIdRequest, payload)
    return await employee_service.delete_employee(session, request.id)


HANDLERS: dict[Operation, Handler] = {
    Operation.GET_EMPLOYEES: _get_employees,
    Operation.GET_ROLE: _get_roles,
    Operation.GET_REPORTING_LINE_MANAGER: _get_managers,
    Operation.CHECK_EMAIL_EXISTS: _check_email,
    Operation.CREATE_EMPLOYEE: _create,
    Operation.UPDATE_EMPLOYEE: _update,
    Operation.DELETE_EMPLOYEE: _delete,
}


@rpc_router.post("/api", response_model=None)
async def dispatch(request: RpcRequest, session: SessionDep) -> Any:
    """Run one directory operation named by ``type``."""
    try:
        operation = Operation(request.type)
    except ValueError:
        raise UnsupportedOperationError("Unsupported request type") from None
    logger.debug("Dispatching %s", operation)
    return await HANDLERS[operation](session, request.payload)


@rpc_router.options("/api", status_code=204)
async def preflight() -> Response:
    """Answer CORS preflight requests that bypass the middleware."""
    return Response(status_code=204, headers=CORS_PREFLIGHT_HEADERS)
