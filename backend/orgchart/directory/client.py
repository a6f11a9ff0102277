from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Self, TypeVar

import httpx
from pydantic import ValidationError

from orgchart.config import get_settings
from orgchart.exceptions import AppError, NetworkError, error_from_body
from orgchart.models.enums import Operation
from orgchart.schemas.base import WireModel
from orgchart.schemas.employee import EmailCheckResponse, EmployeeChanges, EmployeeRecord, ManagerOption, RoleOption

if TYPE_CHECKING:
    import uuid
    from types import TracebackType

    from orgchart.schemas.employee import EmployeeDraft

logger = logging.getLogger(__name__)

W = TypeVar("W", bound=WireModel)

_MALFORMED = "Malformed response from the directory service"


def _decode(model: type[W], data: Any) -> W:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise NetworkError(_MALFORMED) from exc


def _decode_list(model: type[W], data: Any) -> list[W]:
    if not isinstance(data, list):
        raise NetworkError(_MALFORMED)
    return [_decode(model, item) for item in data]


class DirectoryClient:
    """Client for the directory RPC endpoint.

    Every call is a single ``POST`` of ``{"type": ..., "payload": ...}``. Error
    bodies are turned back into the matching :class:`~orgchart.exceptions.AppError`
    subclass; transport failures and unexpected answers raise
    :class:`~orgchart.exceptions.NetworkError`. There is no retry.
    """

    def __init__(
        self,
        endpoint: str | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        self.endpoint = endpoint or settings.api_url
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout or settings.api_timeout_seconds)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def call(self, operation: Operation, payload: dict[str, Any] | None = None) -> Any:
        """Send one operation and return the decoded JSON result."""
        body: dict[str, Any] = {"type": operation.value}
        if payload is not None:
            body["payload"] = payload
        try:
            response = await self._http.post(self.endpoint, json=body)
        except httpx.HTTPError as exc:
            logger.warning("%s request failed: %s", operation, exc)
            raise NetworkError(f"Request failed: {exc}") from exc

        if response.is_success:
            try:
                return response.json()
            except ValueError:
                raise NetworkError(_MALFORMED, response.status_code) from None
        raise self._error_for(operation, response)

    @staticmethod
    def _error_for(operation: Operation, response: httpx.Response) -> AppError:
        try:
            error = error_from_body(response.json(), response.status_code)
        except (ValueError, ValidationError, TypeError):
            error = NetworkError(f"HTTP error! status: {response.status_code}", response.status_code)
        logger.info("%s rejected with %s (%s): %s", operation, error.code, response.status_code, error.message)
        return error

    async def get_employees(self) -> list[EmployeeRecord]:
        data = await self.call(Operation.GET_EMPLOYEES)
        return _decode_list(EmployeeRecord, data)

    async def get_roles(self) -> list[str]:
        data = await self.call(Operation.GET_ROLE)
        return [option.role for option in _decode_list(RoleOption, data)]

    async def get_manager_options(self, exclude_id: uuid.UUID | None = None) -> list[ManagerOption]:
        payload = {"excludeId": str(exclude_id)} if exclude_id is not None else None
        data = await self.call(Operation.GET_REPORTING_LINE_MANAGER, payload)
        return _decode_list(ManagerOption, data)

    async def email_exists(self, email: str) -> bool:
        data = await self.call(Operation.CHECK_EMAIL_EXISTS, {"email": email})
        return _decode(EmailCheckResponse, data).exists

    async def create_employee(self, draft: EmployeeDraft) -> EmployeeRecord:
        payload = draft.model_dump(mode="json", by_alias=True, exclude_none=True)
        return _decode(EmployeeRecord, await self.call(Operation.CREATE_EMPLOYEE, payload))

    async def update_employee(self, employee_id: uuid.UUID, changes: dict[str, Any]) -> EmployeeRecord:
        payload = EmployeeChanges(**changes).model_dump(mode="json", by_alias=True, exclude_unset=True)
        payload["id"] = str(employee_id)
        return _decode(EmployeeRecord, await self.call(Operation.UPDATE_EMPLOYEE, payload))

    async def delete_employee(self, employee_id: uuid.UUID) -> EmployeeRecord:
        data = await self.call(Operation.DELETE_EMPLOYEE, {"id": str(employee_id)})
        return _decode(EmployeeRecord, data)
