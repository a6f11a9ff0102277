# ruff: noqa: TC003
from __future__ import annotations

import hashlib
import re
import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from pydantic import ConfigDict, Field, ValidationInfo, field_validator

from orgchart.models.enums import JobRole
from orgchart.schemas.base import WireModel

if TYPE_CHECKING:
    from orgchart.models.employee import Employee

_EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")

_REQUIRED_MESSAGES = {
    "name": "Name is required",
    "surname": "Surname is required",
}


def gravatar_url(email: str) -> str:
    """Return the Gravatar identicon URL for an e-mail address."""
    digest = hashlib.md5(email.strip().lower().encode("utf-8"), usedforsecurity=False).hexdigest()
    return f"https://www.gravatar.com/avatar/{digest}?d=identicon"


def _require_text(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise ValueError(_REQUIRED_MESSAGES[field])
    return value.strip()


def _normalise_email(value: str | None) -> str:
    if value is None or not value.strip():
        msg = "Email is required"
        raise ValueError(msg)
    email = value.strip().lower()
    if not _EMAIL_PATTERN.match(email):
        msg = "Email is invalid"
        raise ValueError(msg)
    return email


def _require_role(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        msg = "Role is required"
        raise ValueError(msg)
    return value


class EmployeeDraft(WireModel):
    """Form data for a new employee, before the service assigns an id."""

    model_config = ConfigDict(use_enum_values=True)

    name: str
    surname: str
    email: str
    role: JobRole
    reporting_manager_id: uuid.UUID | None = None
    birth_date: date | None = None
    salary: float | None = Field(default=None, ge=0)
    profile_image_url: str | None = Field(default=None, max_length=500)

    @field_validator("name", "surname")
    @classmethod
    def _check_text(cls, value: str, info: ValidationInfo) -> str:
        return _require_text(value, info.field_name)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        return _normalise_email(value)

    @field_validator("role", mode="before")
    @classmethod
    def _check_role(cls, value: Any) -> Any:
        return _require_role(value)


class EmployeeChanges(WireModel):
    """Partial update of an employee. Only fields that were sent are applied."""

    model_config = ConfigDict(use_enum_values=True)

    name: str | None = None
    surname: str | None = None
    email: str | None = None
    role: JobRole | None = None
    reporting_manager_id: uuid.UUID | None = None
    birth_date: date | None = None
    salary: float | None = Field(default=None, ge=0)
    profile_image_url: str | None = Field(default=None, max_length=500)

    @field_validator("name", "surname")
    @classmethod
    def _check_text(cls, value: str | None, info: ValidationInfo) -> str:
        return _require_text(value, info.field_name)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str | None) -> str:
        return _normalise_email(value)

    @field_validator("role", mode="before")
    @classmethod
    def _check_role(cls, value: Any) -> Any:
        return _require_role(value)

    def to_changes(self) -> dict[str, Any]:
        """Return only the fields explicitly set, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)


class UpdateEmployeeRequest(EmployeeChanges):
    """RPC payload for ``updateEmployee``: the target id plus its changes."""

    id: uuid.UUID

    def to_changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"id"})


class EmployeeIdRequest(WireModel):
    """RPC payload naming a single employee."""

    id: uuid.UUID


class EmailCheckRequest(WireModel):
    """RPC payload for ``checkEmailExists``."""

    email: str = Field(min_length=1)


class EmailCheckResponse(WireModel):
    exists: bool


class ManagerOptionsRequest(WireModel):
    """RPC payload for ``getReportingLineManager``."""

    exclude_id: uuid.UUID | None = None


class EmployeeRecord(WireModel):
    """An employee as returned by the persistence service."""

    id: uuid.UUID
    employee_number: str
    name: str
    surname: str
    email: str
    role: str
    reporting_manager_id: uuid.UUID | None = None
    birth_date: date | None = None
    salary: float | None = None
    profile_image_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}"

    @classmethod
    def from_model(cls, employee: Employee) -> EmployeeRecord:
        return cls(
            id=employee.id,
            employee_number=employee.employee_number,
            name=employee.name,
            surname=employee.surname,
            email=employee.email,
            role=str(employee.role),
            reporting_manager_id=employee.reporting_manager_id,
            birth_date=employee.birth_date,
            salary=employee.salary,
            profile_image_url=employee.profile_image_url or gravatar_url(employee.email),
            created_at=employee.created_at,
            updated_at=employee.updated_at,
        )


class ManagerOption(WireModel):
    """Entry of the reporting-line-manager dropdown."""

    id: uuid.UUID
    name: str
    surname: str
    role: str


class RoleOption(WireModel):
    role: str
