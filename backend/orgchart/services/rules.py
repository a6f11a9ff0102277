"""Consistency rules every directory mutation must pass.

The checks run over the full roster and are shared by the directory client
(before anything is sent) and the persistence service (before anything is
written), so both sides reject the same mutations with the same errors.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from orgchart.exceptions import (
    CeoAlreadyExistsError,
    DuplicateEmailError,
    EmployeeValidationError,
    RoleHasDependentsError,
)
from orgchart.models.enums import JobRole
from orgchart.services.hierarchy import descendant_ids, direct_reports

if TYPE_CHECKING:
    import uuid
    from collections.abc import Sequence

    from orgchart.schemas.employee import EmployeeDraft
    from orgchart.services.hierarchy import OrgMember

MANAGER_FIELD = "reportingManagerId"


def find_ceo(employees: Sequence[OrgMember], *, exclude_id: uuid.UUID | None = None) -> OrgMember | None:
    return next((e for e in employees if e.role == JobRole.CEO and e.id != exclude_id), None)


def _check_email_free(employees: Sequence[OrgMember], email: str, *, exclude_id: uuid.UUID | None = None) -> None:
    if any(e.email.lower() == email.lower() and e.id != exclude_id for e in employees):
        raise DuplicateEmailError("Email already exists", fields={"email": "Email already exists"})


def _check_manager(
    employees: Sequence[OrgMember],
    manager_id: uuid.UUID,
    *,
    employee_id: uuid.UUID | None = None,
) -> None:
    if not any(e.id == manager_id for e in employees):
        msg = "Reporting line manager does not exist"
        raise EmployeeValidationError(msg, fields={MANAGER_FIELD: msg})
    if employee_id is None:
        return
    if manager_id == employee_id:
        msg = "An employee cannot report to themselves"
        raise EmployeeValidationError(msg, fields={MANAGER_FIELD: msg})
    if manager_id in descendant_ids(employees, employee_id):
        msg = "An employee cannot report to one of their own reports"
        raise EmployeeValidationError(msg, fields={MANAGER_FIELD: msg})


def _manager_required() -> EmployeeValidationError:
    msg = "Reporting Line Manager is required"
    return EmployeeValidationError(msg, fields={MANAGER_FIELD: msg})


def check_new_employee(employees: Sequence[OrgMember], draft: EmployeeDraft) -> EmployeeDraft:
    """Validate a draft against the roster and return it with the CEO rule applied."""
    if draft.role == JobRole.CEO:
        if find_ceo(employees) is not None:
            msg = "A CEO already exists in the system. Only one CEO is allowed."
            raise CeoAlreadyExistsError(msg, fields={"role": msg})
        draft = draft.model_copy(update={"reporting_manager_id": None})
    elif draft.reporting_manager_id is None:
        raise _manager_required()
    else:
        _check_manager(employees, draft.reporting_manager_id)
    _check_email_free(employees, draft.email)
    return draft


def check_changes(
    employees: Sequence[OrgMember],
    current: OrgMember,
    changes: dict[str, Any],
) -> dict[str, Any]:
    """Validate a partial update of ``current`` and return the change set to apply."""
    effective = dict(changes)

    if "email" in effective:
        _check_email_free(employees, effective["email"], exclude_id=current.id)

    new_role = effective.get("role", current.role)
    if "role" in effective and new_role != current.role:
        dependents = direct_reports(employees, current.id)
        if dependents:
            msg = "Cannot update employee role. There are still employees reporting to the current employee."
            raise RoleHasDependentsError(msg, dependent_count=len(dependents), fields={"role": msg})
        if new_role == JobRole.CEO and find_ceo(employees, exclude_id=current.id) is not None:
            msg = "A CEO already exists in the system. Only one CEO is allowed."
            raise CeoAlreadyExistsError(msg, fields={"role": msg})

    if new_role == JobRole.CEO:
        # A CEO reports to nobody.
        effective["reporting_manager_id"] = None
        return effective

    manager_id = effective.get("reporting_manager_id", current.reporting_manager_id)
    if manager_id is None:
        raise _manager_required()
    if "reporting_manager_id" in effective:
        _check_manager(employees, manager_id, employee_id=current.id)
    return effective


def check_removal(employees: Sequence[OrgMember], employee_id: uuid.UUID) -> None:
    dependents = direct_reports(employees, employee_id)
    if dependents:
        msg = "Cannot delete employee. There are still employees reporting to this employee."
        raise RoleHasDependentsError(msg, dependent_count=len(dependents))
