from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from orgchart.exceptions import ConflictError, EmployeeNotFoundError
from orgchart.models.base import now_utc
from orgchart.models.employee import Employee
from orgchart.models.enums import AuditAction, JobRole
from orgchart.schemas.employee import EmployeeRecord, ManagerOption, RoleOption
from orgchart.services import rules
from orgchart.services.audit import record_change, snapshot
from orgchart.services.hierarchy import descendant_ids

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from orgchart.schemas.employee import EmployeeDraft

logger = logging.getLogger(__name__)

_NUMBER_PREFIX = "EMP"
_NUMBER_PATTERN = re.compile(rf"^{_NUMBER_PREFIX}(\d+)$")
_MAX_INSERT_ATTEMPTS = 3


def next_employee_number(existing: Iterable[str]) -> str:
    """Return the display number following the highest ``EMPnnn`` in use."""
    highest = 0
    for number in existing:
        match = _NUMBER_PATTERN.match(number or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{_NUMBER_PREFIX}{highest + 1:03d}"


async def _load_roster(session: AsyncSession) -> list[Employee]:
    result = await session.execute(select(Employee).order_by(col(Employee.employee_number)))
    return list(result.scalars().all())


def _find(roster: list[Employee], employee_id: uuid.UUID) -> Employee:
    employee = next((e for e in roster if e.id == employee_id), None)
    if employee is None:
        raise EmployeeNotFoundError("Employee not found")
    return employee


async def list_employees(session: AsyncSession) -> list[EmployeeRecord]:
    """Every employee, ordered by employee number."""
    return [EmployeeRecord.from_model(e) for e in await _load_roster(session)]


def list_roles() -> list[RoleOption]:
    return [RoleOption(role=role.value) for role in sorted(JobRole, key=lambda r: r.value)]


async def list_manager_options(session: AsyncSession, exclude_id: uuid.UUID | None = None) -> list[ManagerOption]:
    """Candidate reporting-line managers ordered by name.

    With ``exclude_id`` the employee and all of its transitive reports are left
    out, since picking any of them would create a reporting cycle.
    """
    roster = await _load_roster(session)
    excluded: set[uuid.UUID] = set()
    if exclude_id is not None:
        excluded = descendant_ids(roster, exclude_id) | {exclude_id}
    candidates = sorted((e for e in roster if e.id not in excluded), key=lambda e: (e.name, e.surname))
    return [ManagerOption(id=e.id, name=e.name, surname=e.surname, role=e.role) for e in candidates]


async def email_exists(session: AsyncSession, email: str) -> bool:
    result = await session.execute(select(col(Employee.id)).where(col(Employee.email) == email.strip().lower()))
    return result.first() is not None


async def _flush_or_rollback(session: AsyncSession) -> bool:
    """Flush pending changes; on a constraint violation roll back and return False."""
    try:
        await session.flush()
    except IntegrityError as exc:
        logger.info("Write lost to a concurrent change: %s", exc.orig)
        await session.rollback()
        return False
    return True


async def create_employee(session: AsyncSession, draft: EmployeeDraft) -> EmployeeRecord:
    """Insert a new employee after checking it against the current roster.

    A concurrent insert can take the same employee number, e-mail or the CEO
    slot between the roster read and the flush. The roster is then re-read:
    the rules report a taken e-mail or CEO slot, and a taken number is retried
    with the next free one.
    """
    for attempt in range(1, _MAX_INSERT_ATTEMPTS + 1):
        roster = await _load_roster(session)
        checked = rules.check_new_employee(roster, draft)

        employee = Employee(
            employee_number=next_employee_number(e.employee_number for e in roster),
            name=checked.name,
            surname=checked.surname,
            email=checked.email,
            role=checked.role,
            reporting_manager_id=checked.reporting_manager_id,
            birth_date=checked.birth_date,
            salary=checked.salary,
            profile_image_url=checked.profile_image_url,
        )
        session.add(employee)
        if await _flush_or_rollback(session):
            break
        logger.info("Employee number %s was taken (attempt %d)", employee.employee_number, attempt)
    else:
        raise ConflictError("The directory changed while saving. Please try again.")

    record_change(session, AuditAction.CREATE, employee)

    await session.commit()
    await session.refresh(employee)
    logger.info("Created employee %s (%s, %s)", employee.id, employee.employee_number, employee.role)
    return EmployeeRecord.from_model(employee)


async def update_employee(
    session: AsyncSession,
    employee_id: uuid.UUID,
    changes: dict[str, Any],
) -> EmployeeRecord:
    """Apply a partial update; the returned record is the stored version."""
    roster = await _load_roster(session)
    employee = _find(roster, employee_id)
    effective = rules.check_changes(roster, employee, changes)

    before = snapshot(employee)
    for key, value in effective.items():
        setattr(employee, key, value)
    employee.updated_at = now_utc()
    session.add(employee)
    if not await _flush_or_rollback(session):
        # Re-check against the committed roster so the caller sees which rule broke.
        roster = await _load_roster(session)
        rules.check_changes(roster, _find(roster, employee_id), changes)
        raise ConflictError("The directory changed while saving. Please try again.")

    record_change(session, AuditAction.UPDATE, employee, before)

    await session.commit()
    await session.refresh(employee)
    logger.info("Updated employee %s: %s", employee.id, ", ".join(sorted(effective)) or "no changes")
    return EmployeeRecord.from_model(employee)


async def delete_employee(session: AsyncSession, employee_id: uuid.UUID) -> EmployeeRecord:
    """Remove an employee nobody reports to and return the deleted record."""
    roster = await _load_roster(session)
    employee = _find(roster, employee_id)
    rules.check_removal(roster, employee.id)

    record = EmployeeRecord.from_model(employee)
    record_change(session, AuditAction.DELETE, employee)

    await session.delete(employee)
    await session.commit()
    logger.info("Deleted employee %s (%s)", employee_id, record.employee_number)
    return record
