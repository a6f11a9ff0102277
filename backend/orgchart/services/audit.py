"""Audit trail for employee mutations.

Entries are staged on the caller's session and committed together with the
change they describe.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlmodel import col

from orgchart.models.audit import AuditLog
from orgchart.models.enums import AuditAction, AuditEntityType

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from orgchart.models.employee import Employee


def snapshot(employee: Employee) -> dict[str, Any]:
    """JSON-safe copy of an employee row."""
    return employee.model_dump(mode="json")


def record_change(
    session: AsyncSession,
    action: AuditAction,
    employee: Employee,
    before: dict[str, Any] | None = None,
) -> AuditLog:
    """Stage an entry for ``employee``; deletions keep only the ``before`` snapshot."""
    after = None if action == AuditAction.DELETE else snapshot(employee)
    if action == AuditAction.DELETE and before is None:
        before = snapshot(employee)
    entry = AuditLog(
        entity_type=AuditEntityType.EMPLOYEE.value,
        entity_id=employee.id,
        action=action.value,
        before_json=before,
        after_json=after,
    )
    session.add(entry)
    return entry


async def history(session: AsyncSession, employee_id: uuid.UUID) -> list[AuditLog]:
    """Audit entries of one employee, oldest first."""
    result = await session.execute(
        select(AuditLog)
        .where(col(AuditLog.entity_type) == AuditEntityType.EMPLOYEE.value)
        .where(col(AuditLog.entity_id) == employee_id)
        .order_by(col(AuditLog.created_at))
    )
    return list(result.scalars().all())
