from sqlmodel import SQLModel

from orgchart.models.audit import AuditLog
from orgchart.models.base import TimestampMixin, UUIDBase
from orgchart.models.employee import Employee
from orgchart.models.enums import (
    AuditAction,
    AuditEntityType,
    JobRole,
    MutationState,
    Operation,
    SearchPolicy,
)

__all__ = [
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "Employee",
    "JobRole",
    "MutationState",
    "Operation",
    "SQLModel",
    "SearchPolicy",
    "TimestampMixin",
    "UUIDBase",
]
