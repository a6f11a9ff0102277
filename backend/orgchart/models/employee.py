# ruff: noqa: TC003
from __future__ import annotations

import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field

from orgchart.models.base import TimestampMixin, UUIDBase


class Employee(UUIDBase, TimestampMixin, table=True):
    """A person in the directory, linked to a manager by id."""

    __tablename__ = "employee"
    __table_args__ = (
        # At most one CEO.
        sa.Index(
            "uq_employee_single_ceo",
            "role",
            unique=True,
            postgresql_where=sa.text("role = 'CEO'"),
            sqlite_where=sa.text("role = 'CEO'"),
        ),
    )

    employee_number: str = Field(max_length=20, unique=True)
    name: str = Field(max_length=100)
    surname: str = Field(max_length=100)
    email: str = Field(max_length=255, unique=True)
    role: str = Field(max_length=50, index=True)
    reporting_manager_id: uuid.UUID | None = Field(default=None, foreign_key="employee.id", index=True)
    birth_date: datetime.date | None = None
    salary: float | None = None
    profile_image_url: str | None = Field(default=None, max_length=500)
