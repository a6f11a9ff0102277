"""Filtering, sorting and paging for the employee table view."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterable, Sequence

    from orgchart.schemas.employee import EmployeeRecord

T = TypeVar("T")

DEFAULT_ROWS_PER_PAGE = 10

_SEARCHABLE = ("employee_number", "name", "surname", "email", "role")


@dataclass
class Page(Generic[T]):
    items: list[T]
    page: int
    pages: int
    total: int


def filter_employees(
    employees: Iterable[EmployeeRecord],
    *,
    search: str = "",
    role: str | None = None,
    manager_id: uuid.UUID | None = None,
) -> list[EmployeeRecord]:
    """Keep rows matching the free-text search, the role and the manager filters."""
    needle = search.strip().lower()
    rows = []
    for employee in employees:
        if needle and not any(needle in str(getattr(employee, attr, "")).lower() for attr in _SEARCHABLE):
            continue
        if role is not None and employee.role != role:
            continue
        if manager_id is not None and employee.reporting_manager_id != manager_id:
            continue
        rows.append(employee)
    return rows


def sort_employees(
    employees: Iterable[EmployeeRecord],
    column: str = "name",
    *,
    descending: bool = False,
) -> list[EmployeeRecord]:
    """Sort by one column. Empty values come first ascending and last descending."""
    present: list[tuple[Any, EmployeeRecord]] = []
    missing: list[EmployeeRecord] = []
    for employee in employees:
        value = getattr(employee, column)
        if value is None:
            missing.append(employee)
        else:
            present.append((value, employee))
    present.sort(key=lambda pair: pair[0], reverse=descending)
    ordered = [employee for _, employee in present]
    return ordered + missing if descending else missing + ordered


def paginate(items: Sequence[T], page: int = 1, rows_per_page: int = DEFAULT_ROWS_PER_PAGE) -> Page[T]:
    """Slice one 1-based page; out-of-range pages are clamped."""
    if rows_per_page < 1:
        msg = "rows_per_page must be positive"
        raise ValueError(msg)
    total = len(items)
    pages = max(1, math.ceil(total / rows_per_page))
    page = min(max(page, 1), pages)
    start = (page - 1) * rows_per_page
    return Page(items=list(items[start : start + rows_per_page]), page=page, pages=pages, total=total)
