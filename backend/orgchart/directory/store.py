"""Session-wide employee directory.

The store owns the in-memory snapshot of employees and roles that forms,
dropdowns, table views and the org chart read from. Mutations are checked
locally with the same rules the persistence service applies, then submitted;
the service's answer is authoritative and is folded back into the snapshot by
:meth:`DirectoryStore.apply_mutation_result`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import ValidationError

from orgchart.exceptions import AppError, EmployeeNotFoundError, EmployeeValidationError, field_errors
from orgchart.models.enums import AuditAction, JobRole, MutationState, SearchPolicy
from orgchart.schemas.employee import EmployeeChanges, EmployeeDraft, EmployeeRecord
from orgchart.services import rules
from orgchart.services.hierarchy import build_forest, descendant_ids, unplaced_employees

if TYPE_CHECKING:
    import uuid

    from orgchart.directory.client import DirectoryClient
    from orgchart.services.hierarchy import ExpansionState, HierarchyNode

logger = logging.getLogger(__name__)

T = TypeVar("T")

TransitionListener = Callable[[MutationState], None]


class DirectoryStore:
    """In-memory employee directory backed by a :class:`DirectoryClient`."""

    def __init__(self, client: DirectoryClient) -> None:
        self._client = client
        self._employees: list[EmployeeRecord] = []
        self._roles: list[str] = []
        self._listeners: list[TransitionListener] = []
        self._expansions: list[ExpansionState] = []
        self.state = MutationState.IDLE
        self.field_errors: dict[str, str] = {}
        self.last_error: AppError | None = None

    # ------------------------------------------------------------------
    # Loading and reads
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """Replace the snapshot with the service's employees and roles.

        Both fetches always run to completion; if either fails the snapshot is
        left untouched and the first error is raised.
        """
        employees, roles = await asyncio.gather(
            self._client.get_employees(),
            self._client.get_roles(),
            return_exceptions=True,
        )
        for result in (employees, roles):
            if isinstance(result, BaseException):
                raise result
        self._roles = roles
        self._set_employees(employees)

    async def refresh(self) -> None:
        """Re-fetch employees only."""
        self._set_employees(await self._client.get_employees())

    def list_employees(self) -> list[EmployeeRecord]:
        return list(self._employees)

    @property
    def roles(self) -> list[str]:
        return list(self._roles)

    def get(self, employee_id: uuid.UUID) -> EmployeeRecord | None:
        return next((e for e in self._employees if e.id == employee_id), None)

    def available_roles(self, employee_id: uuid.UUID | None = None) -> list[str]:
        """Roles an employee may be given: CEO is withheld while somebody else holds it."""
        if rules.find_ceo(self._employees, exclude_id=employee_id) is None:
            return self.roles
        return [role for role in self._roles if role != JobRole.CEO]

    def manager_candidates(self, employee_id: uuid.UUID | None = None) -> list[EmployeeRecord]:
        """Employees that may become ``employee_id``'s manager without creating a cycle."""
        if employee_id is None:
            return self.list_employees()
        excluded = descendant_ids(self._employees, employee_id) | {employee_id}
        return [e for e in self._employees if e.id not in excluded]

    def hierarchy(
        self,
        search_term: str = "",
        expansion: ExpansionState | None = None,
        policy: SearchPolicy = SearchPolicy.HIGHLIGHT,
    ) -> list[HierarchyNode]:
        """Org chart over the snapshot. A passed ``expansion`` is tracked from then on."""
        if expansion is None:
            return build_forest(self._employees, search_term, None, policy)
        self.track_expansion(expansion)
        return build_forest(self._employees, search_term, expansion.ids, policy)

    def track_expansion(self, expansion: ExpansionState) -> None:
        """Keep ``expansion`` in step with the roster.

        States that expand by default are re-synced on every roster change, so
        newly loaded or created employees start expanded.
        """
        if expansion not in self._expansions:
            self._expansions.append(expansion)
            expansion.sync(self._employees)

    def _set_employees(self, employees: list[EmployeeRecord]) -> None:
        self._employees = employees
        for expansion in self._expansions:
            expansion.sync(employees)
        self._report_unplaced()

    def _report_unplaced(self) -> None:
        missing = unplaced_employees(self._employees, build_forest(self._employees))
        if missing:
            logger.warning(
                "%d employee(s) unreachable from the top of the org chart: %s",
                len(missing),
                ", ".join(e.employee_number for e in missing),
            )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def on_transition(self, listener: TransitionListener) -> None:
        """Register a callback invoked on every mutation state change."""
        self._listeners.append(listener)

    def _transition(self, state: MutationState) -> None:
        self.state = state
        for listener in self._listeners:
            listener(state)

    def _fail(self, state: MutationState, exc: AppError) -> None:
        self.last_error = exc
        self.field_errors = dict(exc.fields)
        self._transition(state)
        self._transition(MutationState.IDLE)

    async def _mutate(
        self,
        action: AuditAction,
        validate: Callable[[], T],
        submit: Callable[[T], Awaitable[EmployeeRecord]],
    ) -> EmployeeRecord:
        self.field_errors = {}
        self.last_error = None
        self._transition(MutationState.VALIDATING)
        try:
            prepared = validate()
        except AppError as exc:
            self._fail(MutationState.VALIDATION_FAILED, exc)
            raise

        self._transition(MutationState.SUBMITTING)
        try:
            record = await submit(prepared)
        except AppError as exc:
            self._fail(MutationState.REJECTED, exc)
            raise

        self._transition(MutationState.SUCCEEDED)
        self.apply_mutation_result(action, record)
        self._transition(MutationState.IDLE)
        return record

    def _require(self, employee_id: uuid.UUID) -> EmployeeRecord:
        employee = self.get(employee_id)
        if employee is None:
            raise EmployeeNotFoundError("Employee not found")
        return employee

    async def create(self, draft: Mapping[str, Any]) -> EmployeeRecord:
        """Validate and submit a new employee; the stored record is appended."""

        def validate() -> EmployeeDraft:
            try:
                parsed = EmployeeDraft.model_validate(dict(draft))
            except ValidationError as exc:
                raise EmployeeValidationError("Invalid employee", fields=field_errors(exc.errors())) from None
            return rules.check_new_employee(self._employees, parsed)

        return await self._mutate(AuditAction.CREATE, validate, self._client.create_employee)

    async def update(self, employee_id: uuid.UUID, changes: Mapping[str, Any]) -> EmployeeRecord:
        """Validate and submit a partial update; the service's record replaces the local one."""

        def validate() -> dict[str, Any]:
            current = self._require(employee_id)
            try:
                parsed = EmployeeChanges.model_validate(dict(changes))
            except ValidationError as exc:
                raise EmployeeValidationError("Invalid changes", fields=field_errors(exc.errors())) from None
            return rules.check_changes(self._employees, current, parsed.to_changes())

        async def submit(effective: dict[str, Any]) -> EmployeeRecord:
            try:
                return await self._client.update_employee(employee_id, effective)
            except EmployeeNotFoundError:
                self._forget(employee_id)
                raise

        return await self._mutate(AuditAction.UPDATE, validate, submit)

    async def delete(self, employee_id: uuid.UUID) -> None:
        """Remove an employee nobody reports to."""

        def validate() -> uuid.UUID:
            self._require(employee_id)
            rules.check_removal(self._employees, employee_id)
            return employee_id

        async def submit(target: uuid.UUID) -> EmployeeRecord:
            try:
                return await self._client.delete_employee(target)
            except EmployeeNotFoundError:
                self._forget(target)
                raise

        await self._mutate(AuditAction.DELETE, validate, submit)

    def _forget(self, employee_id: uuid.UUID) -> None:
        self._set_employees([e for e in self._employees if e.id != employee_id])

    def apply_mutation_result(self, action: AuditAction, record: EmployeeRecord) -> None:
        """Fold the service's answer to a mutation into the snapshot."""
        if action == AuditAction.CREATE:
            self._set_employees([*self._employees, record])
        elif action == AuditAction.UPDATE:
            self._set_employees([record if e.id == record.id else e for e in self._employees])
        elif action == AuditAction.DELETE:
            self._forget(record.id)
