"""Org chart construction from a flat employee roster.

Employees point at their manager through ``reporting_manager_id``. The roster is
turned into a forest whose roots are the employees without a manager (normally
just the CEO). Construction is a single adjacency pass followed by one iterative
traversal, so malformed input (cycles, references to employees that do not
exist) can never recurse forever: anything not reachable from a root is left
out of the forest and reported by :func:`unplaced_employees`.
"""

from __future__ import annotations

import uuid
from collections import defaultdict, deque
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Protocol, TypeVar

from orgchart.models.enums import SearchPolicy


class OrgMember(Protocol):
    """Anything that can be placed on the org chart."""

    id: uuid.UUID
    name: str
    surname: str
    email: str
    role: str
    reporting_manager_id: uuid.UUID | None


M = TypeVar("M", bound=OrgMember)


@dataclass
class HierarchyNode:
    """One employee on the chart together with its direct reports."""

    employee: OrgMember
    children: list[HierarchyNode] = field(default_factory=list)
    highlighted: bool = False
    expanded: bool = False
    contains_match: bool = False

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    @property
    def visible_children(self) -> list[HierarchyNode]:
        """Children a renderer should draw: all of them when expanded, none otherwise."""
        return self.children if self.expanded else []


def normalize_search(search_term: str | None) -> str:
    return (search_term or "").strip().lower()


def _haystack(employee: OrgMember) -> str:
    return f"{employee.name} {employee.surname} {employee.role}".lower()


def matches_search(employee: OrgMember, search_term: str | None) -> bool:
    """Case-insensitive substring match against ``"name surname role"``."""
    needle = normalize_search(search_term)
    return bool(needle) and needle in _haystack(employee)


def _sibling_key(employee: OrgMember) -> str:
    return str(employee.role)


def build_adjacency(employees: Iterable[M]) -> dict[uuid.UUID | None, list[M]]:
    """Map each manager id (``None`` for roots) to its direct reports, sorted by role."""
    reports: dict[uuid.UUID | None, list[M]] = defaultdict(list)
    for employee in employees:
        reports[employee.reporting_manager_id].append(employee)
    for siblings in reports.values():
        siblings.sort(key=_sibling_key)
    return dict(reports)


def direct_reports(employees: Iterable[M], employee_id: uuid.UUID) -> list[M]:
    return [e for e in employees if e.reporting_manager_id == employee_id and e.id != employee_id]


def has_children(employees: Iterable[OrgMember], employee_id: uuid.UUID) -> bool:
    return bool(direct_reports(employees, employee_id))


def descendant_ids(employees: Iterable[OrgMember], employee_id: uuid.UUID) -> set[uuid.UUID]:
    """All transitive reports of an employee. Terminates on cyclic input."""
    reports = build_adjacency(employees)
    found: set[uuid.UUID] = set()
    queue = deque([employee_id])
    while queue:
        current = queue.popleft()
        for child in reports.get(current, []):
            if child.id in found or child.id == employee_id:
                continue
            found.add(child.id)
            queue.append(child.id)
    return found


def ancestor_ids(employees: Iterable[OrgMember], employee_id: uuid.UUID) -> set[uuid.UUID]:
    """Managers above an employee up to the root, stopping at a cycle or a dangling reference."""
    by_id = {e.id: e for e in employees}
    found: set[uuid.UUID] = set()
    current = by_id.get(employee_id)
    while current is not None and current.reporting_manager_id is not None:
        manager_id = current.reporting_manager_id
        if manager_id in found or manager_id == employee_id:
            break
        found.add(manager_id)
        current = by_id.get(manager_id)
    return found


def _focus(employees: Sequence[M], needle: str) -> list[M]:
    """Restrict the roster to matches plus their ancestors and descendants."""
    keep: set[uuid.UUID] = set()
    for employee in employees:
        if needle in _haystack(employee):
            keep.add(employee.id)
            keep |= ancestor_ids(employees, employee.id)
            keep |= descendant_ids(employees, employee.id)
    return [e for e in employees if e.id in keep]


def build_forest(
    employees: Iterable[OrgMember],
    search_term: str | None = "",
    expanded_ids: Iterable[uuid.UUID] | None = None,
    policy: SearchPolicy = SearchPolicy.HIGHLIGHT,
) -> list[HierarchyNode]:
    """Build the org chart forest.

    With the default ``HIGHLIGHT`` policy a search term never changes which
    nodes exist: matching nodes are flagged and every node is expanded so the
    matches are visible. ``FOCUS`` prunes the roster to the matches, their
    ancestors and their descendants first.
    """
    needle = normalize_search(search_term)
    members = list(employees)
    if needle and policy == SearchPolicy.FOCUS:
        members = _focus(members, needle)

    reports = build_adjacency(members)
    expanded = set(expanded_ids or ())
    placed: set[uuid.UUID] = set()
    forest: list[HierarchyNode] = []
    preorder: list[HierarchyNode] = []

    stack: list[tuple[OrgMember, list[HierarchyNode]]] = [(root, forest) for root in reversed(reports.get(None, []))]
    while stack:
        employee, siblings = stack.pop()
        if employee.id in placed:
            continue
        placed.add(employee.id)
        node = HierarchyNode(
            employee=employee,
            highlighted=bool(needle) and needle in _haystack(employee),
            expanded=bool(needle) or employee.id in expanded,
        )
        siblings.append(node)
        preorder.append(node)
        stack.extend((child, node.children) for child in reversed(reports.get(employee.id, [])))

    # Children precede their parents in reverse pre-order.
    for node in reversed(preorder):
        node.contains_match = node.highlighted or any(child.contains_match for child in node.children)

    return forest


def iter_nodes(forest: Iterable[HierarchyNode]) -> Iterator[HierarchyNode]:
    """Every node of the forest in depth-first order, ignoring expansion."""
    stack = list(reversed(list(forest)))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def iter_visible(forest: Iterable[HierarchyNode]) -> Iterator[tuple[int, HierarchyNode]]:
    """``(depth, node)`` rows a renderer draws, descending only into expanded nodes."""
    stack = [(0, node) for node in reversed(list(forest))]
    while stack:
        depth, node = stack.pop()
        yield depth, node
        stack.extend((depth + 1, child) for child in reversed(node.visible_children))


def unplaced_employees(employees: Iterable[M], forest: Iterable[HierarchyNode]) -> list[M]:
    """Employees missing from the forest because of a cycle or a dangling manager reference."""
    placed = {node.employee.id for node in iter_nodes(forest)}
    return [e for e in employees if e.id not in placed]


class ExpansionState:
    """Which chart nodes the user has expanded."""

    def __init__(self, expanded_ids: Iterable[uuid.UUID] = (), *, expanded_by_default: bool = False) -> None:
        self._ids: set[uuid.UUID] = set(expanded_ids)
        self.expanded_by_default = expanded_by_default

    @property
    def ids(self) -> frozenset[uuid.UUID]:
        return frozenset(self._ids)

    def sync(self, employees: Iterable[OrgMember]) -> None:
        """Expand every employee when expansion is on by default.

        The directory store calls this through
        :meth:`~orgchart.directory.store.DirectoryStore.track_expansion` whenever
        its roster changes.
        """
        if self.expanded_by_default:
            self._ids = {e.id for e in employees}

    def toggle(self, employee_id: uuid.UUID) -> bool:
        """Flip one node and return whether it is now expanded."""
        if employee_id in self._ids:
            self._ids.discard(employee_id)
            return False
        self._ids.add(employee_id)
        return True

    def expand(self, employee_id: uuid.UUID) -> None:
        self._ids.add(employee_id)

    def collapse(self, employee_id: uuid.UUID) -> None:
        self._ids.discard(employee_id)

    def is_expanded(self, employee_id: uuid.UUID, search_term: str | None = "") -> bool:
        # An active search forces every node open.
        return bool(normalize_search(search_term)) or employee_id in self._ids
