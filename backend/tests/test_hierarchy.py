"""Tests for org chart construction, search marking and expansion."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

import pytest

from orgchart.models.enums import SearchPolicy
from orgchart.services.hierarchy import (
    ExpansionState,
    ancestor_ids,
    build_adjacency,
    build_forest,
    descendant_ids,
    direct_reports,
    has_children,
    iter_nodes,
    iter_visible,
    matches_search,
    unplaced_employees,
)


@dataclass
class Person:
    name: str
    surname: str
    role: str
    reporting_manager_id: uuid.UUID | None = None
    email: str = ""
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@pytest.fixture
def org() -> dict[str, Person]:
    """CEO <- CTO <- {DevA, DevB}."""
    ceo = Person("Grace", "Hopper", "CEO")
    cto = Person("Alan", "Turing", "CTO", ceo.id)
    dev_a = Person("Dev", "Alpha", "Developer", cto.id)
    dev_b = Person("Dev", "Beta", "Senior Developer", cto.id)
    return {"ceo": ceo, "cto": cto, "dev_a": dev_a, "dev_b": dev_b}


def _ids(forest: list) -> list[uuid.UUID]:
    return [node.employee.id for node in iter_nodes(forest)]


# ---------------------------------------------------------------------------
# Forest shape
# ---------------------------------------------------------------------------


def test_single_root_with_nested_reports(org: dict[str, Person]) -> None:
    forest = build_forest(org.values())
    assert len(forest) == 1
    root = forest[0]
    assert root.employee is org["ceo"]
    assert [c.employee for c in root.children] == [org["cto"]]
    assert {c.employee.id for c in root.children[0].children} == {org["dev_a"].id, org["dev_b"].id}


def test_every_employee_appears_exactly_once(org: dict[str, Person]) -> None:
    ids = _ids(build_forest(org.values()))
    assert sorted(ids) == sorted(p.id for p in org.values())


def test_empty_roster_builds_empty_forest() -> None:
    assert build_forest([]) == []


def test_children_sorted_by_role(org: dict[str, Person]) -> None:
    cto_node = build_forest(org.values())[0].children[0]
    assert [c.employee.role for c in cto_node.children] == ["Developer", "Senior Developer"]


def test_multiple_roots_when_several_have_no_manager() -> None:
    a = Person("A", "One", "CEO")
    b = Person("B", "Two", "Designer")
    forest = build_forest([a, b])
    assert {n.employee.id for n in forest} == {a.id, b.id}


def test_has_children_flag(org: dict[str, Person]) -> None:
    forest = build_forest(org.values())
    cto_node = forest[0].children[0]
    assert forest[0].has_children
    assert cto_node.has_children
    assert not cto_node.children[0].has_children


def test_build_is_idempotent(org: dict[str, Person]) -> None:
    first = build_forest(org.values(), "dev")
    second = build_forest(org.values(), "dev")
    assert first == second


# ---------------------------------------------------------------------------
# Malformed input
# ---------------------------------------------------------------------------


def test_cycle_terminates_and_is_reported() -> None:
    ceo = Person("Root", "Boss", "CEO")
    a = Person("A", "Loop", "Developer")
    b = Person("B", "Loop", "Developer", a.id)
    a.reporting_manager_id = b.id
    roster = [ceo, a, b]

    forest = build_forest(roster)

    assert _ids(forest) == [ceo.id]
    assert {e.id for e in unplaced_employees(roster, forest)} == {a.id, b.id}


def test_self_reference_is_unplaced() -> None:
    ceo = Person("Root", "Boss", "CEO")
    loner = Person("Self", "Managed", "Designer")
    loner.reporting_manager_id = loner.id
    forest = build_forest([ceo, loner])
    assert unplaced_employees([ceo, loner], forest) == [loner]


def test_dangling_manager_reference_is_unplaced() -> None:
    ceo = Person("Root", "Boss", "CEO")
    orphan = Person("Lost", "Soul", "Designer", uuid.uuid4())
    forest = build_forest([ceo, orphan])
    assert _ids(forest) == [ceo.id]
    assert unplaced_employees([ceo, orphan], forest) == [orphan]


def test_descendants_terminate_on_cycle() -> None:
    a = Person("A", "Loop", "Developer")
    b = Person("B", "Loop", "Developer", a.id)
    a.reporting_manager_id = b.id
    assert descendant_ids([a, b], a.id) == {b.id}
    assert ancestor_ids([a, b], a.id) == {b.id}


# ---------------------------------------------------------------------------
# Tree queries
# ---------------------------------------------------------------------------


def test_direct_reports_and_has_children(org: dict[str, Person]) -> None:
    roster = list(org.values())
    assert {e.id for e in direct_reports(roster, org["cto"].id)} == {org["dev_a"].id, org["dev_b"].id}
    assert has_children(roster, org["ceo"].id)
    assert not has_children(roster, org["dev_a"].id)


def test_descendant_and_ancestor_ids(org: dict[str, Person]) -> None:
    roster = list(org.values())
    assert descendant_ids(roster, org["ceo"].id) == {org["cto"].id, org["dev_a"].id, org["dev_b"].id}
    assert descendant_ids(roster, org["dev_a"].id) == set()
    assert ancestor_ids(roster, org["dev_b"].id) == {org["cto"].id, org["ceo"].id}


def test_build_adjacency_groups_by_manager(org: dict[str, Person]) -> None:
    reports = build_adjacency(org.values())
    assert reports[None] == [org["ceo"]]
    assert len(reports[org["cto"].id]) == 2


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def test_matches_search_is_case_insensitive(org: dict[str, Person]) -> None:
    assert matches_search(org["cto"], "  TURING ")
    assert matches_search(org["cto"], "alan tur")
    assert matches_search(org["dev_b"], "senior")
    assert not matches_search(org["ceo"], "")
    assert not matches_search(org["ceo"], "   ")


def test_search_highlights_without_changing_structure(org: dict[str, Person]) -> None:
    plain = build_forest(org.values())
    searched = build_forest(org.values(), "beta")

    assert _ids(plain) == _ids(searched)
    highlighted = [n.employee.id for n in iter_nodes(searched) if n.highlighted]
    assert highlighted == [org["dev_b"].id]


def test_search_expands_every_node(org: dict[str, Person]) -> None:
    forest = build_forest(org.values(), "beta")
    assert all(node.expanded for node in iter_nodes(forest))
    assert len(list(iter_visible(forest))) == 4


def test_contains_match_propagates_to_ancestors(org: dict[str, Person]) -> None:
    forest = build_forest(org.values(), "beta")
    ceo_node = forest[0]
    cto_node = ceo_node.children[0]
    dev_nodes = {c.employee.id: c for c in cto_node.children}
    assert ceo_node.contains_match
    assert cto_node.contains_match
    assert dev_nodes[org["dev_b"].id].contains_match
    assert not dev_nodes[org["dev_a"].id].contains_match


def test_blank_search_highlights_nothing(org: dict[str, Person]) -> None:
    forest = build_forest(org.values(), "   ")
    assert not any(n.highlighted for n in iter_nodes(forest))
    assert not any(n.expanded for n in iter_nodes(forest))


def test_focus_policy_prunes_to_matches_and_lineage(org: dict[str, Person]) -> None:
    designer = Person("Pat", "Sketch", "Designer", org["ceo"].id)
    roster = [*org.values(), designer]

    forest = build_forest(roster, "turing", policy=SearchPolicy.FOCUS)

    ids = set(_ids(forest))
    assert designer.id not in ids
    assert ids == {org["ceo"].id, org["cto"].id, org["dev_a"].id, org["dev_b"].id}


def test_focus_policy_without_matches_is_empty(org: dict[str, Person]) -> None:
    assert build_forest(org.values(), "nobody", policy=SearchPolicy.FOCUS) == []


# ---------------------------------------------------------------------------
# Expansion
# ---------------------------------------------------------------------------


def test_collapsed_by_default_shows_roots_only(org: dict[str, Person]) -> None:
    rows = list(iter_visible(build_forest(org.values())))
    assert [(depth, node.employee.id) for depth, node in rows] == [(0, org["ceo"].id)]


def test_expanded_ids_open_nodes(org: dict[str, Person]) -> None:
    forest = build_forest(org.values(), expanded_ids={org["ceo"].id})
    rows = [(depth, node.employee.id) for depth, node in iter_visible(forest)]
    assert rows == [(0, org["ceo"].id), (1, org["cto"].id)]


def test_expansion_state_toggle() -> None:
    state = ExpansionState()
    target = uuid.uuid4()
    assert state.toggle(target) is True
    assert state.is_expanded(target)
    assert state.toggle(target) is False
    assert not state.is_expanded(target)


def test_expansion_state_search_forces_open() -> None:
    state = ExpansionState()
    assert state.is_expanded(uuid.uuid4(), "dev")


def test_expansion_state_sync_expands_everyone_by_default(org: dict[str, Person]) -> None:
    state = ExpansionState(expanded_by_default=True)
    state.sync(org.values())
    assert state.ids == frozenset(p.id for p in org.values())

    state.collapse(org["cto"].id)
    assert not state.is_expanded(org["cto"].id)
    state.expand(org["cto"].id)
    assert state.is_expanded(org["cto"].id)


def test_expansion_state_sync_is_noop_when_collapsed_by_default(org: dict[str, Person]) -> None:
    state = ExpansionState([org["ceo"].id])
    state.sync(org.values())
    assert state.ids == frozenset({org["ceo"].id})


def test_unmatched_search_keeps_the_same_nodes(org: dict[str, Person]) -> None:
    plain = build_forest(org.values(), "")
    searched = build_forest(org.values(), "no such person")
    assert set(_ids(plain)) == set(_ids(searched))
    assert not any(n.highlighted or n.contains_match for n in iter_nodes(searched))
