from __future__ import annotations

from dataclasses import dataclass
from typing import List, Set

from ..identity import Identity
from ..models import Assignment
from ..store import RecordStore, StoredRow, Table


@dataclass(frozen=True)
class LocatedAssignment:
    assignment: Assignment
    row: StoredRow


def scan_assignments(store: RecordStore) -> List[LocatedAssignment]:
    return [
        LocatedAssignment(assignment=Assignment.from_row(r.cells), row=r)
        for r in store.scan(Table.ASSIGNMENTS)
        if r.cells and (r.cells[0] or "").strip()
    ]


def active_for(assignments: List[Assignment], user_id: str) -> List[Assignment]:
    return [a for a in assignments if a.active and a.assignee_user_id == user_id]


def claimed_national_ids(assignments: List[Assignment]) -> Set[str]:
    """
    Every natural key that ever appeared in an assignment, active or not.
    Once claimed, a person is never handed out again automatically.
    """
    return {a.national_id for a in assignments if a.national_id}


def holds_active_assignment(
    assignments: List[Assignment],
    identity: Identity,
    *,
    contact_id: str = "",
    national_id: str = "",
) -> bool:
    return any(
        a.references(contact_id=contact_id, national_id=national_id)
        for a in active_for(assignments, identity.user_id)
    )


def can_manage(
    assignments: List[Assignment],
    identity: Identity,
    *,
    contact_id: str = "",
    national_id: str = "",
) -> bool:
    if identity.is_admin:
        return True
    return holds_active_assignment(assignments, identity, contact_id=contact_id, national_id=national_id)
