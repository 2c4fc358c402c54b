from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, List, Optional

from ..identity import Identity, Role, require_admin
from ..models import Contact, ContactState, User
from ..store import RecordStore, Table
from .assignments import active_for, scan_assignments
from .contacts import ContactRepository

REPORTED_ROLES: FrozenSet[str] = frozenset({Role.COLABORADOR.value, Role.ADMIN.value})

# A contact counts as managed once someone actually reached out
MANAGED_STATES: FrozenSet[ContactState] = frozenset(
    {
        ContactState.LLAMADO,
        ContactState.WHATSAPP_ENVIADO,
        ContactState.PENDIENTE_SEGUIMIENTO,
        ContactState.CONFIRMADO,
        ContactState.RECHAZA,
    }
)


@dataclass(frozen=True)
class TeamMemberProgress:
    user_id: str
    name: str
    email: str
    role: str
    assigned_count: int
    managed_count: int
    confirmed_count: int
    rejected_count: int
    completion_rate: float


def completion_rate(managed: int, assigned: int) -> float:
    if assigned <= 0:
        return 0.0
    return managed / assigned * 100


def member_progress(user: User, assigned: List[Contact]) -> TeamMemberProgress:
    managed = sum(1 for c in assigned if c.state in MANAGED_STATES)
    return TeamMemberProgress(
        user_id=user.user_id,
        name=user.name,
        email=user.email,
        role=user.role,
        assigned_count=len(assigned),
        managed_count=managed,
        confirmed_count=sum(1 for c in assigned if c.state == ContactState.CONFIRMADO),
        rejected_count=sum(1 for c in assigned if c.state == ContactState.RECHAZA),
        completion_rate=completion_rate(managed, len(assigned)),
    )


class TeamAllocationReport:
    """
    Per-collaborator completion metrics: Users x active Assignments x Contacts.
    """

    def __init__(self, store: RecordStore, contacts: Optional[ContactRepository] = None) -> None:
        self.store = store
        self.contacts = contacts or ContactRepository(store)

    def users(self) -> List[User]:
        return [
            User.from_row(r.cells)
            for r in self.store.scan(Table.USERS)
            if r.cells and (r.cells[0] or "").strip()
        ]

    def build(self, identity: Optional[Identity]) -> List[TeamMemberProgress]:
        require_admin(identity)

        assignments = [la.assignment for la in scan_assignments(self.store)]
        contacts = [lc.contact for lc in self.contacts.scan()]

        out: List[TeamMemberProgress] = []
        for user in self.users():
            if user.role not in REPORTED_ROLES or not user.active:
                continue
            mine = active_for(assignments, user.user_id)
            ids = {a.contact_id for a in mine if a.contact_id}
            national_ids = {a.national_id for a in mine if a.national_id}
            assigned = [c for c in contacts if c.id in ids or c.national_id in national_ids]
            out.append(member_progress(user, assigned))
        return out
