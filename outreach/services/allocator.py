from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..config import settings
from ..errors import NotFoundError, StoreError, ValidationError
from ..identity import SYSTEM_ACTOR, Identity, require_admin, require_identity
from ..models import ActivityKind, Assignment, HistoricalBaseRecord, QUEUE_OPEN_STATES
from ..models.common import new_id, utcnow_iso
from ..store import RecordStore, Table
from .assignments import active_for, claimed_national_ids, scan_assignments
from .fanout import Write, run_writes
from .historical import HistoricalBaseView
from .ledger import ActivityLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllocationPlan:
    """
    Read-phase result: what the allocator intends to claim, based on the
    snapshot taken at plan time. Nothing is reserved until commit().
    """

    requester_user_id: str
    requested: int
    claimed_count: int
    selected: List[HistoricalBaseRecord]


@dataclass
class AllocationResult:
    assigned: List[HistoricalBaseRecord] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.assigned)


@dataclass(frozen=True)
class WorkQueue:
    items: List[HistoricalBaseRecord]
    open_count: int


def _auto_assignment(record: HistoricalBaseRecord, requester_user_id: str) -> Assignment:
    # The natural key fills the contact-id slot too: base records have no other id
    return Assignment(
        id=new_id(),
        contact_id=record.national_id,
        national_id=record.national_id,
        assignee_user_id=requester_user_id,
        assigned_by_user_id=SYSTEM_ACTOR,
        assigned_at=utcnow_iso(),
        active=True,
    )


class AssignmentAllocator:
    """
    Hands collaborators batches of never-claimed historical base records.

    Concurrency: the claim is an append with no compare-and-swap. Two requests
    that plan before either commits can both select the same record; the store
    offers nothing to prevent it and this class does not pretend otherwise.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        base: Optional[HistoricalBaseView] = None,
        ledger: Optional[ActivityLedger] = None,
    ) -> None:
        self.store = store
        self.base = base or HistoricalBaseView(store)
        self.ledger = ledger or ActivityLedger(store)

    # -------------------------
    # Automatic allocation
    # -------------------------

    def plan(self, identity: Optional[Identity], count: Optional[int] = None) -> AllocationPlan:
        ident = require_identity(identity)
        n = settings.allocation_default_batch if count is None else int(count)
        if n < 1:
            raise ValidationError("count must be >= 1")

        claimed = claimed_national_ids([la.assignment for la in scan_assignments(self.store)])

        available: List[HistoricalBaseRecord] = []
        seen = set()
        for record in self.base.records():
            key = record.national_id
            # Duplicate base rows share one natural key; hand it out once
            if key in claimed or key in seen:
                continue
            seen.add(key)
            available.append(record)
            if len(available) >= n:
                break

        return AllocationPlan(
            requester_user_id=ident.user_id,
            requested=n,
            claimed_count=len(claimed),
            selected=available,
        )

    def commit(self, plan: AllocationPlan) -> AllocationResult:
        """
        Append one assignment per selected record, all in parallel. Failed
        appends are reported, never rolled back: the returned `assigned` list is
        the authoritative record of what was claimed.
        """
        result = AllocationResult()
        if not plan.selected:
            return result

        rows = [(record, _auto_assignment(record, plan.requester_user_id)) for record in plan.selected]
        writes: List[Write] = [
            (record.national_id, lambda a=assignment: self.store.append_row(Table.ASSIGNMENTS, a.to_row()))
            for record, assignment in rows
        ]
        outcomes = run_writes(writes)

        entries: List[Write] = []
        for (record, _), outcome in zip(rows, outcomes):
            if not outcome.ok:
                result.failed.append(record.national_id)
                continue
            result.assigned.append(record)
            entry = ActivityLedger.entry(
                ActivityKind.REASSIGNMENT,
                SYSTEM_ACTOR,
                f"Automatic assignment to {plan.requester_user_id}",
                national_id=record.national_id,
                new_state=record.composite_state.value,
            )
            entries.append((f"log:{record.national_id}", lambda e=entry: self.ledger.append(e)))

        # Ledger misses are logged by the fan-out; the claims already stand
        run_writes(entries)

        if result.failed and not result.assigned:
            raise StoreError(f"Could not assign any record ({len(result.failed)} appends failed)")

        logger.info(
            "Allocated %s/%s records to %s (failed=%s)",
            result.count,
            plan.requested,
            plan.requester_user_id,
            len(result.failed),
        )
        return result

    def allocate(self, identity: Optional[Identity], count: Optional[int] = None) -> AllocationResult:
        return self.commit(self.plan(identity, count))

    # -------------------------
    # Administrative operations
    # -------------------------

    def assign_manual(
        self,
        identity: Optional[Identity],
        *,
        assignee_user_id: str,
        national_id: str = "",
        contact_id: str = "",
    ) -> Assignment:
        """
        Admin picks one person for one user. Bypasses the claimed set; other
        users' rows for the same person stay as they are. If the assignee
        already holds an active row for this person, that row is returned and
        nothing is appended.
        """
        ident = require_admin(identity)
        national_id = (national_id or "").strip()
        contact_id = (contact_id or "").strip()
        assignee_user_id = (assignee_user_id or "").strip()
        if not (national_id or contact_id) or not assignee_user_id:
            raise ValidationError("Missing fields: provide national_id or contact_id, and assignee_user_id")

        current = active_for([la.assignment for la in scan_assignments(self.store)], assignee_user_id)
        for existing in current:
            if existing.references(contact_id=contact_id, national_id=national_id):
                logger.info("%s already holds an active assignment %s", assignee_user_id, existing.id)
                return existing

        assignment = Assignment(
            id=new_id(),
            contact_id=contact_id,
            national_id=national_id,
            assignee_user_id=assignee_user_id,
            assigned_by_user_id=ident.user_id,
            assigned_at=utcnow_iso(),
            active=True,
        )
        self.store.append_row(Table.ASSIGNMENTS, assignment.to_row())

        self.ledger.log(
            ActivityKind.REASSIGNMENT,
            ident.user_id,
            f"Manual assignment to {assignee_user_id}",
            contact_id=contact_id,
            national_id=national_id,
        )
        return assignment

    def deactivate(self, identity: Optional[Identity], assignment_id: str) -> Assignment:
        """
        Flip one row to inactive. The natural key stays claimed: inactive rows
        still count for automatic allocation.
        """
        ident = require_admin(identity)
        for la in scan_assignments(self.store):
            if la.assignment.id != assignment_id:
                continue
            if not la.assignment.active:
                return la.assignment
            updated = la.assignment.model_copy(update={"active": False})
            self.store.update_row(Table.ASSIGNMENTS, la.row.address, updated.to_row())
            self.ledger.log(
                ActivityKind.REASSIGNMENT,
                ident.user_id,
                f"Assignment deactivated for {updated.assignee_user_id}",
                contact_id=updated.contact_id,
                national_id=updated.national_id,
            )
            return updated
        raise NotFoundError("Assignment not found")

    def list_all(self, identity: Optional[Identity]) -> List[Assignment]:
        require_admin(identity)
        return [la.assignment for la in scan_assignments(self.store)]

    # -------------------------
    # Collaborator queue
    # -------------------------

    def my_queue(self, identity: Optional[Identity], limit: Optional[int] = None) -> WorkQueue:
        """
        Active assignments hydrated from the historical base (by natural key),
        keeping only people that still need outreach.
        """
        ident = require_identity(identity)
        size = settings.queue_page_size if limit is None else max(1, int(limit))

        mine = active_for([la.assignment for la in scan_assignments(self.store)], ident.user_id)
        if not mine:
            return WorkQueue(items=[], open_count=0)

        by_key = HistoricalBaseView.index(self.base.scan())
        open_items: List[HistoricalBaseRecord] = []
        seen = set()
        for a in mine:
            located = by_key.get(a.national_id)
            if located is None or a.national_id in seen:
                continue
            seen.add(a.national_id)
            if located.record.composite_state in QUEUE_OPEN_STATES:
                open_items.append(located.record)

        return WorkQueue(items=open_items[:size], open_count=len(open_items))
