from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..errors import AuthorizationError, NotFoundError, StoreError, ValidationError
from ..identity import Identity, require_identity
from ..models import (
    CALL_OUTCOMES,
    MESSAGING_OUTCOMES,
    OUTREACH_FIRST_COLUMN,
    ActivityKind,
    ActivityLogEntry,
    Contact,
    ContactState,
    HistoricalBaseRecord,
)
from ..models.common import utcnow_iso
from ..store import RecordStore, Table
from .assignments import can_manage, scan_assignments
from .contacts import ContactRepository, LocatedContact
from .fanout import Write, failed_labels, run_writes
from .historical import HistoricalBaseView, LocatedRecord
from .ledger import ActivityLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutcomeSubmission:
    """
    One outcome report from a collaborator. Channels are independent: a single
    submission may carry a call outcome and a messaging outcome together.
    """

    state: Optional[ContactState] = None
    call_outcome: Optional[ContactState] = None
    messaging_outcome: Optional[ContactState] = None
    note: str = ""
    person_response: str = ""
    observations: str = ""
    template_name: str = ""

    def is_empty(self) -> bool:
        return not (
            self.state
            or self.call_outcome
            or self.messaging_outcome
            or self.note.strip()
            or self.observations.strip()
        )


@dataclass
class OutcomeResult:
    previous_state: ContactState
    new_state: ContactState
    contact: Optional[Contact] = None
    record: Optional[HistoricalBaseRecord] = None
    entries: List[ActivityLogEntry] = field(default_factory=list)


# -------------------------
# Pure rules
# -------------------------

def resolve_composite(
    current: ContactState,
    call_outcome: Optional[ContactState] = None,
    messaging_outcome: Optional[ContactState] = None,
) -> ContactState:
    """
    Precedence, highest first:
      CONFIRMADO (call) > RECHAZA (call) > WHATSAPP_ENVIADO (messaging)
      > any other call outcome > any other messaging outcome > unchanged
    """
    if call_outcome == ContactState.CONFIRMADO:
        return ContactState.CONFIRMADO
    if call_outcome == ContactState.RECHAZA:
        return ContactState.RECHAZA
    if messaging_outcome == ContactState.WHATSAPP_ENVIADO:
        return ContactState.WHATSAPP_ENVIADO
    if call_outcome:
        return call_outcome
    if messaging_outcome:
        return messaging_outcome
    return current


def validate_transition(current: ContactState, new: ContactState) -> None:
    """
    NUEVO can only be left, never re-entered. Every non-initial state may move
    to every other one, including out of CONFIRMADO and RECHAZA.
    """
    if new == current:
        return
    if new == ContactState.NUEVO:
        raise ValidationError(f"Cannot move from {current.value} back to {ContactState.NUEVO.value}")


def validate_channels(submission: OutcomeSubmission) -> None:
    if submission.call_outcome and submission.call_outcome not in CALL_OUTCOMES:
        raise ValidationError(
            f"{submission.call_outcome.value} is not a call outcome. "
            f"Allowed: {sorted(s.value for s in CALL_OUTCOMES)}"
        )
    if submission.messaging_outcome and submission.messaging_outcome not in MESSAGING_OUTCOMES:
        raise ValidationError(
            f"{submission.messaging_outcome.value} is not a messaging outcome. "
            f"Allowed: {sorted(s.value for s in MESSAGING_OUTCOMES)}"
        )


def write_through_values(
    record: HistoricalBaseRecord,
    submission: OutcomeSubmission,
    *,
    managed_by: str,
    managed_at: str,
) -> HistoricalBaseRecord:
    """
    Merge a submission into the base record's outreach block. A direct state
    lands in the messaging column when it is WHATSAPP_ENVIADO, else in the call
    column. Unreported channels keep their current value.
    """
    call = submission.call_outcome
    messaging = submission.messaging_outcome
    if submission.state and not (call or messaging):
        if submission.state == ContactState.WHATSAPP_ENVIADO:
            messaging = submission.state
        else:
            call = submission.state

    return record.model_copy(
        update={
            "call_outcome": call.value if call else record.call_outcome,
            "messaging_outcome": messaging.value if messaging else record.messaging_outcome,
            "note": submission.note.strip() or record.note,
            "managed_by_display_name": managed_by,
            "last_managed_at": managed_at,
        }
    )


def build_entries(
    identity: Identity,
    submission: OutcomeSubmission,
    *,
    previous: ContactState,
    new_state: ContactState,
    contact_id: str,
    national_id: str,
) -> List[ActivityLogEntry]:
    """
    One entry per reported channel, all carrying the same resolved state.
    Without channels, a state change or a note still gets its own entry.
    """
    common = dict(
        contact_id=contact_id,
        national_id=national_id,
        new_state=new_state.value,
        person_response=submission.person_response.strip(),
        note=submission.note.strip(),
    )
    entries: List[ActivityLogEntry] = []

    if submission.call_outcome:
        entries.append(
            ActivityLedger.entry(
                ActivityKind.CALL,
                identity.user_id,
                f"Call outcome: {submission.call_outcome.value}",
                **common,
            )
        )

    if submission.messaging_outcome:
        detail = f"Messaging outcome: {submission.messaging_outcome.value}"
        if submission.template_name.strip():
            detail += f" | Template: {submission.template_name.strip()}"
        entries.append(ActivityLedger.entry(ActivityKind.MESSAGE_SENT, identity.user_id, detail, **common))

    if entries:
        return entries

    if new_state != previous:
        entries.append(ActivityLedger.entry(ActivityKind.STATE_CHANGE, identity.user_id, "State change", **common))
    elif submission.note.strip():
        entries.append(ActivityLedger.entry(ActivityKind.NOTE, identity.user_id, "Note added", **common))
    elif submission.observations.strip():
        entries.append(ActivityLedger.entry(ActivityKind.NOTE, identity.user_id, "Observations updated", **common))
    return entries


# -------------------------
# Engine
# -------------------------

class ContactStateMachine:
    """
    Validates and applies outcome submissions.

    Every read and every check happens before the first write, so a rejected
    submission leaves both stores untouched. The writes themselves (contact row,
    base outreach block, ledger rows) go out in parallel with no cross-store
    transaction: if one fails the others still land and the caller gets a
    StoreError naming what failed.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        contacts: Optional[ContactRepository] = None,
        base: Optional[HistoricalBaseView] = None,
        ledger: Optional[ActivityLedger] = None,
    ) -> None:
        self.store = store
        self.ledger = ledger or ActivityLedger(store)
        self.contacts = contacts or ContactRepository(store, self.ledger)
        self.base = base or HistoricalBaseView(store)

    def _resolve_target(self, key: str) -> Tuple[Optional[LocatedContact], Optional[LocatedRecord]]:
        """
        Contact by id, else contact by natural key, else a base-only record.
        """
        located = self.contacts.find_by_id(key) or self.contacts.find_by_national_id(key)
        if located is not None:
            base_record = None
            if located.contact.mirrors_base:
                base_record = self.base.find_by_national_id(located.contact.national_id)
                if base_record is None:
                    logger.warning(
                        "Contact %s mirrors base record %s, which is missing",
                        located.contact.id,
                        located.contact.national_id,
                    )
                    raise NotFoundError(
                        f"Historical base record {located.contact.national_id} not found for write-through"
                    )
            return located, base_record

        base_record = self.base.find_by_national_id(key)
        if base_record is None:
            raise NotFoundError("Contact not found")
        return None, base_record

    def apply(self, identity: Optional[Identity], key: str, submission: OutcomeSubmission) -> OutcomeResult:
        ident = require_identity(identity)
        key = (key or "").strip()
        if not key:
            raise ValidationError("Contact id is required")
        if submission.is_empty():
            raise ValidationError("Nothing to apply: provide a state, an outcome, a note or observations")
        validate_channels(submission)

        located, base_record = self._resolve_target(key)

        if located is not None:
            contact_id = located.contact.id
            national_id = located.contact.national_id
            previous = located.contact.state
        else:
            contact_id = ""
            national_id = base_record.record.national_id
            previous = base_record.record.composite_state

        assignments = [la.assignment for la in scan_assignments(self.store)]
        if not can_manage(assignments, ident, contact_id=contact_id, national_id=national_id):
            raise AuthorizationError("Forbidden: no active assignment for this contact")

        new_state = resolve_composite(submission.state or previous, submission.call_outcome, submission.messaging_outcome)
        validate_transition(previous, new_state)

        now = utcnow_iso()
        result = OutcomeResult(previous_state=previous, new_state=new_state)
        writes: List[Write] = []

        if located is not None:
            current = located.contact
            updated = current.model_copy(
                update={
                    "state": new_state,
                    "notes": submission.observations.strip() or current.notes,
                    "updated_at": now,
                    "last_managed_at": now,
                }
            )
            result.contact = updated
            address = located.row.address
            writes.append(("contact", lambda: self.store.update_row(Table.CONTACTS, address, updated.to_row())))

        if base_record is not None:
            merged = write_through_values(base_record.record, submission, managed_by=ident.label, managed_at=now)
            result.record = merged
            base_address = base_record.row.address
            writes.append(
                (
                    "historical_base",
                    lambda: self.store.update_cell_range(
                        Table.HISTORICAL_BASE,
                        base_address,
                        OUTREACH_FIRST_COLUMN,
                        merged.outreach_cells(),
                    ),
                )
            )

        result.entries = build_entries(
            ident,
            submission,
            previous=previous,
            new_state=new_state,
            contact_id=contact_id,
            national_id=national_id,
        )
        for entry in result.entries:
            writes.append((f"activity:{entry.kind}", lambda e=entry: self.ledger.append(e)))

        failed = failed_labels(run_writes(writes))
        if failed:
            raise StoreError(f"Update partially applied; failed writes: {', '.join(failed)}")

        logger.info(
            "Outcome applied by %s to %s: %s -> %s",
            ident.user_id,
            contact_id or national_id,
            previous.value,
            new_state.value,
        )
        return result
