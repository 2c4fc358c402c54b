from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from ..errors import NotFoundError, ValidationError
from ..identity import SYSTEM_ACTOR, Identity, require_admin, require_identity
from ..models import ActivityKind, Contact, ContactInput, ContactOrigin, ContactState
from ..models.common import new_id, utcnow_iso
from ..store import RecordStore, StoredRow, Table
from .assignments import active_for, scan_assignments
from .historical import HistoricalBaseView
from .ledger import ActivityLedger

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("full_name", "national_id", "phone", "locality")

SEARCH_MIN_CHARS = 3
SEARCH_DEFAULT_LIMIT = 8


@dataclass(frozen=True)
class LocatedContact:
    contact: Contact
    row: StoredRow


@dataclass(frozen=True)
class ContactSummary:
    id: str
    full_name: str


@dataclass(frozen=True)
class RegistrationResult:
    contact: Contact
    created: bool


def _missing_required(payload: ContactInput) -> List[str]:
    return [f for f in REQUIRED_FIELDS if not getattr(payload, f)]


class ContactRepository:
    """
    Typed read/write over the Contacts table.

    Owns the create-or-update rule for self-registration: the natural key decides,
    and an update never touches state or notes.
    """

    def __init__(self, store: RecordStore, ledger: Optional[ActivityLedger] = None) -> None:
        self.store = store
        self.ledger = ledger or ActivityLedger(store)

    # -------------------------
    # Reads (full scans)
    # -------------------------

    def scan(self) -> List[LocatedContact]:
        return [
            LocatedContact(contact=Contact.from_row(r.cells), row=r)
            for r in self.store.scan(Table.CONTACTS)
            if r.cells and (r.cells[0] or "").strip()
        ]

    def find_by_national_id(self, national_id: str) -> Optional[LocatedContact]:
        key = (national_id or "").strip()
        if not key:
            return None
        for lc in self.scan():
            if lc.contact.national_id == key:
                return lc
        return None

    def find_by_id(self, contact_id: str) -> Optional[LocatedContact]:
        if not contact_id:
            return None
        for lc in self.scan():
            if lc.contact.id == contact_id:
                return lc
        return None

    def list_visible_to(self, identity: Optional[Identity]) -> List[Contact]:
        """
        Admins see everything. Collaborators see contacts referenced by one of
        their active assignments, by id or by natural key.
        """
        ident = require_identity(identity)
        contacts = [lc.contact for lc in self.scan()]
        if ident.is_admin:
            return contacts

        mine = active_for([la.assignment for la in scan_assignments(self.store)], ident.user_id)
        ids = {a.contact_id for a in mine if a.contact_id}
        national_ids = {a.national_id for a in mine if a.national_id}
        return [c for c in contacts if c.id in ids or c.national_id in national_ids]

    def get(self, identity: Optional[Identity], contact_id: str) -> Contact:
        visible = {c.id: c for c in self.list_visible_to(identity)}
        contact = visible.get(contact_id)
        if contact is None:
            raise NotFoundError("Contact not found")
        return contact

    def search(self, query: Optional[str], limit: int = SEARCH_DEFAULT_LIMIT) -> List[ContactSummary]:
        """
        Referral autocomplete. Short queries return nothing rather than failing.
        """
        q = (query or "").strip().lower()
        if len(q) < SEARCH_MIN_CHARS:
            return []
        limit = max(1, limit)
        out: List[ContactSummary] = []
        for lc in self.scan():
            if q in lc.contact.full_name.lower():
                out.append(ContactSummary(id=lc.contact.id, full_name=lc.contact.full_name))
                if len(out) >= limit:
                    break
        return out

    # -------------------------
    # Writes
    # -------------------------

    def create(
        self,
        payload: ContactInput,
        *,
        origin: ContactOrigin = ContactOrigin.PUBLIC_FORM,
        actor_user_id: str = SYSTEM_ACTOR,
        detail: str = "Public registration",
    ) -> Contact:
        data = payload.cleaned()
        missing = _missing_required(data)
        if missing:
            raise ValidationError(f"Incomplete data: missing {', '.join(missing)}")

        now = utcnow_iso()
        contact = Contact(
            id=new_id(),
            national_id=data.national_id,
            full_name=data.full_name,
            phone=data.phone,
            email=data.email,
            locality=data.locality,
            referred_by_contact_id=data.referred_by_contact_id,
            referred_by_name=data.referred_by_name,
            state=ContactState.NUEVO,
            notes="",
            created_at=now,
            updated_at=now,
            origin=origin.value,
            last_managed_at="",
        )
        self.store.append_row(Table.CONTACTS, contact.to_row())

        self.ledger.log(
            ActivityKind.CREATION,
            actor_user_id,
            detail,
            contact_id=contact.id,
            national_id=contact.national_id,
            new_state=contact.state.value,
        )
        return contact

    def upsert_on_reregistration(self, existing: LocatedContact, incoming: ContactInput) -> Contact:
        """
        Refresh contact-method fields from a repeat registration.

        Only non-empty incoming phone/email/locality overwrite; state and notes
        are never touched so a re-registration cannot regress outreach progress.
        """
        data = incoming.cleaned()
        current = existing.contact
        updated = current.model_copy(
            update={
                "phone": data.phone or current.phone,
                "email": data.email or current.email,
                "locality": data.locality or current.locality,
                "updated_at": utcnow_iso(),
            }
        )
        self.store.update_row(Table.CONTACTS, existing.row.address, updated.to_row())

        self.ledger.log(
            ActivityKind.CREATION,
            SYSTEM_ACTOR,
            "Updated by public re-registration",
            contact_id=updated.id,
            national_id=updated.national_id,
            new_state=updated.state.value,
        )
        return updated

    def register(self, payload: ContactInput) -> RegistrationResult:
        """
        Public self-registration: create, or update the contact already holding
        this national id.
        """
        data = payload.cleaned()
        missing = _missing_required(data)
        if missing:
            raise ValidationError(f"Incomplete data: missing {', '.join(missing)}")

        existing = self.find_by_national_id(data.national_id)
        if existing is not None:
            return RegistrationResult(contact=self.upsert_on_reregistration(existing, data), created=False)

        return RegistrationResult(contact=self.create(data), created=True)

    def import_from_base(
        self,
        identity: Optional[Identity],
        national_id: str,
        base: Optional[HistoricalBaseView] = None,
    ) -> RegistrationResult:
        """
        Administrative import of a historical base record as a BASE_TOTAL
        contact, whose state from then on mirrors the base record.
        """
        ident = require_admin(identity)
        key = (national_id or "").strip()
        if not key:
            raise ValidationError("national_id is required")

        existing = self.find_by_national_id(key)
        if existing is not None:
            return RegistrationResult(contact=existing.contact, created=False)

        located = (base or HistoricalBaseView(self.store)).find_by_national_id(key)
        if located is None:
            raise NotFoundError(f"No historical base record for national id {key}")

        record = located.record
        payload = ContactInput(
            national_id=record.national_id,
            full_name=record.full_name,
            phone=record.phone,
            locality=record.municipality or record.department,
        )
        contact = self.create(
            payload,
            origin=ContactOrigin.BASE_TOTAL,
            actor_user_id=ident.user_id,
            detail="Imported from historical base",
        )
        return RegistrationResult(contact=contact, created=True)

    def correct_national_id(
        self,
        identity: Optional[Identity],
        contact_id: str,
        new_national_id: str,
    ) -> Contact:
        """
        The only path that changes a natural key. Admin only.
        """
        ident = require_admin(identity)
        key = (new_national_id or "").strip()
        if not key:
            raise ValidationError("national_id is required")

        located = self.find_by_id(contact_id)
        if located is None:
            raise NotFoundError("Contact not found")

        previous = located.contact.national_id
        if previous == key:
            return located.contact

        clash = self.find_by_national_id(key)
        if clash is not None and clash.contact.id != contact_id:
            # Uniqueness is advisory only; flag it but let the correction through
            logger.warning("national id %s is already used by contact %s", key, clash.contact.id)

        updated = located.contact.model_copy(update={"national_id": key, "updated_at": utcnow_iso()})
        self.store.update_row(Table.CONTACTS, located.row.address, updated.to_row())

        self.ledger.log(
            ActivityKind.NOTE,
            ident.user_id,
            f"National id corrected from {previous} to {key}",
            contact_id=updated.id,
            national_id=key,
            new_state=updated.state.value,
        )
        return updated
