from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, field_validator

from ..identity import Identity
from ..models import Contact, ContactInput, HistoricalBaseRecord, parse_state
from ..services import ContactRepository, ContactStateMachine, ContactSummary, OutcomeSubmission
from ..store import RecordStore
from .deps import get_identity, get_store

router = APIRouter(prefix="/contacts", tags=["contacts"])


# -----------------------------
# Schemas (do NOT use record models as input)
# -----------------------------

class RegistrationCreate(BaseModel):
    """
    Public registration form. Required fields are checked by the repository so
    a missing one is reported as a domain validation error (400).
    """
    national_id: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    locality: Optional[str] = None
    referred_by_contact_id: Optional[str] = None
    referred_by_name: Optional[str] = None

    @field_validator("national_id", "phone", mode="before")
    @classmethod
    def _stringify(cls, v: Any) -> Optional[str]:
        # Forms send numbers for cedula/celular
        if v is None:
            return None
        return str(v).strip()

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def to_input(self) -> ContactInput:
        return ContactInput(
            national_id=self.national_id or "",
            full_name=self.full_name or "",
            phone=self.phone or "",
            email=str(self.email) if self.email else "",
            locality=self.locality or "",
            referred_by_contact_id=self.referred_by_contact_id or "",
            referred_by_name=self.referred_by_name or "",
        )


class BaseImport(BaseModel):
    national_id: str


class NationalIdCorrection(BaseModel):
    national_id: str


class OutcomeCreate(BaseModel):
    """
    Outcome report. Each state field takes a ContactState name; unknown values
    are rejected with 400.
    """
    state: Optional[str] = None
    call_outcome: Optional[str] = None
    messaging_outcome: Optional[str] = None
    note: Optional[str] = None
    person_response: Optional[str] = None
    observations: Optional[str] = None
    template_name: Optional[str] = None

    def to_submission(self) -> OutcomeSubmission:
        return OutcomeSubmission(
            state=parse_state(self.state, field="state"),
            call_outcome=parse_state(self.call_outcome, field="call_outcome"),
            messaging_outcome=parse_state(self.messaging_outcome, field="messaging_outcome"),
            note=self.note or "",
            person_response=self.person_response or "",
            observations=self.observations or "",
            template_name=self.template_name or "",
        )


class OutcomeOut(BaseModel):
    previous_state: str
    new_state: str
    contact: Optional[Contact] = None
    record: Optional[HistoricalBaseRecord] = None
    entries: int


# -----------------------------
# Routes
# -----------------------------

@router.post("/register")
def register(payload: RegistrationCreate, store: RecordStore = Depends(get_store)) -> Dict[str, Any]:
    """
    Public self-registration (no session). Re-registering the same national id
    refreshes contact details only.
    """
    result = ContactRepository(store).register(payload.to_input())
    return {
        "success": True,
        "id": result.contact.id,
        "created": result.created,
        "message": "Registered" if result.created else "Data updated",
    }


@router.get("/search", response_model=List[ContactSummary])
def search(q: Optional[str] = None, limit: int = 8, store: RecordStore = Depends(get_store)) -> List[ContactSummary]:
    return ContactRepository(store).search(q, limit=limit)


@router.get("/", response_model=List[Contact])
def list_contacts(
    identity: Optional[Identity] = Depends(get_identity),
    store: RecordStore = Depends(get_store),
) -> List[Contact]:
    return ContactRepository(store).list_visible_to(identity)


@router.post("/import", response_model=Contact)
def import_from_base(
    payload: BaseImport,
    identity: Optional[Identity] = Depends(get_identity),
    store: RecordStore = Depends(get_store),
) -> Contact:
    return ContactRepository(store).import_from_base(identity, payload.national_id).contact


@router.get("/{contact_id}", response_model=Contact)
def get_contact(
    contact_id: str,
    identity: Optional[Identity] = Depends(get_identity),
    store: RecordStore = Depends(get_store),
) -> Contact:
    return ContactRepository(store).get(identity, contact_id)


@router.patch("/{contact_id}/national-id", response_model=Contact)
def correct_national_id(
    contact_id: str,
    payload: NationalIdCorrection,
    identity: Optional[Identity] = Depends(get_identity),
    store: RecordStore = Depends(get_store),
) -> Contact:
    return ContactRepository(store).correct_national_id(identity, contact_id, payload.national_id)


@router.post("/{key}/outcome", response_model=OutcomeOut)
def apply_outcome(
    key: str,
    payload: OutcomeCreate,
    identity: Optional[Identity] = Depends(get_identity),
    store: RecordStore = Depends(get_store),
) -> OutcomeOut:
    """
    Apply a call and/or messaging outcome. `key` is a contact id, or a national
    id for people that only exist in the historical base.
    """
    result = ContactStateMachine(store).apply(identity, key, payload.to_submission())
    return OutcomeOut(
        previous_state=result.previous_state.value,
        new_state=result.new_state.value,
        contact=result.contact,
        record=result.record,
        entries=len(result.entries),
    )
