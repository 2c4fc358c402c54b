from __future__ import annotations

import logging
from enum import Enum
from typing import FrozenSet, List, Optional, Sequence

from pydantic import BaseModel, PrivateAttr

from ..errors import ValidationError
from .common import cell

logger = logging.getLogger(__name__)

CONTACT_COLUMNS = [
    "id",
    "cedula",
    "nombre_completo",
    "celular",
    "email",
    "localidad",
    "referenciado_por_id",
    "referenciado_por_nombre",
    "estado",
    "observaciones",
    "creado_en",
    "actualizado_en",
    "origen",
    "ultima_gestion_en",
]


class ContactState(str, Enum):
    """
    Outreach lifecycle state.

    NUEVO is the initial state. Every other state is reachable from every other
    non-initial state; CONFIRMADO and RECHAZA are only terminal for reporting.
    """

    NUEVO = "NUEVO"
    WHATSAPP_ENVIADO = "WHATSAPP_ENVIADO"
    LLAMADO = "LLAMADO"
    CONFIRMADO = "CONFIRMADO"
    NO_RESPONDE = "NO_RESPONDE"
    RECHAZA = "RECHAZA"
    NUMERO_INVALIDO = "NUMERO_INVALIDO"
    DUPLICADO = "DUPLICADO"
    PENDIENTE_SEGUIMIENTO = "PENDIENTE_SEGUIMIENTO"


CALL_OUTCOMES: FrozenSet[ContactState] = frozenset(
    {
        ContactState.LLAMADO,
        ContactState.CONFIRMADO,
        ContactState.RECHAZA,
        ContactState.NO_RESPONDE,
        ContactState.PENDIENTE_SEGUIMIENTO,
        ContactState.NUMERO_INVALIDO,
        ContactState.DUPLICADO,
    }
)

MESSAGING_OUTCOMES: FrozenSet[ContactState] = frozenset(
    {
        ContactState.WHATSAPP_ENVIADO,
        ContactState.NUMERO_INVALIDO,
        ContactState.DUPLICADO,
    }
)

# States a work queue still has to act on
QUEUE_OPEN_STATES: FrozenSet[ContactState] = frozenset(
    {
        ContactState.NUEVO,
        ContactState.NO_RESPONDE,
        ContactState.PENDIENTE_SEGUIMIENTO,
    }
)


def parse_state(raw: Optional[str], *, field: str = "state") -> Optional[ContactState]:
    """
    Boundary validation for state strings. Empty means "not supplied".
    """
    s = ("" if raw is None else str(raw)).strip().upper()
    if not s:
        return None
    try:
        return ContactState(s)
    except ValueError:
        raise ValidationError(f"Invalid {field}: {raw!r}. Allowed: {[m.value for m in ContactState]}")


def is_known_state(raw: str) -> bool:
    s = (raw or "").strip().upper()
    return not s or s in {m.value for m in ContactState}


def state_from_cell(raw: str) -> ContactState:
    # Empty or legacy values read as NUEVO; unknown stored values must not break scans
    s = (raw or "").strip().upper()
    try:
        return ContactState(s) if s else ContactState.NUEVO
    except ValueError:
        return ContactState.NUEVO


class ContactOrigin(str, Enum):
    PUBLIC_FORM = "PUBLIC_FORM"
    BASE_TOTAL = "BASE_TOTAL"


class Contact(BaseModel):
    """
    An event registrant.

    Notes:
    - id is generator-assigned and immutable.
    - national_id is the natural key shared with the historical base. Unique by
      convention only; collaborators never change it.
    - origin=BASE_TOTAL means state mirrors a historical base record.
    """

    id: str
    national_id: str
    full_name: str
    phone: str
    email: str = ""
    locality: str = ""
    referred_by_contact_id: str = ""
    referred_by_name: str = ""
    state: ContactState = ContactState.NUEVO
    notes: str = ""
    created_at: str = ""
    updated_at: str = ""
    origin: str = ContactOrigin.PUBLIC_FORM.value
    last_managed_at: str = ""

    # Stored estado cell when it is outside the vocabulary; written back as-is
    # while the state is still the NUEVO it was read as
    _unknown_state_cell: str = PrivateAttr(default="")

    @property
    def mirrors_base(self) -> bool:
        return self.origin == ContactOrigin.BASE_TOTAL.value

    @classmethod
    def from_row(cls, row: Sequence[str]) -> "Contact":
        raw_state = cell(row, 8)
        contact = cls(
            id=cell(row, 0),
            national_id=cell(row, 1),
            full_name=cell(row, 2),
            phone=cell(row, 3),
            email=cell(row, 4),
            locality=cell(row, 5),
            referred_by_contact_id=cell(row, 6),
            referred_by_name=cell(row, 7),
            state=state_from_cell(raw_state),
            notes=cell(row, 9),
            created_at=cell(row, 10),
            updated_at=cell(row, 11),
            origin=cell(row, 12),
            last_managed_at=cell(row, 13),
        )
        if not is_known_state(raw_state):
            logger.warning("Contact %s has unknown estado %r; reading it as NUEVO", contact.id, raw_state)
            contact._unknown_state_cell = raw_state
        return contact

    def _state_cell(self) -> str:
        if self._unknown_state_cell and self.state == ContactState.NUEVO:
            return self._unknown_state_cell
        return self.state.value

    def to_row(self) -> List[str]:
        return [
            self.id,
            self.national_id,
            self.full_name,
            self.phone,
            self.email,
            self.locality,
            self.referred_by_contact_id,
            self.referred_by_name,
            self._state_cell(),
            self.notes,
            self.created_at,
            self.updated_at,
            self.origin,
            self.last_managed_at,
        ]


class ContactInput(BaseModel):
    """
    Incoming registration data (public form or administrative import).
    Everything is optional here; required-field checks happen in the repository
    so the error is a domain ValidationError.
    """

    national_id: str = ""
    full_name: str = ""
    phone: str = ""
    email: str = ""
    locality: str = ""
    referred_by_contact_id: str = ""
    referred_by_name: str = ""

    def cleaned(self) -> "ContactInput":
        return ContactInput(**{k: (v or "").strip() for k, v in self.model_dump().items()})
