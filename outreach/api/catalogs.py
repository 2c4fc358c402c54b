from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..identity import Identity, Role, require_identity
from ..models import CALL_OUTCOMES, MESSAGING_OUTCOMES, ActivityKind, ContactState
from ..services import ContactRepository, HistoricalBaseView
from ..services.assignments import can_manage, scan_assignments
from ..services.templates import (
    DEFAULT_CALL_SCRIPT,
    DEFAULT_WHATSAPP_TEMPLATE,
    EventInfo,
    placeholder_values,
    render_template,
)
from ..store import RecordStore
from .deps import get_identity, get_store

router = APIRouter(tags=["catalogs"])

LOCALITIES = [
    "Usaquén",
    "Chapinero",
    "Santa Fe",
    "San Cristóbal",
    "Usme",
    "Tunjuelito",
    "Bosa",
    "Kennedy",
    "Fontibón",
    "Engativá",
    "Suba",
    "Barrios Unidos",
    "Teusaquillo",
    "Los Mártires",
    "Antonio Nariño",
    "Puente Aranda",
    "La Candelaria",
    "Rafael Uribe Uribe",
    "Ciudad Bolívar",
    "Sumapaz",
]


class RenderRequest(BaseModel):
    """
    Render a template for one person. `template` overrides the built-in text
    selected by `kind`.
    """
    kind: Literal["whatsapp", "call"] = "whatsapp"
    template: Optional[str] = None
    contact_id: Optional[str] = None
    national_id: Optional[str] = None


@router.get("/catalogs")
def catalogs() -> Dict[str, Any]:
    event = EventInfo.from_settings()
    return {
        "localities": LOCALITIES,
        "roles": [r.value for r in Role],
        "states": [s.value for s in ContactState],
        "call_outcomes": sorted(s.value for s in CALL_OUTCOMES),
        "messaging_outcomes": sorted(s.value for s in MESSAGING_OUTCOMES),
        "activity_kinds": [k.value for k in ActivityKind],
        "event": asdict(event),
        "templates": {
            "whatsapp": DEFAULT_WHATSAPP_TEMPLATE,
            "call": DEFAULT_CALL_SCRIPT,
        },
    }


@router.post("/templates/render")
def render(
    payload: RenderRequest,
    identity: Optional[Identity] = Depends(get_identity),
    store: RecordStore = Depends(get_store),
) -> Dict[str, str]:
    """
    Produce the text handed to the external channel. Nothing is sent and no
    state changes here; marking as sent is a separate outcome submission.
    """
    ident = require_identity(identity)
    if not payload.contact_id and not payload.national_id:
        raise ValidationError("Provide contact_id or national_id")

    if payload.contact_id:
        person = ContactRepository(store).get(ident, payload.contact_id)
    else:
        located = HistoricalBaseView(store).find_by_national_id(payload.national_id or "")
        if located is None:
            raise NotFoundError("Historical base record not found")
        assignments = [la.assignment for la in scan_assignments(store)]
        if not can_manage(assignments, ident, national_id=located.record.national_id):
            raise AuthorizationError("Forbidden: no active assignment for this person")
        person = located.record

    text = payload.template
    if text is None:
        text = DEFAULT_CALL_SCRIPT if payload.kind == "call" else DEFAULT_WHATSAPP_TEMPLATE

    rendered = render_template(text, placeholder_values(person, EventInfo.from_settings()))
    return {"text": rendered}
