from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Union

from ..config import Settings, settings as default_settings
from ..models import Contact, HistoricalBaseRecord

DEFAULT_WHATSAPP_TEMPLATE = (
    "Hola {NOMBRE}, te saluda el equipo de la campaña. Queremos invitarte a nuestro Gran Cierre de Campaña "
    "este {FECHA_EVENTO} a las {HORA_EVENTO} en el {LUGAR_EVENTO} ({DIRECCION_EVENTO}). ¡Contamos contigo!"
)

DEFAULT_CALL_SCRIPT = (
    "Hola, ¿hablo con {NOMBRE}?\n"
    "Te llamamos del equipo de la campaña. Queremos invitarte personalmente al Gran Cierre de Campaña.\n"
    "Es este {FECHA_EVENTO} a las {HORA_EVENTO} en el {LUGAR_EVENTO} ({DIRECCION_EVENTO}).\n"
    "¿Podemos contar con tu asistencia?"
)

PLACEHOLDERS = (
    "NOMBRE",
    "LOCALIDAD",
    "FECHA_EVENTO",
    "HORA_EVENTO",
    "LUGAR_EVENTO",
    "DIRECCION_EVENTO",
)


@dataclass(frozen=True)
class EventInfo:
    date: str
    time: str
    place: str
    address: str

    @classmethod
    def from_settings(cls, cfg: Optional[Settings] = None) -> "EventInfo":
        cfg = cfg or default_settings
        return cls(date=cfg.event_date, time=cfg.event_time, place=cfg.event_place, address=cfg.event_address)


def placeholder_values(
    person: Union[Contact, HistoricalBaseRecord],
    event: EventInfo,
) -> Dict[str, str]:
    if isinstance(person, Contact):
        locality = person.locality
    else:
        locality = person.municipality or person.department
    return {
        "NOMBRE": person.full_name,
        "LOCALIDAD": locality,
        "FECHA_EVENTO": event.date,
        "HORA_EVENTO": event.time,
        "LUGAR_EVENTO": event.place,
        "DIRECCION_EVENTO": event.address,
    }


def render_template(text: str, values: Dict[str, str]) -> str:
    """
    Replace every occurrence of each known placeholder. Unknown placeholders
    (and literal braces) are left as written.
    """
    out = text or ""
    for name in PLACEHOLDERS:
        out = out.replace("{" + name + "}", values.get(name, "") or "")
    return out
