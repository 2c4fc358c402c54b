from __future__ import annotations

from enum import Enum
from typing import List, Sequence

from pydantic import BaseModel

from .common import cell

ACTIVITY_COLUMNS = [
    "actividad_id",
    "timestamp",
    "asistente_id",
    "cedula",
    "user_id",
    "tipo",
    "detalle",
    "estado_nuevo",
    "respuesta_persona",
    "nota",
]


class ActivityKind(str, Enum):
    CREATION = "CREATION"
    NOTE = "NOTE"
    STATE_CHANGE = "STATE_CHANGE"
    MESSAGE_SENT = "MESSAGE_SENT"
    CALL = "CALL"
    REASSIGNMENT = "REASSIGNMENT"
    LOGIN = "LOGIN"


class ActivityLogEntry(BaseModel):
    """
    Append-only audit row. Never mutated or removed; the only time-series source.
    """

    id: str
    timestamp: str
    contact_id: str = ""
    national_id: str = ""
    actor_user_id: str
    kind: str
    detail: str = ""
    new_state: str = ""
    person_response: str = ""
    note: str = ""

    @property
    def day(self) -> str:
        return (self.timestamp or "").split("T")[0]

    @classmethod
    def from_row(cls, row: Sequence[str]) -> "ActivityLogEntry":
        return cls(
            id=cell(row, 0),
            timestamp=cell(row, 1),
            contact_id=cell(row, 2),
            national_id=cell(row, 3),
            actor_user_id=cell(row, 4),
            kind=cell(row, 5),
            detail=cell(row, 6),
            new_state=cell(row, 7),
            person_response=cell(row, 8),
            note=cell(row, 9),
        )

    def to_row(self) -> List[str]:
        return [
            self.id,
            self.timestamp,
            self.contact_id,
            self.national_id,
            self.actor_user_id,
            self.kind,
            self.detail,
            self.new_state,
            self.person_response,
            self.note,
        ]
