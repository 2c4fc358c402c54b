from __future__ import annotations

from typing import List, Sequence

from pydantic import BaseModel

from .common import bool_cell, cell, to_bool_cell

ASSIGNMENT_COLUMNS = [
    "asignacion_id",
    "asistente_id",
    "cedula",
    "user_id",
    "asignado_por_user_id",
    "asignado_en",
    "activo",
]


class Assignment(BaseModel):
    """
    Claim of one person (by natural key, optionally by contact id) for one user.

    At most one active row per (assignee_user_id, national_id). Rows are never
    deleted; inactive rows are reassignment history.
    """

    id: str
    contact_id: str = ""
    national_id: str = ""
    assignee_user_id: str
    assigned_by_user_id: str
    assigned_at: str = ""
    active: bool = True

    def references(self, *, contact_id: str = "", national_id: str = "") -> bool:
        # Some rows only carry the natural key, so both keys are checked
        if contact_id and self.contact_id == contact_id:
            return True
        if national_id and self.national_id == national_id:
            return True
        return False

    @classmethod
    def from_row(cls, row: Sequence[str]) -> "Assignment":
        return cls(
            id=cell(row, 0),
            contact_id=cell(row, 1),
            national_id=cell(row, 2).strip(),
            assignee_user_id=cell(row, 3),
            assigned_by_user_id=cell(row, 4),
            assigned_at=cell(row, 5),
            active=bool_cell(cell(row, 6)),
        )

    def to_row(self) -> List[str]:
        return [
            self.id,
            self.contact_id,
            self.national_id,
            self.assignee_user_id,
            self.assigned_by_user_id,
            self.assigned_at,
            to_bool_cell(self.active),
        ]
