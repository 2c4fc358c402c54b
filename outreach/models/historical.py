from __future__ import annotations

from typing import List, Sequence

from pydantic import BaseModel

from .common import cell
from .contact import ContactState, state_from_cell

HISTORICAL_COLUMNS = [
    "cedula",
    "nombre",
    "celular",
    "nuip",
    "departamento",
    "municipio",
    "puesto",
    "direccion",
    "mesa",
    "estado_llamada",
    "estado_whatsapp",
    "nota",
    "gestionado_por",
    "fecha_gestion",
]

# First column of the outreach block (estado_llamada .. fecha_gestion).
# Write-through only ever touches this contiguous range.
OUTREACH_FIRST_COLUMN = HISTORICAL_COLUMNS.index("estado_llamada")


class HistoricalBaseRecord(BaseModel):
    """
    Read-projection of the pre-existing voter base.

    national_id doubles as identity: there is no generated id. Records are
    never created or deleted here, only their outreach block is overwritten.
    """

    national_id: str
    full_name: str = ""
    phone: str = ""
    nuip: str = ""
    department: str = ""
    municipality: str = ""
    polling_place: str = ""
    address: str = ""
    table: str = ""
    call_outcome: str = ""
    messaging_outcome: str = ""
    note: str = ""
    managed_by_display_name: str = ""
    last_managed_at: str = ""

    @property
    def composite_state(self) -> ContactState:
        if self.call_outcome:
            return state_from_cell(self.call_outcome)
        if self.messaging_outcome:
            return state_from_cell(self.messaging_outcome)
        return ContactState.NUEVO

    @classmethod
    def from_row(cls, row: Sequence[str]) -> "HistoricalBaseRecord":
        return cls(
            national_id=cell(row, 0).strip(),
            full_name=cell(row, 1),
            phone=cell(row, 2),
            nuip=cell(row, 3),
            department=cell(row, 4),
            municipality=cell(row, 5),
            polling_place=cell(row, 6),
            address=cell(row, 7),
            table=cell(row, 8),
            call_outcome=cell(row, 9).strip(),
            messaging_outcome=cell(row, 10).strip(),
            note=cell(row, 11),
            managed_by_display_name=cell(row, 12),
            last_managed_at=cell(row, 13),
        )

    def outreach_cells(self) -> List[str]:
        return [
            self.call_outcome,
            self.messaging_outcome,
            self.note,
            self.managed_by_display_name,
            self.last_managed_at,
        ]
