from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Protocol, Sequence, runtime_checkable

from ..models import (
    ACTIVITY_COLUMNS,
    ASSIGNMENT_COLUMNS,
    CONTACT_COLUMNS,
    HISTORICAL_COLUMNS,
    USER_COLUMNS,
)


class Table(str, Enum):
    """
    Logical tables of the record store. Values are the sheet/tab names.
    """

    CONTACTS = "asistentes"
    ASSIGNMENTS = "asignaciones"
    ACTIVITY = "actividad"
    HISTORICAL_BASE = "Bases_Consulta_Total"
    USERS = "usuarios"


TABLE_COLUMNS = {
    Table.CONTACTS: CONTACT_COLUMNS,
    Table.ASSIGNMENTS: ASSIGNMENT_COLUMNS,
    Table.ACTIVITY: ACTIVITY_COLUMNS,
    Table.HISTORICAL_BASE: HISTORICAL_COLUMNS,
    Table.USERS: USER_COLUMNS,
}


def table_width(table: Table) -> int:
    return len(TABLE_COLUMNS[table])


@dataclass(frozen=True)
class RowAddress:
    """
    Positional reference into a table, valid only against the scan that
    produced it. If the table changed since that scan the address may now point
    at a different logical record; callers accept that staleness and must not
    keep addresses beyond one logical operation.
    """

    table: Table
    position: int  # zero-based index within the scan (header excluded)


@dataclass(frozen=True)
class StoredRow:
    address: RowAddress
    cells: List[str]


@runtime_checkable
class RecordStore(Protocol):
    """
    The four primitives the core relies on. No transactions, no locks, no
    secondary indexes: every read is a full scan.
    """

    def scan(self, table: Table) -> List[StoredRow]:
        ...

    def append_row(self, table: Table, row: Sequence[str]) -> None:
        ...

    def update_row(self, table: Table, address: RowAddress, row: Sequence[str]) -> None:
        ...

    def update_cell_range(
        self,
        table: Table,
        address: RowAddress,
        first_column: int,
        values: Sequence[str],
    ) -> None:
        ...


def check_address(table: Table, address: RowAddress) -> None:
    if address.table != table:
        raise ValueError(f"Row address belongs to {address.table.value!r}, not {table.value!r}")
    if address.position < 0:
        raise ValueError(f"Invalid row position: {address.position}")


def check_cell_range(table: Table, first_column: int, values: Sequence[str]) -> None:
    width = table_width(table)
    if first_column < 0 or first_column + len(values) > width:
        raise ValueError(
            f"Column range {first_column}..{first_column + len(values) - 1} outside {table.value!r} (width {width})"
        )


def normalize_row(row: Sequence[str]) -> List[str]:
    return ["" if v is None else str(v) for v in row]
