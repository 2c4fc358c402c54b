from __future__ import annotations

import threading
from typing import Dict, Iterable, List, Optional, Sequence

from ..errors import StoreError
from .base import (
    RowAddress,
    StoredRow,
    Table,
    check_address,
    check_cell_range,
    normalize_row,
)


class MemoryRecordStore:
    """
    In-process record store.

    Each primitive is atomic on its own (guarded by a lock) but nothing spans
    two calls, which is exactly the isolation level of the real backends.
    """

    def __init__(self, seed: Optional[Dict[Table, Iterable[Sequence[str]]]] = None) -> None:
        self._lock = threading.Lock()
        self._tables: Dict[Table, List[List[str]]] = {t: [] for t in Table}
        for table, rows in (seed or {}).items():
            self._tables[table] = [normalize_row(r) for r in rows]

    def scan(self, table: Table) -> List[StoredRow]:
        with self._lock:
            rows = [list(r) for r in self._tables[table]]
        return [StoredRow(address=RowAddress(table, i), cells=r) for i, r in enumerate(rows)]

    def append_row(self, table: Table, row: Sequence[str]) -> None:
        with self._lock:
            self._tables[table].append(normalize_row(row))

    def update_row(self, table: Table, address: RowAddress, row: Sequence[str]) -> None:
        check_address(table, address)
        with self._lock:
            rows = self._tables[table]
            if address.position >= len(rows):
                raise StoreError(f"Row {address.position} does not exist in {table.value}")
            rows[address.position] = normalize_row(row)

    def update_cell_range(
        self,
        table: Table,
        address: RowAddress,
        first_column: int,
        values: Sequence[str],
    ) -> None:
        check_address(table, address)
        check_cell_range(table, first_column, values)
        with self._lock:
            rows = self._tables[table]
            if address.position >= len(rows):
                raise StoreError(f"Row {address.position} does not exist in {table.value}")
            current = rows[address.position]
            end = first_column + len(values)
            if len(current) < end:
                current.extend([""] * (end - len(current)))
            current[first_column:end] = normalize_row(values)

    def rows(self, table: Table) -> List[List[str]]:
        """Raw copy of a table, for inspection in tests and seeding scripts."""
        with self._lock:
            return [list(r) for r in self._tables[table]]
