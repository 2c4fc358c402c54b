from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..database import default_engine, init_db
from ..errors import StoreError
from ..models.store_row import StoreRow
from .base import (
    RowAddress,
    StoredRow,
    Table,
    check_address,
    check_cell_range,
    normalize_row,
)

logger = logging.getLogger(__name__)


class SqlRecordStore:
    """
    Record store over a single SQLModel table (store_rows).

    The relational engine is used as a plain row container: scan order
    is insertion order and updates address rows by scan offset, so the core sees
    the same positional semantics as the spreadsheet backend.
    """

    def __init__(self, engine: Optional[Engine] = None, *, create_tables: bool = True) -> None:
        self.engine = engine or default_engine()
        init_db(self.engine, create_tables=create_tables)

    def _row_at(self, session: Session, table: Table, address: RowAddress) -> StoreRow:
        q = (
            select(StoreRow)
            .where(StoreRow.table_name == table.value)
            .order_by(StoreRow.id)
            .offset(address.position)
            .limit(1)
        )
        row = session.exec(q).first()
        if row is None:
            raise StoreError(f"Row {address.position} does not exist in {table.value}")
        return row

    def scan(self, table: Table) -> List[StoredRow]:
        try:
            with Session(self.engine) as session:
                q = select(StoreRow).where(StoreRow.table_name == table.value).order_by(StoreRow.id)
                rows = list(session.exec(q).all())
        except SQLAlchemyError as e:
            logger.exception("scan failed (table=%s)", table.value)
            raise StoreError(f"Could not read {table.value}: {e}") from e

        return [
            StoredRow(address=RowAddress(table, i), cells=normalize_row(r.cells or []))
            for i, r in enumerate(rows)
        ]

    def append_row(self, table: Table, row: Sequence[str]) -> None:
        try:
            with Session(self.engine) as session:
                session.add(StoreRow(table_name=table.value, cells=normalize_row(row)))
                session.commit()
        except SQLAlchemyError as e:
            logger.exception("append failed (table=%s)", table.value)
            raise StoreError(f"Could not append to {table.value}: {e}") from e

    def update_row(self, table: Table, address: RowAddress, row: Sequence[str]) -> None:
        check_address(table, address)
        try:
            with Session(self.engine) as session:
                target = self._row_at(session, table, address)
                target.cells = normalize_row(row)
                session.add(target)
                session.commit()
        except SQLAlchemyError as e:
            logger.exception("update failed (table=%s, position=%s)", table.value, address.position)
            raise StoreError(f"Could not update {table.value}: {e}") from e

    def update_cell_range(
        self,
        table: Table,
        address: RowAddress,
        first_column: int,
        values: Sequence[str],
    ) -> None:
        check_address(table, address)
        check_cell_range(table, first_column, values)
        try:
            with Session(self.engine) as session:
                target = self._row_at(session, table, address)
                cells = list(target.cells or [])
                end = first_column + len(values)
                if len(cells) < end:
                    cells.extend([""] * (end - len(cells)))
                cells[first_column:end] = normalize_row(values)
                # Reassign (not mutate) so the JSON column is flagged dirty
                target.cells = cells
                session.add(target)
                session.commit()
        except SQLAlchemyError as e:
            logger.exception("cell update failed (table=%s, position=%s)", table.value, address.position)
            raise StoreError(f"Could not update {table.value}: {e}") from e
