from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import Column
from sqlalchemy.types import JSON
from sqlmodel import Field, SQLModel

from .common import utcnow


class StoreRow(SQLModel, table=True):
    """
    One positional row of a logical table in the SQL-backed record store.

    Scan order is insertion order (id). There is no natural-key column or
    index; rows are addressed by scan position only.
    """

    __tablename__ = "store_rows"

    id: Optional[int] = Field(default=None, primary_key=True)
    table_name: str = Field(index=True)

    cells: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=utcnow)
