from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence
from uuid import uuid4


def utcnow() -> datetime:
    # timezone-aware UTC for future-proofing
    return datetime.now(timezone.utc)


def utcnow_iso() -> str:
    return utcnow().isoformat()


def new_id() -> str:
    return str(uuid4())


def cell(row: Sequence[str], idx: int, default: str = "") -> str:
    """
    Stores drop trailing empty cells, so short rows are normal.
    """
    if idx < len(row):
        v = row[idx]
        if v is None:
            return default
        return str(v)
    return default


def bool_cell(raw: str) -> bool:
    return (raw or "").strip().upper() == "TRUE"


def to_bool_cell(value: bool) -> str:
    return "TRUE" if value else "FALSE"
